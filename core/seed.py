"""
Demo experts shown alongside stored ones so an empty installation has something to browse.
They are never written to the database.
"""
from __future__ import annotations

from datetime import timedelta
from typing import List

from core.models import (
    Book,
    BookGenre,
    BookQuery,
    BookStatus,
    Expert,
    PresentOffer,
    SocialLinks,
    Spotlight,
    SubscriptionTier,
    UserRole,
    utcnow,
)


def _days_ago(days: float):
    return utcnow() - timedelta(days=days)


def _book(book_id, title, author, year, price, seed, days, status=BookStatus.AVAILABLE) -> Book:
    return Book(
        id=book_id,
        title=title,
        author=author,
        year=year,
        status=status,
        price=price,
        currency="USD",
        image_url=f"https://picsum.photos/seed/{seed}/200/300",
        added_at=_days_ago(days),
    )


def example_experts() -> List[Expert]:
    """Fresh copies every call; callers may mutate them."""
    return [
        Expert(
            id="admin",
            name="Admin",
            email="admin@bookdocker.go2",
            role=UserRole.ADMIN,
            subscription_tier=SubscriptionTier.PREMIUM,
            genre=BookGenre.AI,
            bio="Administrator of BookDocker GO2.",
            avatar_url="https://i.pravatar.cc/150?u=admin",
            created_at=_days_ago(10),
            is_example=True,
        ),
        Expert(
            id="premium-user-1",
            name="Dr. Aris Thorne",
            email="premium@bookdocker.go2",
            subscription_tier=SubscriptionTier.PREMIUM,
            genre=BookGenre.SCIENCE_FICTION,
            country="United Kingdom",
            bio=(
                "A leading expert in classic science fiction, Dr. Thorne's collection spans from the golden "
                "age pulps to modern cyberpunk. She offers rare first editions and insightful commentary on "
                "the genre's evolution."
            ),
            avatar_url="https://i.pravatar.cc/150?u=dr-aris-thorne-v2",
            on_leave=True,
            books=[
                _book("book-p1-1", "Dune", "Frank Herbert", 1965, 75, "dune", 1),
                _book("book-p1-2", "Foundation", "Isaac Asimov", 1951, 60, "foundation", 2),
                _book("book-p1-3", "Neuromancer", "William Gibson", 1984, 85, "neuromancer", 3),
                _book("book-p1-4", "Hyperion", "Dan Simmons", 1989, 50, "hyperion", 4, BookStatus.SOLD),
                _book(
                    "book-p1-5", "The Left Hand of Darkness", "Ursula K. Le Guin", 1969, 45, "lefthand", 5,
                    BookStatus.RESERVED,
                ),
            ],
            spotlights=[
                Spotlight(
                    id="spotlight-p1-1",
                    title="The Genius of Asimov",
                    content=(
                        "Foundation is more than a book; it's a blueprint for the future of science fiction. "
                        "Asimov's vision of psychohistory and galactic empires has influenced countless authors. "
                        "In this audio note, I discuss its enduring legacy and the importance of this particular "
                        "first edition."
                    ),
                    featured_book_id="book-p1-2",
                    audio_url="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-1.mp3",
                ),
                Spotlight(
                    id="spotlight-p1-2",
                    title="Beyond the Spice: The Ecology of Dune",
                    content=(
                        "Frank Herbert's masterpiece is more than a space opera; it's a profound ecological and "
                        "political allegory. We'll explore how the desert planet of Arrakis, with its majestic "
                        "sandworms and precious melange, serves as a character in its own right, shaping the "
                        "destinies of houses Atreides and Harkonnen."
                    ),
                    featured_book_id="book-p1-1",
                    audio_url="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-2.mp3",
                ),
            ],
            book_query=BookQuery(
                title="Do Androids Dream of Electric Sheep?",
                author="Philip K. Dick",
                edition="First Edition Hardcover",
            ),
            present_offer=PresentOffer(
                book_id="book-p1-1",
                books_required=3,
                message="Begin your journey to Arrakis with this complimentary gift for a fellow traveler.",
            ),
            social_links=SocialLinks(x="https://x.com/bookdockergo2", facebook="https://facebook.com/bookdockergo2"),
            created_at=_days_ago(9),
            is_example=True,
        ),
        Expert(
            id="premium-user-2",
            name="Marco Verratti",
            email="marco@bookdocker.go2",
            subscription_tier=SubscriptionTier.PREMIUM,
            genre=BookGenre.HISTORY,
            country="Italy",
            bio=(
                "Specializing in Mediterranean history, Marco curates a collection of books focusing on the "
                "Roman Empire and the Renaissance, offering deep insights and rare historical accounts."
            ),
            avatar_url="https://i.pravatar.cc/150?u=marco-verratti",
            books=[
                _book("book-p2-1", "SPQR: A History of Ancient Rome", "Mary Beard", 2015, 35, "spqr", 1.5),
                _book(
                    "book-p2-2", "The Swerve: How the World Became Modern", "Stephen Greenblatt", 2011, 25,
                    "swerve", 2.5,
                ),
                _book(
                    "book-p2-3", "Rubicon: The Last Years of the Roman Republic", "Tom Holland", 2003, 30,
                    "rubicon", 3.5,
                ),
            ],
            spotlights=[
                Spotlight(
                    id="spotlight-p2-1",
                    title="The Res Publica of Rome",
                    content=(
                        "Mary Beard's 'SPQR' is not just a history; it is an autopsy of a civilization. From its "
                        "mythical founding to the reign of Caracalla, this work peels back the layers of Roman "
                        "society, politics, and power. It's an essential text for understanding how an obscure "
                        "village grew to dominate the known world."
                    ),
                    featured_book_id="book-p2-1",
                    audio_url="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-4.mp3",
                ),
                Spotlight(
                    id="spotlight-p2-2",
                    title="A Renaissance of Discovery",
                    content=(
                        "Stephen Greenblatt's 'The Swerve' is a thrilling intellectual adventure that traces the "
                        "rediscovery of Lucretius's 'On the Nature of Things.' This single event helped spark the "
                        "Renaissance, challenging religious dogma and paving the way for modern thought."
                    ),
                    featured_book_id="book-p2-2",
                    audio_url="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-5.mp3",
                ),
            ],
            book_query=BookQuery(title="The Histories", author="Herodotus"),
            present_offer=PresentOffer(
                book_id="book-p2-3",
                books_required=3,
                message="A special gift for a true history aficionado.",
            ),
            created_at=_days_ago(8),
            is_example=True,
        ),
        Expert(
            id="premium-user-3",
            name="Kenji Tanaka",
            email="kenji@bookdocker.go2",
            subscription_tier=SubscriptionTier.PREMIUM,
            genre=BookGenre.ART,
            country="Japan",
            bio=(
                "An art historian and gallerist, Kenji's passion is for Ukiyo-e and modern Japanese art "
                "movements. His collection includes beautifully illustrated books and exhibition catalogs."
            ),
            avatar_url="https://i.pravatar.cc/150?u=kenji-tanaka-v2",
            on_leave=True,
            books=[
                _book(
                    "book-p3-1", "The Great Wave: The Influence of Japanese Woodcuts on French Prints",
                    "Colta Feller Ives", 1974, 120, "greatwave", 0.5,
                ),
                _book("book-p3-2", "Japanese Art", "Joan Stanley-Baker", 2000, 40, "japaneseart", 6),
                _book("book-p3-3", "In Praise of Shadows", "Junichiro Tanizaki", 1933, 55, "shadows", 6.5),
            ],
            spotlights=[
                Spotlight(
                    id="spotlight-p3-1",
                    title="Hokusai's Enduring Ripple",
                    content=(
                        "The Great Wave off Kanagawa is arguably the most famous image in Japanese art, but its "
                        "influence extends far beyond the shores of Japan. This spotlight explores how Ukiyo-e "
                        "prints like Hokusai's transformed Western art, inspiring the Impressionists and shaping "
                        "the course of modernism."
                    ),
                    featured_book_id="book-p3-1",
                    audio_url="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-8.mp3",
                ),
                Spotlight(
                    id="spotlight-p3-2",
                    title="The Aesthetics of Imperfection",
                    content=(
                        "Tanizaki's 'In Praise of Shadows' is an essential essay on Japanese aesthetics. It "
                        "explores the love of shadow and subtlety over the bright glare of modernity. "
                        "Understanding this philosophy is key to appreciating the nuances of Japanese art."
                    ),
                    featured_book_id="book-p3-3",
                    audio_url="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-9.mp3",
                ),
            ],
            book_query=BookQuery(title="The Book of Tea", author="Okakura Kakuzo"),
            created_at=_days_ago(7),
            is_example=True,
        ),
    ]


__all__ = ["example_experts"]
