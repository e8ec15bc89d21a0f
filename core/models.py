"""
Domain models for experts, their books, spotlights and wants.

Experts exclusively own their books, spotlights, want and present offer; none of
those have an identity outside the owning expert record.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from core.errors import InvalidWantError

SPOTLIGHT_TITLE_MAX = 150
SPOTLIGHT_CONTENT_MAX = 350


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookStatus(str, Enum):
    AVAILABLE = "Available"
    SOLD = "Sold"
    RESERVED = "Reserved"


class UserRole(str, Enum):
    ADMIN = "admin"
    EXPERT = "expert"
    BUYER = "buyer"


class UserStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class SubscriptionTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


class BookGenre(str, Enum):
    AGRICULTURE = "Agriculture"
    AI = "AI"
    AIRCRAFT = "Aircraft"
    ANCIENT_WORLD = "Ancient World"
    ANIMALS = "Animals"
    ANIMATION = "Animation"
    ANTHROPOLOGY = "Anthropology"
    ARCHEOLOGY = "Archeology"
    ARCHITECTURE = "Architecture"
    ARMY = "Army"
    ART = "Art"
    BABYSITTING = "Babysitting"
    BEAUTY = "Beauty"
    BIOGRAPHY = "Biography"
    BIOLOGY = "Biology"
    BUSINESS = "Business"
    CALLIGRAPHY = "Calligraphy"
    CAREER = "Career"
    CARS = "Cars"
    CHEMISTRY = "Chemistry"
    CINEMA = "Cinema"
    COACHING = "Coaching"
    CODING = "Coding"
    COMEDY = "Comedy"
    COMICS = "Comics"
    COMMUNICATION = "Communication"
    COMPUTER_SCIENCE = "Computer Science"
    CONSULTING = "Consulting"
    CONSTRUCTION = "Construction"
    COOKBOOKS = "Cookbooks"
    COSMETICS = "Cosmetics"
    CRIME = "Crime"
    DECORATION = "Decoration"
    DESIGN = "Design"
    DIPLOMACY = "Diplomacy"
    DIVING = "Diving"
    DOCUMENTARY = "Documentary"
    DRAMA = "Drama"
    ECONOMICS = "Economics"
    EDUCATION = "Education"
    ENGINEERING = "Engineering"
    ENTREPRENEURSHIP = "Entrepreneurship"
    EXPLORATION = "Exploration"
    FAIRIES = "Fairies"
    FANTASY = "Fantasy"
    FASHION = "Fashion"
    FICTION = "Fiction"
    FISHING = "Fishing"
    FITNESS = "Fitness"
    FUNGUS = "Fungus"
    GAMING = "Gaming"
    GEOLOGY = "Geology"
    HEALTH = "Health"
    HIKING = "Hiking"
    HISTORY = "History"
    HOUSING = "Housing"
    HUMANITY = "Humanity"
    HUNTING = "Hunting"
    INSECTS = "Insects"
    INTERNET = "Internet"
    JAZZ = "Jazz"
    KIDS = "Kids"
    LAKES = "Lakes"
    LANGUAGES = "Languages"
    LEADERSHIP = "Leadership"
    LEGAL_STUDIES = "Legal Studies"
    LOVE = "Love"
    MANAGEMENT = "Management"
    MARKETING = "Marketing"
    MATHEMATICS = "Mathematics"
    MEDICINE = "Medicine"
    MENTORSHIP = "Mentorship"
    MINDSET = "Mindset"
    MONEY = "Money"
    MOTIVATION = "Motivation"
    MOUNTAINS = "Mountains"
    MUSIC = "Music"
    MYSTERY = "Mystery"
    NATURE = "Nature"
    NOVELS = "Novels"
    NUTRITION = "Nutrition"
    OCEANS_AND_SEAS = "Oceans and Seas"
    OLYMPICS = "Olympics"
    PETS = "Pets"
    PHILOSOPHY = "Philosophy"
    PHOTOGRAPHY = "Photography"
    PHYSICS = "Physics"
    PLANETS = "Planets"
    PLANTS = "Plants"
    POETRY = "Poetry"
    POLITICS = "Politics"
    POPULAR_FICTION = "Popular Fiction"
    POWER = "Power"
    PRODUCTIVITY = "Productivity"
    PSYCHOANALYSIS = "Psychoanalysis"
    PSYCHOLOGY = "Psychology"
    REAL_ESTATE = "Real Estate"
    RELIGION = "Religion"
    RIVERS = "Rivers"
    ROCK_AND_ROLL = "Rock and Roll"
    ROMANCE = "Romance"
    SCIENCE_FICTION = "Science Fiction"
    SHIPS = "Ships"
    SHORT_STORIES = "Short Stories"
    SOCIETY = "Society"
    SOCIAL_GAMES = "Social Games"
    SPACE = "Space"
    SPACESHIPS = "Spaceships"
    SPORT = "Sport"
    STORYTELLING = "Storytelling"
    SWEETS = "Sweets"
    TECHNOLOGY = "Technology"
    THEATER = "Theater"
    THREE_D_MODELING = "3D Modeling"
    TRAGEDY = "Tragedy"
    TRAVEL = "Travel"
    WEAPONRY = "Weaponry"
    VISUAL_ART = "Visual Art"


class Book(BaseModel):
    id: str
    title: str
    author: str
    year: int
    status: BookStatus = BookStatus.AVAILABLE
    added_at: datetime = Field(default_factory=utcnow)
    price: Optional[float] = None
    currency: Optional[str] = None
    image_url: Optional[str] = None
    condition: Optional[str] = None
    isbn: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status == BookStatus.AVAILABLE


class BookQuery(BaseModel):
    """A want: the book an expert is trying to acquire. Title and author are both required."""

    title: str
    author: str
    publisher: Optional[str] = None
    edition: Optional[str] = None
    year: Optional[int] = None

    @field_validator("title", "author")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("publisher", "edition")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @classmethod
    def from_form(
        cls,
        title: str | None,
        author: str | None,
        publisher: str | None = None,
        edition: str | None = None,
        year: int | None = None,
    ) -> Optional["BookQuery"]:
        """
        Build a want from loose form input.
        Both title and author blank -> no want. Exactly one of them -> InvalidWantError.
        """
        title = (title or "").strip()
        author = (author or "").strip()
        if not title and not author:
            return None
        if not (title and author):
            raise InvalidWantError("A book search needs both a title and an author.")
        return cls(title=title, author=author, publisher=publisher, edition=edition, year=year or None)


class Spotlight(BaseModel):
    id: str
    title: str
    content: str
    featured_book_id: Optional[str] = None
    audio_url: Optional[str] = None


class SocialLinks(BaseModel):
    x: Optional[str] = None
    facebook: Optional[str] = None
    linkedin: Optional[str] = None
    instagram: Optional[str] = None
    youtube: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class PresentOffer(BaseModel):
    """Gift promotion: buy `books_required` other books and receive `book_id` for free."""

    book_id: str
    books_required: int = Field(..., ge=1)
    message: Optional[str] = None


class Expert(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole = UserRole.EXPERT
    status: UserStatus = UserStatus.ACTIVE
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    genre: BookGenre
    country: Optional[str] = None
    bio: str = ""
    avatar_url: Optional[str] = None
    on_leave: bool = False
    books: List[Book] = Field(default_factory=list)
    spotlights: List[Spotlight] = Field(default_factory=list)
    book_query: Optional[BookQuery] = None
    social_links: Optional[SocialLinks] = None
    present_offer: Optional[PresentOffer] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    is_example: bool = False

    @property
    def is_premium(self) -> bool:
        return self.subscription_tier == SubscriptionTier.PREMIUM

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def book_by_id(self, book_id: str) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None


class WishlistItem(BaseModel):
    book_id: str
    expert_id: str


class ModerationAlert(BaseModel):
    expert_id: str
    expert_name: str
    content_type: Literal["bio", "spotlight_title", "spotlight_content"]
    flagged_content: str
    reason: str


class Notification(BaseModel):
    to: str
    subject: str
    template_type: Literal["title_hive_alert", "inquiry", "contact", "feedback", "invite"]
    template_data: Dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "SPOTLIGHT_TITLE_MAX",
    "SPOTLIGHT_CONTENT_MAX",
    "utcnow",
    "BookStatus",
    "UserRole",
    "UserStatus",
    "SubscriptionTier",
    "BookGenre",
    "Book",
    "BookQuery",
    "Spotlight",
    "SocialLinks",
    "PresentOffer",
    "Expert",
    "WishlistItem",
    "ModerationAlert",
    "Notification",
]
