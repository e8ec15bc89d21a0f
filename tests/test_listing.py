from conftest import make_book, make_expert

from core.listing import (
    EXPERTS_PER_PAGE,
    filter_experts,
    filter_users,
    paginate,
    platform_summary,
    title_hive,
)
from core.models import BookGenre, BookStatus, SubscriptionTier, UserRole, UserStatus


def test_paginate_and_clamp():
    items = list(range(20))
    first = paginate(items, 1, EXPERTS_PER_PAGE)
    assert first.items == list(range(8))
    assert first.total_pages == 3 and first.total == 20
    assert first.has_next and not first.has_prev

    last = paginate(items, 99, EXPERTS_PER_PAGE)
    assert last.page == 3 and last.items == [16, 17, 18, 19]
    assert paginate(items, -4, EXPERTS_PER_PAGE).page == 1
    assert paginate(items, "x", EXPERTS_PER_PAGE).page == 1


def test_paginate_empty_list_has_one_page():
    page = paginate([], 1, 10)
    assert page.items == [] and page.total_pages == 1 and not page.has_next


def test_filter_experts_searches_books_and_wants_of_any_tier():
    collector = make_expert("Ann", books=[make_book(title="Emma", author="Jane Austen")])
    free_searcher = make_expert("Ben", want=("Dune", "Herbert"))
    admin = make_expert("Admin Dune", role=UserRole.ADMIN)

    assert filter_experts([collector, free_searcher, admin], "austen") == [collector]
    assert filter_experts([collector, free_searcher, admin], "dune") == [free_searcher]
    assert filter_experts([collector, free_searcher, admin], "") == [collector, free_searcher]


def test_filter_experts_by_genre():
    history = make_expert("Hist", genre=BookGenre.HISTORY)
    art = make_expert("Arty", genre=BookGenre.ART)
    assert filter_experts([history, art], genre="Art") == [art]
    assert filter_experts([history, art], genre="Not a genre") == []


def test_title_hive_lists_premium_wants_only():
    premium = make_expert("Pat", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    free = make_expert("Fay", want=("Dune", "Herbert"))
    no_want = make_expert("Nia", tier=SubscriptionTier.PREMIUM)
    other = make_expert("Oli", tier=SubscriptionTier.PREMIUM, want=("Emma", "Austen"))

    assert title_hive([premium, free, no_want, other]) == [premium, other]
    assert title_hive([premium, free, no_want, other], "austen") == [other]


def test_filter_users():
    active = make_expert("Active Person")
    disabled = make_expert("Disabled Person", status=UserStatus.DISABLED)
    premium = make_expert("Premium Person", tier=SubscriptionTier.PREMIUM)
    admin = make_expert("Admin", role=UserRole.ADMIN)
    everyone = [active, disabled, premium, admin]

    assert filter_users(everyone, "all") == [active, disabled, premium]
    assert filter_users(everyone, "active") == [active, premium]
    assert filter_users(everyone, "disabled") == [disabled]
    assert filter_users(everyone, "premium") == [premium]
    assert filter_users(everyone, "all", search=disabled.email.upper()) == [disabled]
    assert filter_users(everyone, "all", tab="system") == [admin]


def test_platform_summary_excludes_examples_and_admins():
    a = make_expert(
        "A",
        tier=SubscriptionTier.PREMIUM,
        country="Japan",
        on_leave=True,
        books=[make_book(), make_book(status=BookStatus.SOLD), make_book(status=BookStatus.RESERVED)],
    )
    b = make_expert("B", genre=BookGenre.ART, country="Japan")
    example = make_expert("Example", is_example=True, books=[make_book()])
    admin = make_expert("Admin", role=UserRole.ADMIN)

    summary = platform_summary([a, b, example, admin])

    assert summary.total_experts == 2
    assert summary.premium_experts == 1
    assert summary.on_leave == 1
    assert summary.total_books == 3
    assert (summary.available_books, summary.sold_books, summary.reserved_books) == (1, 1, 1)
    assert dict(summary.country_distribution) == {"Japan": 2}
    assert summary.recent_experts[0] is b
    data = summary.as_dict()
    assert data["genre_distribution"] == {"History": 1, "Art": 1}
