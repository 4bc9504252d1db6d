# test_client_repository.py - Pruebas de ClientRepository contra SQLite en memoria

from datetime import timedelta

import pytest

from app.db.models import utcnow
from app.models.client import ClientCreate, ClientUpdate
from app.services.client_repository import ClientRepository, ListOptions
from app.utils.errors import DuplicateError, NotFoundError


def _make(repo, name, email, phone=None):
    return repo.create(ClientCreate(name=name, email=email, phone=phone))


def test_create_normalizes_and_sets_timestamps(repo, new_client_data):
    created = repo.create(ClientCreate(**new_client_data))
    assert created.id > 0
    assert created.email == "john@ex.com"
    assert created.created_at == created.updated_at


def test_duplicate_email_exactly_one_success(repo):
    _make(repo, "First One", "dup@example.com")
    with pytest.raises(DuplicateError):
        _make(repo, "Second One", "  DUP@Example.COM")
    assert repo.find_all().total == 1


def test_constraint_race_surfaces_as_duplicate(repo, monkeypatch):
    _make(repo, "First One", "race@example.com")
    # Simula otro writer que pasó el pre-check antes de que existiera la fila
    monkeypatch.setattr(ClientRepository, "_check_email_uniqueness", lambda self, email, exclude_id=None: None)

    with pytest.raises(DuplicateError) as exc_info:
        _make(repo, "Second One", "race@example.com")
    assert exc_info.value.code == "DUPLICATE_EMAIL"

    # la sesión sigue utilizable después del rollback
    assert repo.find_all().total == 1


def test_find_by_id_absent_returns_none(repo):
    assert repo.find_by_id(12345) is None


def test_update_empty_changes_nothing(repo):
    created = _make(repo, "Jane Roe", "jane@example.com")
    before = (created.id, created.name, created.email, created.phone, created.updated_at)

    updated = repo.update(created.id, ClientUpdate())
    assert (updated.id, updated.name, updated.email, updated.phone, updated.updated_at) == before


def test_update_refreshes_updated_at_only(repo):
    created = _make(repo, "Jane Roe", "jane@example.com", "555-123-4567")
    created_at = created.created_at

    updated = repo.update(created.id, ClientUpdate(name="Jane Doe"))
    assert updated.name == "Jane Doe"
    assert updated.phone == "555-123-4567"
    assert updated.created_at == created_at
    assert updated.updated_at >= updated.created_at


def test_update_missing_raises_not_found(repo):
    with pytest.raises(NotFoundError):
        repo.update(99, ClientUpdate(name="Nobody"))


def test_update_email_uniqueness_excludes_self(repo):
    a = _make(repo, "Anna Smith", "anna@example.com")
    _make(repo, "Ben Smith", "ben@example.com")

    assert repo.update(a.id, ClientUpdate(email="ANNA@example.com")).email == "anna@example.com"
    with pytest.raises(DuplicateError):
        repo.update(a.id, ClientUpdate(email="ben@example.com"))


def test_delete_then_missing(repo):
    created = _make(repo, "Temp User", "temp@example.com")
    assert repo.delete(created.id) is True
    assert repo.find_by_id(created.id) is None
    assert repo.delete(created.id) is False


def test_ids_are_not_reused_after_delete(repo):
    first = _make(repo, "Temp User", "temp@example.com")
    repo.delete(first.id)
    second = _make(repo, "Temp User", "temp@example.com")
    assert second.id > first.id


def test_find_all_search_escapes_wildcards(repo):
    _make(repo, "Percent Person", "percent@example.com")
    _make(repo, "Under Score", "under_score@example.com")

    assert repo.find_all(ListOptions(search="%")).total == 0
    page = repo.find_all(ListOptions(search="_score"))
    assert [c.email for c in page.items] == ["under_score@example.com"]


def test_find_all_unknown_sort_field_falls_back(repo):
    for i, name in enumerate(["Zed", "Amy", "Kim"]):
        _make(repo, name, f"user{i}@example.com")

    page = repo.find_all(ListOptions(sort_by="nonexistent", order="desc"))
    assert [c.name for c in page.items] == ["Kim", "Amy", "Zed"]


def test_find_all_meta(repo):
    for i in range(25):
        _make(repo, "Bulk User", f"bulk{i}@example.com")

    page = repo.find_all(ListOptions(page=3, limit=10))
    assert len(page.items) == 5
    assert page.meta() == {
        "page": 3,
        "limit": 10,
        "total": 25,
        "totalPages": 3,
        "hasNext": False,
        "hasPrev": True,
    }


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({}, ListOptions(page=1, limit=10, search="", sort_by="created_at", order="desc")),
        ({"page": "0", "limit": "0"}, ListOptions(page=1, limit=10)),
        ({"page": "-4", "limit": "-4"}, ListOptions(page=1, limit=1)),
        ({"page": "3", "limit": "250"}, ListOptions(page=3, limit=100)),
        ({"search": "  ann ", "sort_by": "name", "order": "ASC"}, ListOptions(search="ann", sort_by="name", order="asc")),
        ({"sort_by": "created_at; --", "order": "up"}, ListOptions()),
    ],
)
def test_list_options_from_raw(raw, expected):
    assert ListOptions.from_raw(**raw) == expected


def test_stats_counts(repo):
    _make(repo, "With Phone", "a@example.com", "555-123-4567")
    _make(repo, "No Phone", "b@example.com")
    _make(repo, "Blank Phone", "c@example.com", "   ")

    stats = repo.stats()
    assert stats.total == 3
    assert stats.withPhone == 1
    assert stats.withoutPhone == 2
    assert stats.recentlyAdded == 3
    assert stats.oldestCreated is not None
    assert stats.oldestCreated <= stats.newestCreated


def test_stats_recent_window_excludes_old_rows(repo, db):
    old = _make(repo, "Old Timer", "old@example.com")
    _make(repo, "New Comer", "new@example.com")
    assert repo.stats().recentlyAdded == 2

    old.created_at = utcnow() - timedelta(days=30)
    db.commit()

    stats = repo.stats()
    assert stats.total == 2
    assert stats.recentlyAdded == 1


def test_out_of_range_ids_are_absent(repo):
    huge = 2**63
    assert repo.find_by_id(huge) is None
    assert repo.delete(huge) is False
    with pytest.raises(NotFoundError):
        repo.update(huge, ClientUpdate(name="Nobody"))


def test_find_all_offset_beyond_storage_range(repo):
    _make(repo, "Only One", "one@example.com")
    page = repo.find_all(ListOptions.from_raw(page="999999999999999999999", limit="100"))
    assert page.items == []
    assert page.total == 1
    assert page.has_prev is True
    assert page.has_next is False
