import pytest

from habits.errors import ErrorKind, HabitError
from habits.models import StoredItem
from habits.storage import DatabaseStore, InMemoryStore


@pytest.fixture(params=["memory", "database"])
def store_factory(request):
    if request.param == "database":
        request.getfixturevalue("db")
        return DatabaseStore
    return InMemoryStore


def test_store__get_missing_key_returns_none(store_factory):
    assert store_factory().get("nope") is None


def test_store__set_then_get_returns_structured_value(store_factory):
    store = store_factory()
    store.set("habit", {"id": "a", "tags": [1, 2], "done": True})
    assert store.get("habit") == {"id": "a", "tags": [1, 2], "done": True}


def test_store__last_write_wins(store_factory):
    store = store_factory()
    store.set("k", [1])
    store.set("k", [2])
    assert store.get("k") == [2]


def test_store__remove_and_clear(store_factory):
    store = store_factory()
    store.set("a", 1)
    store.set("b", 2)

    store.remove("a")
    store.remove("a")
    assert store.get("a") is None
    assert store.get("b") == 2

    store.clear()
    assert store.get("b") is None


def test_store__write_over_quota_is_rejected_and_keeps_old_value(store_factory):
    store = store_factory(max_bytes=40)
    store.set("k", "small")

    with pytest.raises(HabitError) as exc:
        store.set("k", "x" * 100)

    assert exc.value.kind is ErrorKind.STORAGE_QUOTA_EXCEEDED
    assert exc.value.status_code == 507
    assert store.get("k") == "small"


def test_store__quota_counts_other_keys_but_not_the_overwritten_one(store_factory):
    store = store_factory(max_bytes=30)
    store.set("a", "x" * 10)  # 12 bytes serialized
    store.set("a", "y" * 10)
    store.set("b", "z" * 10)

    with pytest.raises(HabitError):
        store.set("c", "w" * 10)


def test_in_memory_store__instances_do_not_share_data():
    first = InMemoryStore()
    second = InMemoryStore()
    first.set("k", 1)
    assert second.get("k") is None
    assert len(first) == 1


@pytest.mark.django_db
def test_database_store__persists_rows_in_store_items():
    DatabaseStore().set("habit", {"name": "Run"})

    item = StoredItem.objects.get(key="habit")
    assert item.value == {"name": "Run"}
    assert DatabaseStore().get("habit") == {"name": "Run"}


def test_in_memory_store__atomic_scope_needs_no_database():
    store = InMemoryStore()
    with store.atomic():
        store.set("k", 1)
    assert store.get("k") == 1
