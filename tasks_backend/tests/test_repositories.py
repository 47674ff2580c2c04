import pytest

from src.api.db import SQLiteDatabase, SQLiteTaskRepository, SQLiteUserRepository
from src.api.errors import ConflictError
from src.api.repositories import (
    InMemoryTaskRepository,
    InMemoryUserRepository,
    Stores,
    build_stores,
)


@pytest.fixture(params=["memory", "sqlite"])
def stores(request, tmp_path) -> Stores:
    if request.param == "sqlite":
        database = SQLiteDatabase(str(tmp_path / "db" / "tasks.db"))
        return Stores(users=SQLiteUserRepository(database), tasks=SQLiteTaskRepository(database))
    return Stores(users=InMemoryUserRepository(), tasks=InMemoryTaskRepository())


@pytest.fixture
def two_users(stores):
    a = stores.users.create("a@example.com", "hash-a")
    b = stores.users.create("b@example.com", "hash-b")
    return a, b


class TestUserStore:
    def test_create_and_lookup(self, stores):
        created = stores.users.create("ada@example.com", "digest")
        assert created["id"] >= 1
        assert created["image"] == ""
        assert stores.users.get(created["id"]) == created
        assert stores.users.get_by_email("ada@example.com") == created

    def test_email_lookup_is_case_sensitive(self, stores):
        stores.users.create("Ada@example.com", "digest")
        assert stores.users.get_by_email("ada@example.com") is None

    def test_duplicate_email_conflicts(self, stores):
        stores.users.create("ada@example.com", "digest")
        with pytest.raises(ConflictError) as exc:
            stores.users.create("ada@example.com", "other")
        assert exc.value.message == "User exists"

    def test_update_image(self, stores):
        created = stores.users.create("ada@example.com", "digest")
        updated = stores.users.update_image(created["id"], "uploads/x.png")
        assert updated is not None and updated["image"] == "uploads/x.png"
        assert stores.users.get(created["id"])["image"] == "uploads/x.png"
        assert stores.users.update_image(9999, "uploads/y.png") is None

    def test_unknown_user(self, stores):
        assert stores.users.get(42) is None
        assert stores.users.get_by_email("nobody@example.com") is None


class TestTaskStore:
    def test_create_and_get(self, stores, two_users):
        a, _ = two_users
        task = stores.tasks.create(a["id"], "Write report", "2024-01-01", False)
        assert task == {
            "id": task["id"],
            "user_id": a["id"],
            "title": "Write report",
            "date": "2024-01-01",
            "is_checked": False,
        }
        assert stores.tasks.get(task["id"]) == task
        assert stores.tasks.get(9999) is None

    def test_partial_update_keeps_other_fields(self, stores, two_users):
        a, _ = two_users
        task = stores.tasks.create(a["id"], "t", "2024-01-01", False)
        updated = stores.tasks.update(task["id"], {"is_checked": True})
        assert updated == {**task, "is_checked": True}
        assert stores.tasks.get(task["id"]) == updated

    def test_empty_update_is_a_no_op(self, stores, two_users):
        a, _ = two_users
        task = stores.tasks.create(a["id"], "t", "2024-01-01", True)
        assert stores.tasks.update(task["id"], {}) == task

    def test_update_unknown_task(self, stores):
        assert stores.tasks.update(9999, {"title": "x"}) is None

    def test_ids_beyond_integer_range_are_unknown(self, stores, two_users):
        a, _ = two_users
        huge = 2**64
        assert stores.tasks.get(huge) is None
        assert stores.tasks.update(huge, {"is_checked": True}) is None
        assert stores.tasks.list(huge) == []
        assert stores.users.get(huge) is None
        assert stores.users.update_image(huge, "uploads/x.png") is None
        assert stores.users.get(a["id"]) == a

    def test_update_rejects_immutable_fields(self, stores, two_users):
        a, b = two_users
        task = stores.tasks.create(a["id"], "t", "2024-01-01", False)
        with pytest.raises(ValueError):
            stores.tasks.update(task["id"], {"user_id": b["id"]})
        assert stores.tasks.get(task["id"])["user_id"] == a["id"]

    def test_list_is_scoped_to_owner_in_id_order(self, stores, two_users):
        a, b = two_users
        first = stores.tasks.create(a["id"], "Same", "2024-01-01", False)
        stores.tasks.create(b["id"], "Same", "2024-01-01", False)
        second = stores.tasks.create(a["id"], "Other", "2024-01-02", True)

        listed = stores.tasks.list(a["id"])
        assert [t["id"] for t in listed] == [first["id"], second["id"]]
        assert all(t["user_id"] == a["id"] for t in listed)

    def test_list_filters(self, stores, two_users):
        a, _ = two_users
        stores.tasks.create(a["id"], "Buy MILK", "2024-01-01", False)
        stores.tasks.create(a["id"], "Buy bread", "2024-01-02", False)
        stores.tasks.create(a["id"], "Call mom", "2024-01-01", False)

        assert [t["title"] for t in stores.tasks.list(a["id"], date="2024-01-01")] == ["Buy MILK", "Call mom"]
        assert [t["title"] for t in stores.tasks.list(a["id"], search="milk")] == ["Buy MILK"]
        assert [t["title"] for t in stores.tasks.list(a["id"], search="BUY")] == ["Buy MILK", "Buy bread"]
        assert [t["title"] for t in stores.tasks.list(a["id"], date="2024-01-02", search="buy")] == ["Buy bread"]
        assert stores.tasks.list(a["id"], date="2024-01-03") == []

    def test_search_is_literal_and_unicode_case_insensitive(self, stores, two_users):
        a, _ = two_users
        stores.tasks.create(a["id"], "100% done", "d", False)
        stores.tasks.create(a["id"], "under_score", "d", False)
        stores.tasks.create(a["id"], "Ärger klären", "d", False)

        assert [t["title"] for t in stores.tasks.list(a["id"], search="%")] == ["100% done"]
        assert [t["title"] for t in stores.tasks.list(a["id"], search="_")] == ["under_score"]
        assert [t["title"] for t in stores.tasks.list(a["id"], search="äRGER")] == ["Ärger klären"]


class TestSQLitePersistence:
    def test_data_survives_reopen(self, tmp_path):
        path = str(tmp_path / "tasks.db")
        database = SQLiteDatabase(path)
        user = SQLiteUserRepository(database).create("ada@example.com", "digest")
        task = SQLiteTaskRepository(database).create(user["id"], "t", "2024-01-01", True)

        reopened = SQLiteDatabase(path)
        assert SQLiteUserRepository(reopened).get_by_email("ada@example.com") == user
        assert SQLiteTaskRepository(reopened).get(task["id"]) == task


class TestBuildStores:
    def test_memory_backend(self, make_settings):
        stores = build_stores(make_settings(persistence_backend="memory"))
        assert isinstance(stores.users, InMemoryUserRepository)
        assert isinstance(stores.tasks, InMemoryTaskRepository)

    def test_sqlite_backend_creates_db_file(self, make_settings, tmp_path):
        settings = make_settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "nested" / "t.db"))
        stores = build_stores(settings)
        assert isinstance(stores.users, SQLiteUserRepository)
        assert isinstance(stores.tasks, SQLiteTaskRepository)
        assert (tmp_path / "nested" / "t.db").exists()
