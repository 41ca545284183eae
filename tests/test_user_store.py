"""Unit tests for UserStore (auth/store.py).

Each test gets a fresh shared-memory database through the store fixture.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User


def _user(email: str = "a@x.com", role: str = "user", name: str = "Alice") -> User:
    return User(name=name, email=email, password_hash="$2b$04$notarealhash", role=role)


class TestCreate:
    def test_assigns_opaque_id(self, store):
        user_id = store.create_user(_user())
        assert isinstance(user_id, str)
        assert len(user_id) == 32

    def test_ids_are_unique(self, store):
        assert store.create_user(_user("a@x.com")) != store.create_user(_user("b@x.com"))

    def test_sets_created_at(self, store):
        user = store.get_by_id(store.create_user(_user()))
        assert user.created_at

    def test_duplicate_email_raises(self, store):
        store.create_user(_user("dup@x.com"))
        with pytest.raises(IntegrityError):
            store.create_user(_user("dup@x.com", name="Other"))

    def test_email_match_is_exact(self, store):
        store.create_user(_user("Case@x.com"))
        assert store.get_by_email("case@x.com") is None
        assert store.get_by_email("Case@x.com") is not None


class TestRead:
    def test_get_by_id_round_trip(self, store):
        user_id = store.create_user(_user(role="admin"))
        user = store.get_by_id(user_id)
        assert user.id == user_id
        assert user.name == "Alice"
        assert user.email == "a@x.com"
        assert user.role == "admin"
        assert user.is_admin

    def test_get_missing_returns_none(self, store):
        assert store.get_by_id("0" * 32) is None
        assert store.get_by_email("ghost@x.com") is None

    def test_list_users_returns_everyone(self, store):
        ids = {store.create_user(_user(f"u{i}@x.com")) for i in range(3)}
        assert {u.id for u in store.list_users()} == ids

    def test_count_admins(self, store):
        assert store.count_admins() == 0
        store.create_user(_user("a@x.com", role="admin"))
        store.create_user(_user("b@x.com"))
        assert store.count_admins() == 1

    def test_ping(self, store):
        assert store.ping() is True


class TestUpdate:
    def test_updates_named_fields_only(self, store):
        user_id = store.create_user(_user())
        assert store.update_user(user_id, name="Alicia") is True
        user = store.get_by_id(user_id)
        assert user.name == "Alicia"
        assert user.email == "a@x.com"

    def test_missing_user_returns_false(self, store):
        assert store.update_user("0" * 32, name="Nobody") is False

    def test_no_fields_reports_existence(self, store):
        user_id = store.create_user(_user())
        assert store.update_user(user_id) is True
        assert store.update_user("0" * 32) is False

    def test_unknown_field_rejected(self, store):
        user_id = store.create_user(_user())
        with pytest.raises(ValueError):
            store.update_user(user_id, id="hijacked")

    def test_email_collision_raises(self, store):
        store.create_user(_user("a@x.com"))
        other = store.create_user(_user("b@x.com"))
        with pytest.raises(IntegrityError):
            store.update_user(other, email="a@x.com")
        assert store.get_by_id(other).email == "b@x.com"


class TestDelete:
    def test_delete_removes_record(self, store):
        user_id = store.create_user(_user())
        assert store.delete_user(user_id) is True
        assert store.get_by_id(user_id) is None

    def test_delete_missing_returns_false(self, store):
        assert store.delete_user("0" * 32) is False

    def test_delete_frees_email(self, store):
        store.delete_user(store.create_user(_user("reuse@x.com")))
        assert store.create_user(_user("reuse@x.com"))
