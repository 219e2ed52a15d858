"""Tests for user upsert and credential checks."""

from gradebook.models import User


def _user_count(gradebook) -> int:
    (count,) = gradebook.db.connection.execute("SELECT COUNT(*) FROM User").fetchone()
    return count


class TestUpsertUser:
    """Tests for upsert_user."""

    def test_insert_returns_new_id(self, gradebook):
        user_id = gradebook.upsert_user("ana", "Ana", "García", "secret")
        assert isinstance(user_id, int)
        assert gradebook.users.lookup_user_id("ana") == user_id

    def test_repeated_upsert_is_idempotent(self, gradebook):
        """Same data twice: one row, same id."""
        first = gradebook.upsert_user("ana", "Ana", "García", "secret")
        second = gradebook.upsert_user("ana", "Ana", "García", "secret")

        assert first == second
        assert _user_count(gradebook) == 1

    def test_upsert_updates_name_and_password(self, gradebook):
        """Existing username: fields change, id doesn't."""
        user_id = gradebook.upsert_user("ana", "Ana", "García", "secret")
        updated_id = gradebook.upsert_user("ana", "Anna", "Garcia", "new-secret")

        assert updated_id == user_id
        user = gradebook.get_user("ana")
        assert user == User(username="ana", firstname="Anna", lastname="Garcia")
        assert gradebook.verify_credentials("ana", "new-secret")
        assert not gradebook.verify_credentials("ana", "secret")

    def test_distinct_users_get_distinct_ids(self, gradebook):
        ana = gradebook.upsert_user("ana", "Ana", "García", "a")
        carlos = gradebook.upsert_user("carlos", "Carlos", "Ruiz", "c")
        assert ana != carlos
        assert _user_count(gradebook) == 2

    def test_add_or_update_user_from_record(self, gradebook, sample_user):
        user_id = gradebook.add_or_update_user(sample_user, "secret")
        assert gradebook.users.lookup_user_id(sample_user.username) == user_id


class TestLookup:
    """Tests for lookup_user_id and get_user."""

    def test_lookup_unknown_user(self, gradebook):
        assert gradebook.users.lookup_user_id("nobody") is None

    def test_get_unknown_user(self, gradebook):
        assert gradebook.get_user("nobody") is None


class TestVerifyCredentials:
    """Tests for verify_credentials."""

    def test_matching_credentials(self, gradebook):
        gradebook.upsert_user("ana", "Ana", "García", "secret")
        assert gradebook.verify_credentials("ana", "secret") is True

    def test_wrong_password(self, gradebook):
        gradebook.upsert_user("ana", "Ana", "García", "secret")
        assert gradebook.verify_credentials("ana", "Secret") is False

    def test_missing_user(self, gradebook):
        assert gradebook.verify_credentials("nobody", "secret") is False

    def test_empty_password_never_verifies(self, gradebook):
        """Even a user stored with an empty password can't log in with one."""
        gradebook.upsert_user("ana", "Ana", "García", "")
        assert gradebook.verify_credentials("ana", "") is False

    def test_password_of_other_user(self, gradebook):
        gradebook.upsert_user("ana", "Ana", "García", "secret")
        gradebook.upsert_user("carlos", "Carlos", "Ruiz", "other")
        assert gradebook.verify_credentials("ana", "other") is False
