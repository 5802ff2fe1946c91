import pytest

from errors import (CannotDeleteAdmin, ConflictError, InvalidCredentials, NotFoundError,
                    StoreError, UsernameTaken, ValidationError)
from models import (User, UserSession, Application, Notification, Resume, ContactMessage,
                    ROLE_CUSTOMER)


def test_register_twice_conflicts(services):
    services.accounts.register("bob", "secret")
    with pytest.raises(UsernameTaken) as info:
        services.accounts.register("bob", "other")
    assert isinstance(info.value, ConflictError)
    assert User.query.filter_by(username="bob").count() == 1


def test_usernames_are_case_sensitive(services):
    services.accounts.register("bob", "secret")
    services.accounts.register("Bob", "secret")
    assert services.accounts.user_exists("Bob")


def test_register_rejects_unknown_role(services):
    with pytest.raises(ValidationError):
        services.accounts.register("carol", "pw", role="Superuser")


def test_password_is_hashed(services, alice):
    assert User.query.filter_by(username="alice").one().password != "pw1"


@pytest.mark.parametrize("username,password,confirm,message", [
    ("", "pw", "pw", "Please fill in all fields."),
    ("dave", "", "", "Please fill in all fields."),
    ("dave", "pw", "wp", "Passwords do not match."),
])
def test_validate_signup(services, username, password, confirm, message):
    with pytest.raises(ValidationError, match=message):
        services.accounts.validate_signup(username, password, confirm)


def test_validate_login_returns_role_and_starts_session(services, alice):
    assert services.accounts.validate_login("alice", "pw1") == ROLE_CUSTOMER
    assert UserSession.query.filter_by(username="alice", is_active=True).count() == 1
    assert services.accounts.active_user_count() == 1


def test_validate_login_rejects_bad_credentials(services, alice):
    with pytest.raises(InvalidCredentials):
        services.accounts.validate_login("alice", "wrong")
    with pytest.raises(InvalidCredentials):
        services.accounts.validate_login("nobody", "pw1")
    assert UserSession.query.count() == 0


def test_only_latest_session_is_active(services, alice):
    services.accounts.start_session("alice")
    services.accounts.start_session("alice")
    sessions = UserSession.query.filter_by(username="alice").all()
    assert len(sessions) == 2
    assert [s.is_active for s in sessions].count(True) == 1


def test_end_session(services, alice):
    services.accounts.start_session("alice")
    assert services.accounts.end_session("alice") == 1
    session = UserSession.query.filter_by(username="alice").one()
    assert session.is_active is False
    assert session.logout_time is not None
    assert services.accounts.active_user_count() == 0


def test_users_with_session_status(services, alice):
    services.accounts.register("bob", "pw")
    services.accounts.start_session("alice")
    services.accounts.start_session("bob")
    services.accounts.end_session("bob")

    users = {u["username"]: u for u in services.accounts.list_users_with_session_status()}
    assert set(users) == {"admin", "alice", "bob"}
    assert users["alice"]["status"] == "Online"
    assert users["bob"]["status"] == "Offline"
    assert users["bob"]["last_logout"] is not None
    assert users["admin"]["status"] == "Offline"
    assert users["admin"]["last_login"] is None


def test_list_active_users(services, alice):
    services.accounts.start_session("alice")
    active = services.accounts.list_active_users()
    assert [(u["username"], u["role"]) for u in active] == [("alice", ROLE_CUSTOMER)]


def test_change_password(services, alice):
    with pytest.raises(InvalidCredentials):
        services.accounts.change_password("alice", "nope", "pw2")
    services.accounts.change_password("alice", "pw1", "pw2")
    assert services.accounts.validate_login("alice", "pw2") == ROLE_CUSTOMER


def _fill_everything(services, username):
    services.accounts.start_session(username)
    app_id = services.applications.submit_application(
        username, "Engineer", "Acme", "Bob B", "b@x.com", "", "")
    services.applications.approve_application(app_id)
    services.resumes.upsert(username, "Bob B", "b@x.com", "", "", "", "", "", "")
    services.contact.submit(username, "Hello", "Is this thing on?")


def test_delete_user_cascades(services):
    bob = services.accounts.register("bob", "pw")
    _fill_everything(services, "bob")

    services.accounts.delete_user(bob.id, "bob")

    assert not services.accounts.user_exists("bob")
    for model in (UserSession, Application, Notification, Resume, ContactMessage):
        assert model.query.filter_by(username="bob").count() == 0
    # the admin's inbox is not the deleted user's
    assert services.notifications.unread_count("admin") == 2


@pytest.mark.parametrize("username", ["admin", "ADMIN", "Admin"])
def test_admin_cannot_be_deleted(services, username):
    admin = User.query.filter_by(username="admin").one()
    services.accounts.start_session("admin")
    with pytest.raises(CannotDeleteAdmin):
        services.accounts.delete_user(admin.id, username)
    assert services.accounts.user_exists("admin")
    assert UserSession.query.filter_by(username="admin").count() == 1


def test_delete_user_needs_matching_id_and_username(services, alice):
    with pytest.raises(NotFoundError):
        services.accounts.delete_user(alice.id, "someone-else")
    with pytest.raises(NotFoundError):
        services.accounts.delete_user(9999, "alice")
    assert services.accounts.user_exists("alice")


def test_bulk_delete_keeps_admin(services, alice):
    services.accounts.register("bob", "pw")
    _fill_everything(services, "bob")

    result = services.accounts.bulk_delete_all_except_admin()

    assert result.count == 2
    assert sorted(result.deleted) == ["alice", "bob"]
    assert result.failed == {}
    assert [u.username for u in User.query.all()] == ["admin"]
    assert Resume.query.count() == 0


def test_bulk_delete_reports_failures_and_continues(services, alice, monkeypatch):
    services.accounts.register("bob", "pw")
    delete_owned = services.accounts._delete_owned_records

    def flaky(username):
        if username == "alice":
            raise StoreError("database is locked")
        delete_owned(username)

    monkeypatch.setattr(services.accounts, "_delete_owned_records", flaky)
    result = services.accounts.bulk_delete_all_except_admin()

    assert result.deleted == ["bob"]
    assert result.failed == {"alice": "database is locked"}
    assert services.accounts.user_exists("alice")
    assert result.to_dict()["count"] == 1
