import logging
from datetime import datetime

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from errors import (CannotDeleteAdmin, InvalidCredentials, NotFoundError,
                    StoreError, UsernameTaken, ValidationError)
from models import (User, UserSession, Application, Notification, Resume, ContactMessage,
                    ROLES, ROLE_CUSTOMER, ADMIN_USERNAME)
from store import reads, transaction

log = logging.getLogger(__name__)

# Everything a user owns, deleted in this order before the user row itself
OWNED_RECORDS = (UserSession, Application, Notification, Resume, ContactMessage)


class BulkDeleteResult:
    """Outcome of deleting many users: who went, and why the others stayed."""

    def __init__(self):
        self.deleted = []
        self.failed = {}

    @property
    def count(self):
        return len(self.deleted)

    def to_dict(self):
        return {"count": self.count, "deleted": list(self.deleted), "failed": dict(self.failed)}


def is_admin_username(username):
    return (username or "").lower() == ADMIN_USERNAME


class AccountService:
    """Accounts, login sessions and user administration."""

    def __init__(self, session):
        self.session = session

    # --- accounts ---

    @reads
    def user_exists(self, username):
        return self.session.query(User.id).filter_by(username=username).first() is not None

    @reads
    def get_user(self, username):
        user = self.session.query(User).filter_by(username=username).first()
        if user is None:
            raise NotFoundError("User %s not found." % username)
        return user

    @staticmethod
    def validate_signup(username, password, confirm_password):
        if not (username or "").strip() or not password or not confirm_password:
            raise ValidationError("Please fill in all fields.")
        if password != confirm_password:
            raise ValidationError("Passwords do not match.")

    def register(self, username, password, email=None, role=ROLE_CUSTOMER):
        if not username or not password:
            raise ValidationError("Username and password are required!")
        if role not in ROLES:
            raise ValidationError("Unknown role %r." % (role,))
        try:
            with transaction(self.session):
                user = User(username=username, password=generate_password_hash(password),
                            email=email or None, role=role)
                self.session.add(user)
        except StoreError as exc:
            # The unique index on username is the only check; no lookup beforehand
            if isinstance(exc.__cause__, IntegrityError):
                raise UsernameTaken(username) from exc
            raise
        log.info("Registered %s account %s", role, username)
        return user

    @reads
    def authenticate(self, username, password):
        """Check the credentials and open a new session for the user."""
        user = self.session.query(User).filter_by(username=username).first()
        if user is None or not check_password_hash(user.password, password or ""):
            log.warning("Failed login for %r", username)
            raise InvalidCredentials()
        self.start_session(user.username)
        return user

    def validate_login(self, username, password):
        return self.authenticate(username, password).role

    def change_password(self, username, old_password, new_password):
        if not new_password:
            raise ValidationError("New password is required.")
        with transaction(self.session):
            user = self.get_user(username)
            if not check_password_hash(user.password, old_password or ""):
                raise InvalidCredentials("Current password is incorrect.")
            user.password = generate_password_hash(new_password)

    # --- sessions ---

    def start_session(self, username):
        with transaction(self.session):
            (self.session.query(UserSession)
             .filter_by(username=username, is_active=True)
             .update({UserSession.is_active: False}, synchronize_session=False))
            user_session = UserSession(username=username, login_time=datetime.utcnow(), is_active=True)
            self.session.add(user_session)
        log.info("%s logged in", username)
        return user_session

    def end_session(self, username):
        with transaction(self.session):
            closed = (self.session.query(UserSession)
                      .filter_by(username=username, is_active=True)
                      .update({UserSession.logout_time: datetime.utcnow(), UserSession.is_active: False},
                              synchronize_session=False))
        log.info("%s logged out", username)
        return closed

    @reads
    def active_user_count(self):
        return (self.session.query(func.count(func.distinct(UserSession.username)))
                .filter(UserSession.is_active.is_(True))
                .scalar())

    @reads
    def list_active_users(self):
        rows = (self.session.query(UserSession.username, User.role, UserSession.login_time)
                .join(User, User.username == UserSession.username)
                .filter(UserSession.is_active.is_(True))
                .order_by(UserSession.login_time.desc())
                .all())
        return [{"username": username, "role": role, "login_time": login_time}
                for username, role, login_time in rows]

    @reads
    def list_users_with_session_status(self):
        sessions = (self.session.query(
                        UserSession.username.label("username"),
                        func.max(case((UserSession.is_active.is_(True), 1), else_=0)).label("online"),
                        func.max(UserSession.login_time).label("last_login"),
                        func.max(UserSession.logout_time).label("last_logout"))
                    .group_by(UserSession.username)
                    .subquery())
        rows = (self.session.query(User, sessions.c.online, sessions.c.last_login, sessions.c.last_logout)
                .outerjoin(sessions, sessions.c.username == User.username)
                .order_by(User.username)
                .all())
        return [{
            "id": user.id,
            "username": user.username,
            "password": user.password,
            "role": user.role,
            "status": "Online" if online else "Offline",
            "last_login": last_login,
            "last_logout": last_logout,
        } for user, online, last_login, last_logout in rows]

    # --- administration ---

    def _delete_owned_records(self, username):
        for model in OWNED_RECORDS:
            self.session.query(model).filter_by(username=username).delete(synchronize_session=False)

    def delete_user(self, user_id, username):
        if is_admin_username(username):
            log.warning("Refused to delete admin account %r", username)
            raise CannotDeleteAdmin()
        with transaction(self.session):
            user = self.session.get(User, user_id)
            if user is None or user.username != username:
                raise NotFoundError("User %s (%s) not found." % (user_id, username))
            self._delete_owned_records(username)
            self.session.delete(user)
        log.info("Deleted user %s and everything it owned", username)

    @reads
    def bulk_delete_all_except_admin(self):
        result = BulkDeleteResult()
        usernames = [username for (username,) in
                     self.session.query(User.username)
                     .filter(func.lower(User.username) != ADMIN_USERNAME)
                     .order_by(User.username)
                     .all()]
        for username in usernames:
            try:
                with transaction(self.session):
                    self._delete_owned_records(username)
                    self.session.query(User).filter_by(username=username).delete(synchronize_session=False)
            except StoreError as exc:
                log.exception("Could not delete user %s", username)
                result.failed[username] = exc.message
            else:
                result.deleted.append(username)
        log.info("Bulk delete removed %d user(s), %d failed", result.count, len(result.failed))
        return result
