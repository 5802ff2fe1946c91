from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from datetime import datetime

db = SQLAlchemy()

ROLE_ADMIN = "Admin"
ROLE_CUSTOMER = "Customer"
ROLES = (ROLE_ADMIN, ROLE_CUSTOMER)

STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"
APPLICATION_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

STATUS_NEW = "New"
STATUS_RESOLVED = "Resolved"

# Notifications addressed to the administrator use this literal username
ADMIN_USERNAME = "admin"


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    return value


class SerializerMixin:
    serialize_fields = ()

    def to_dict(self, only=None):
        return {name: _jsonable(getattr(self, name)) for name in (only or self.serialize_fields)}


class User(db.Model, UserMixin, SerializerMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False) # werkzeug hash
    email = db.Column(db.String(255))
    role = db.Column(db.String(50), nullable=False, default=ROLE_CUSTOMER)

    serialize_fields = ("id", "username", "email", "role")

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN


class UserSession(db.Model, SerializerMixin):
    __tablename__ = "user_sessions"
    # At most one active row per username
    __table_args__ = (
        db.Index(
            "uq_user_sessions_active",
            "username",
            unique=True,
            sqlite_where=db.text("is_active = 1"),
            postgresql_where=db.text("is_active"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    login_time = db.Column(db.DateTime, default=datetime.utcnow)
    logout_time = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    serialize_fields = ("id", "username", "login_time", "logout_time", "is_active")


class Job(db.Model, SerializerMixin):
    __tablename__ = "jobs"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    company = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    salary = db.Column(db.String(100), nullable=False) # free text, e.g. "80,000 PHP"
    description = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    serialize_fields = ("id", "title", "company", "location", "salary", "description", "created_at")


class Application(db.Model, SerializerMixin):
    __tablename__ = "applications"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)

    # Snapshot of the job at submission time, not a foreign key
    job_title = db.Column(db.String(255), nullable=False)
    company = db.Column(db.String(255))

    applicant_name = db.Column(db.String(255))
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    cover_letter = db.Column(db.Text)
    status = db.Column(db.String(50), nullable=False, default=STATUS_PENDING)
    applied_at = db.Column(db.DateTime, default=datetime.utcnow)

    serialize_fields = (
        "id", "username", "job_title", "company", "applicant_name",
        "email", "phone", "cover_letter", "status", "applied_at",
    )
    summary_fields = ("id", "job_title", "company", "applicant_name", "email", "status", "applied_at")


class Notification(db.Model, SerializerMixin):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    job_title = db.Column(db.String(255), nullable=False) # also used as a general subject
    message = db.Column(db.Text)
    status = db.Column(db.String(50))
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    serialize_fields = ("id", "job_title", "message", "status", "is_read", "created_at")
    unread_fields = ("id", "job_title", "message", "status", "created_at")


class Resume(db.Model, SerializerMixin):
    __tablename__ = "resumes"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(255))
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    address = db.Column(db.Text)
    education = db.Column(db.Text)
    experience = db.Column(db.Text)
    skills = db.Column(db.Text)
    summary = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    serialize_fields = (
        "username", "full_name", "email", "phone", "address",
        "education", "experience", "skills", "summary", "updated_at",
    )

    @property
    def is_filled(self):
        return bool((self.full_name or "").strip() and (self.email or "").strip())


class ContactMessage(db.Model, SerializerMixin):
    __tablename__ = "contact_messages"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    subject = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    status = db.Column(db.String(50), nullable=False, default=STATUS_NEW)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    admin_response = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    serialize_fields = (
        "id", "username", "subject", "message", "email", "phone",
        "status", "is_read", "admin_response", "created_at",
    )
    summary_fields = ("id", "subject", "message", "status", "admin_response", "created_at")
