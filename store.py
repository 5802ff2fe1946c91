import logging
from contextlib import contextmanager
from functools import wraps

import click
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash

from errors import StoreError
from models import db, User, Job, ROLE_ADMIN

log = logging.getLogger(__name__)

SAMPLE_JOBS = [
    ("Software Engineer", "Tech Corp", "Manila", "80,000 PHP", "Develop and maintain software applications"),
    ("Data Analyst", "Data Inc", "Makati", "60,000 PHP", "Analyze business data and create reports"),
    ("Project Manager", "Global Solutions", "BGC", "100,000 PHP", "Lead and manage project teams"),
    ("UI/UX Designer", "Creative Agency", "Cebu", "55,000 PHP", "Design user interfaces and experiences"),
    ("Network Administrator", "IT Services", "Quezon City", "50,000 PHP", "Manage and maintain network infrastructure"),
]


@contextmanager
def transaction(session):
    """Commit the work done inside the block, or roll all of it back.

    Database failures surface as StoreError; any other exception raised in the
    block (the service errors in particular) is re-raised unchanged.
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise _store_error(exc) from exc
    except Exception:
        session.rollback()
        raise


def reads(method):
    """Report query failures of a service method as StoreError.

    The wrapped method belongs to a service holding its session as `self.session`.
    """
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise _store_error(exc) from exc
    return wrapper


def _store_error(exc):
    return StoreError(str(getattr(exc, "orig", None) or exc))


def is_connected(session):
    try:
        session.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        session.rollback()
        return False


def ensure_admin(session, username, password):
    """Insert the seed administrator unless the username is already taken."""
    with transaction(session):
        admin = session.query(User).filter_by(username=username).first()
        if admin is not None:
            return False
        session.add(User(username=username, password=generate_password_hash(password), role=ROLE_ADMIN))
    log.info("Created default admin account %r", username)
    return True


def seed_sample_jobs(session):
    with transaction(session):
        if session.query(Job).count():
            return 0
        for title, company, location, salary, description in SAMPLE_JOBS:
            session.add(Job(title=title, company=company, location=location,
                            salary=salary, description=description))
    log.info("Added %d sample jobs", len(SAMPLE_JOBS))
    return len(SAMPLE_JOBS)


def init_store(app):
    db.init_app(app)
    with app.app_context():
        db.create_all()
        ensure_admin(db.session, app.config["ADMIN_USERNAME"], app.config["ADMIN_PASSWORD"])
        if app.config.get("SEED_SAMPLE_JOBS"):
            seed_sample_jobs(db.session)

    @app.cli.command("init-db")
    def init_db_command():
        """Create the tables and the default admin account."""
        db.create_all()
        ensure_admin(db.session, app.config["ADMIN_USERNAME"], app.config["ADMIN_PASSWORD"])
        click.echo("Database tables created/verified")

    @app.cli.command("seed-jobs")
    def seed_jobs_command():
        """Add the sample jobs to an empty jobs table."""
        click.echo("Added %d sample jobs" % seed_sample_jobs(db.session))
