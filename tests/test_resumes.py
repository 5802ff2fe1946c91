import pytest

from errors import ValidationError
from models import Resume


def _save(services, full_name="", email=""):
    return services.resumes.upsert("alice", full_name, email, "", "Manila", "BS CS", "", "Python", "")


def test_missing_resume(services):
    assert services.resumes.exists("alice") is False
    assert services.resumes.get("alice") is None
    assert services.resumes.is_filled("alice") is False


def test_upsert_then_fill(services):
    _save(services)
    assert services.resumes.exists("alice")
    assert services.resumes.is_filled("alice") is False

    _save(services, "Alice A", "a@x.com")
    assert services.resumes.is_filled("alice") is True
    assert Resume.query.filter_by(username="alice").count() == 1


def test_upsert_updates_in_place(services):
    first = _save(services, "Alice A", "a@x.com")
    first_id, first_updated = first.id, first.updated_at

    second = _save(services, "Alice B", "b@x.com")
    assert second.id == first_id
    assert second.updated_at >= first_updated
    resume = services.resumes.get("alice")
    assert (resume.full_name, resume.email, resume.skills) == ("Alice B", "b@x.com", "Python")


def test_whitespace_name_is_not_filled(services):
    _save(services, "   ", "a@x.com")
    assert services.resumes.is_filled("alice") is False


def test_upsert_needs_username(services):
    with pytest.raises(ValidationError):
        services.resumes.upsert("", "A", "a@x.com", "", "", "", "", "", "")
