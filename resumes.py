from datetime import datetime

from sqlalchemy.exc import IntegrityError

from errors import StoreError, ValidationError
from models import Resume
from store import reads, transaction

RESUME_FIELDS = ("full_name", "email", "phone", "address", "education", "experience", "skills", "summary")


class ResumeService:
    """One resume per username, saved with an insert-or-update."""

    def __init__(self, session):
        self.session = session

    @reads
    def exists(self, username):
        return self.session.query(Resume.id).filter_by(username=username).first() is not None

    @reads
    def get(self, username):
        return self.session.query(Resume).filter_by(username=username).first()

    @reads
    def is_filled(self, username):
        resume = self.get(username)
        return resume is not None and resume.is_filled

    def upsert(self, username, full_name, email, phone, address, education, experience, skills, summary):
        if not username:
            raise ValidationError("A resume needs a username.")
        values = dict(zip(RESUME_FIELDS, (full_name, email, phone, address, education, experience, skills, summary)))
        try:
            return self._save(username, values)
        except StoreError as exc:
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            # Lost the race for the first insert; the row exists now
            return self._save(username, values)

    def _save(self, username, values):
        with transaction(self.session):
            resume = self.get(username)
            if resume is None:
                resume = Resume(username=username)
                self.session.add(resume)
            for name, value in values.items():
                setattr(resume, name, value)
            resume.updated_at = datetime.utcnow()
        return resume
