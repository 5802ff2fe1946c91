import logging

from errors import NotFoundError, ValidationError
from models import Notification
from store import reads, transaction

log = logging.getLogger(__name__)


class NotificationService:
    """Per-user message log with read/unread state."""

    def __init__(self, session):
        self.session = session

    def add(self, username, job_title, message, status):
        """Stage a notification in the current transaction without committing."""
        if not username:
            raise ValidationError("Notification needs a recipient.")
        notification = Notification(username=username, job_title=job_title or "",
                                    message=message, status=status)
        self.session.add(notification)
        return notification

    def create(self, username, job_title, message, status):
        with transaction(self.session):
            notification = self.add(username, job_title, message, status)
        return notification.id

    def _for_user(self, username):
        return (self.session.query(Notification)
                .filter_by(username=username)
                .order_by(Notification.created_at.desc(), Notification.id.desc()))

    @reads
    def unread_count(self, username):
        return self.session.query(Notification).filter_by(username=username, is_read=False).count()

    @reads
    def list_unread(self, username):
        rows = self._for_user(username).filter(Notification.is_read.is_(False)).all()
        return [n.to_dict(Notification.unread_fields) for n in rows]

    @reads
    def list_all(self, username):
        return [n.to_dict() for n in self._for_user(username).all()]

    def mark_read(self, notification_id, username):
        """Mark one of `username`'s notifications read; other users' rows are not found."""
        with transaction(self.session):
            notification = (self.session.query(Notification)
                            .filter_by(id=notification_id, username=username)
                            .first())
            if notification is None:
                raise NotFoundError("Notification %s not found." % notification_id)
            notification.is_read = True

    def mark_all_read(self, username):
        with transaction(self.session):
            updated = (self.session.query(Notification)
                       .filter_by(username=username)
                       .update({Notification.is_read: True}, synchronize_session=False))
        log.debug("Marked %d notifications read for %s", updated, username)
        return updated
