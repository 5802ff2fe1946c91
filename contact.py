import logging

from errors import NotFoundError, ValidationError
from models import ContactMessage, ADMIN_USERNAME, STATUS_NEW, STATUS_RESOLVED
from store import reads, transaction

log = logging.getLogger(__name__)

CONTACT_SUBJECT = "Contact Us"


class ContactService:
    """Support inbox. Customers write in, the admin answers."""

    def __init__(self, session, notifications):
        self.session = session
        self.notifications = notifications

    def submit(self, username, subject, message, email=None, phone=None):
        if not username or not (subject or "").strip() or not (message or "").strip():
            raise ValidationError("Subject and message are required.")
        with transaction(self.session):
            contact = ContactMessage(username=username, subject=subject, message=message,
                                     email=email, phone=phone, status=STATUS_NEW, is_read=False)
            self.session.add(contact)
            self.session.flush()
            self.notifications.add(
                ADMIN_USERNAME, CONTACT_SUBJECT,
                "New contact message from %s: %s" % (username, subject),
                STATUS_NEW,
            )
        return contact.id

    def _newest_first(self):
        return self.session.query(ContactMessage).order_by(ContactMessage.created_at.desc(),
                                                           ContactMessage.id.desc())

    @reads
    def list_all(self):
        return [m.to_dict() for m in self._newest_first().all()]

    @reads
    def list_for_user(self, username):
        rows = self._newest_first().filter(ContactMessage.username == username).all()
        return [m.to_dict(ContactMessage.summary_fields) for m in rows]

    @reads
    def unread_count(self):
        return self.session.query(ContactMessage).filter_by(is_read=False).count()

    def _get(self, message_id):
        contact = self.session.get(ContactMessage, message_id)
        if contact is None:
            raise NotFoundError("Contact message %s not found." % message_id)
        return contact

    def mark_read(self, message_id):
        with transaction(self.session):
            self._get(message_id).is_read = True

    def respond(self, message_id, status, admin_response):
        # New is only ever the initial status
        if status != STATUS_RESOLVED:
            raise ValidationError("A response can only set the status to %s, not %r." % (STATUS_RESOLVED, status))
        with transaction(self.session):
            contact = self._get(message_id)
            contact.status = status
            contact.admin_response = admin_response
            contact.is_read = True
            # A blank response only closes the message
            if admin_response and admin_response.strip():
                self.notifications.add(
                    contact.username, CONTACT_SUBJECT,
                    "Admin responded to your contact message: %s" % contact.subject,
                    status,
                )
        log.info("Contact message %s set to %s", message_id, status)
        return contact
