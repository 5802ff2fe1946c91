import logging

from errors import NotFoundError, ValidationError
from models import (Application, User, ADMIN_USERNAME, APPLICATION_STATUSES,
                    STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)
from store import reads, transaction

log = logging.getLogger(__name__)


class ApplicationService:
    """Job applications and the notifications they trigger.

    The job title and company are copied onto the application when it is
    submitted. Editing or deleting the job later leaves the application as it was.
    """

    def __init__(self, session, notifications):
        self.session = session
        self.notifications = notifications

    @reads
    def submit_application(self, username, job_title, company, applicant_name, email, phone, cover_letter):
        if not username or not job_title:
            raise ValidationError("An application needs a username and a job title.")
        if self.session.query(User.id).filter_by(username=username).first() is None:
            raise NotFoundError("User %s not found." % username)
        with transaction(self.session):
            application = Application(
                username=username, job_title=job_title, company=company,
                applicant_name=applicant_name, email=email, phone=phone,
                cover_letter=cover_letter, status=STATUS_PENDING,
            )
            self.session.add(application)
            # Flush first so a failed insert never leaves the admin notification behind
            self.session.flush()
            self.notifications.add(
                ADMIN_USERNAME, job_title,
                "New application from %s (%s) for job: %s" % (applicant_name, username, job_title),
                STATUS_PENDING,
            )
        log.info("Application %s submitted by %s for %r", application.id, username, job_title)
        return application.id

    @reads
    def get_application(self, app_id):
        application = self.session.get(Application, app_id)
        if application is None:
            raise NotFoundError("Application %s not found." % app_id)
        return application

    def _newest_first(self):
        return self.session.query(Application).order_by(Application.applied_at.desc(), Application.id.desc())

    @reads
    def list_all_applications(self):
        return [a.to_dict() for a in self._newest_first().all()]

    @reads
    def list_applications_for_user(self, username):
        rows = self._newest_first().filter(Application.username == username).all()
        return [a.to_dict(Application.summary_fields) for a in rows]

    @reads
    def pending_count(self):
        return self.session.query(Application).filter_by(status=STATUS_PENDING).count()

    def set_application_status(self, app_id, status):
        # Any known status may replace any other; there is no transition graph
        _check_status(status)
        with transaction(self.session):
            application = self.get_application(app_id)
            application.status = status
        return application

    def update_status_and_notify(self, app_id, status):
        """Set the status and tell the applicant, in one transaction."""
        _check_status(status)
        with transaction(self.session):
            application = self.get_application(app_id)
            application.status = status
            self.notifications.add(
                application.username, application.job_title,
                "Your application for '%s' has been %s." % (application.job_title, status.lower()),
                status,
            )
        log.info("Application %s marked %s", app_id, status)
        return application

    def approve_application(self, app_id):
        return self.update_status_and_notify(app_id, STATUS_APPROVED)

    def reject_application(self, app_id):
        return self.update_status_and_notify(app_id, STATUS_REJECTED)


def _check_status(status):
    if status not in APPLICATION_STATUSES:
        raise ValidationError("Unknown application status %r." % (status,))
