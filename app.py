from functools import wraps

from flask import Flask, jsonify, request, current_app
from flask_login import LoginManager, login_user, logout_user, login_required, current_user

from accounts import AccountService
from applications import ApplicationService
from config import Config
from contact import ContactService
from errors import JobBoardError, ValidationError
from jobs import JobService
from models import db, User
from notifications import NotificationService
from resumes import ResumeService
from store import init_store

login_manager = LoginManager()


class Services:
    """The service objects of one app, all sharing the app's database session."""

    def __init__(self, session):
        self.notifications = NotificationService(session)
        self.accounts = AccountService(session)
        self.jobs = JobService(session)
        self.applications = ApplicationService(session, self.notifications)
        self.resumes = ResumeService(session)
        self.contact = ContactService(session, self.notifications)


def services():
    return current_app.extensions["jobboard"]


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Login required."}), 401


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({"error": "Access Denied."}), 403
        return view(*args, **kwargs)
    return wrapper


def form_data():
    return request.get_json(silent=True) or request.form


def create_app(config_object=Config, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)

    init_store(app)
    login_manager.init_app(app)
    app.extensions["jobboard"] = Services(db.session)

    @app.errorhandler(JobBoardError)
    def handle_job_board_error(error):
        if error.status_code >= 500:
            app.logger.error("%s: %s", error.__class__.__name__, error.message)
        return jsonify({"error": error.message}), error.status_code

    register_routes(app)
    return app


def register_routes(app):

    # --- 1. AUTHENTICATION ---
    @app.route("/register", methods=["POST"])
    def register():
        data = form_data()
        username = (data.get("username") or "").strip()
        password = data.get("password")
        AccountService.validate_signup(username, password, data.get("confirm_password", password))
        user = services().accounts.register(username, password, data.get("email"))
        return jsonify({"message": "Account created! Please sign in.", "user": user.to_dict()}), 201

    @app.route("/login", methods=["POST"])
    def login():
        data = form_data()
        user = services().accounts.authenticate(data.get("username"), data.get("password"))
        login_user(user)
        return jsonify({"message": "Login successful!", "role": user.role})

    @app.route("/logout", methods=["POST"])
    @login_required
    def logout():
        services().accounts.end_session(current_user.username)
        logout_user()
        return jsonify({"message": "Logged out."})

    # --- 2. JOBS ---
    @app.route("/jobs")
    def list_jobs():
        return jsonify(services().jobs.list_jobs())

    @app.route("/jobs", methods=["POST"])
    @admin_required
    def create_job():
        data = form_data()
        job_id = services().jobs.create_job(data.get("title"), data.get("company"), data.get("location"),
                                            data.get("salary"), data.get("description"))
        return jsonify({"message": "Job posted!", "id": job_id}), 201

    @app.route("/jobs/<int:job_id>", methods=["PUT"])
    @admin_required
    def update_job(job_id):
        data = form_data()
        job = services().jobs.update_job(job_id, data.get("title"), data.get("company"), data.get("location"),
                                         data.get("salary"), data.get("description"))
        return jsonify(job.to_dict())

    @app.route("/jobs/<int:job_id>", methods=["DELETE"])
    @admin_required
    def delete_job(job_id):
        services().jobs.delete_job(job_id)
        return jsonify({"message": "Job deleted."})

    # --- 3. APPLICATIONS ---
    @app.route("/jobs/<int:job_id>/apply", methods=["POST"])
    @login_required
    def apply_job(job_id):
        data = form_data()
        job = services().jobs.get_job(job_id)
        app_id = services().applications.submit_application(
            current_user.username, job.title, job.company,
            data.get("applicant_name"), data.get("email"), data.get("phone", ""), data.get("cover_letter", ""),
        )
        return jsonify({"message": "Application submitted successfully!", "id": app_id}), 201

    @app.route("/applications")
    @login_required
    def list_applications():
        if current_user.is_admin:
            return jsonify(services().applications.list_all_applications())
        return jsonify(services().applications.list_applications_for_user(current_user.username))

    @app.route("/applications/<int:app_id>/status", methods=["POST"])
    @admin_required
    def set_application_status(app_id):
        status = form_data().get("status")
        application = services().applications.update_status_and_notify(app_id, status)
        return jsonify(application.to_dict())

    # --- 4. NOTIFICATIONS ---
    @app.route("/notifications")
    @login_required
    def list_notifications():
        notifications = services().notifications
        if request.args.get("unread"):
            return jsonify(notifications.list_unread(current_user.username))
        return jsonify({
            "unread": notifications.unread_count(current_user.username),
            "notifications": notifications.list_all(current_user.username),
        })

    @app.route("/notifications/<int:notification_id>/read", methods=["POST"])
    @login_required
    def mark_notification_read(notification_id):
        services().notifications.mark_read(notification_id, current_user.username)
        return jsonify({"message": "Marked as read."})

    @app.route("/notifications/read-all", methods=["POST"])
    @login_required
    def mark_all_notifications_read():
        services().notifications.mark_all_read(current_user.username)
        return jsonify({"message": "All notifications marked as read."})

    # --- 5. RESUME ---
    @app.route("/resume")
    @login_required
    def get_resume():
        resume = services().resumes.get(current_user.username)
        return jsonify({"resume": resume.to_dict() if resume else None,
                        "filled": bool(resume and resume.is_filled)})

    @app.route("/resume", methods=["PUT"])
    @login_required
    def save_resume():
        data = form_data()
        resume = services().resumes.upsert(
            current_user.username, data.get("full_name", ""), data.get("email", ""), data.get("phone", ""),
            data.get("address", ""), data.get("education", ""), data.get("experience", ""),
            data.get("skills", ""), data.get("summary", ""),
        )
        return jsonify({"resume": resume.to_dict(), "filled": resume.is_filled})

    # --- 6. CONTACT ---
    @app.route("/contact", methods=["POST"])
    @login_required
    def submit_contact():
        data = form_data()
        message_id = services().contact.submit(current_user.username, data.get("subject"), data.get("message"),
                                               data.get("email"), data.get("phone"))
        return jsonify({"message": "Message sent.", "id": message_id}), 201

    @app.route("/contact")
    @login_required
    def list_contact():
        contact = services().contact
        if current_user.is_admin:
            return jsonify({"unread": contact.unread_count(), "messages": contact.list_all()})
        return jsonify({"messages": contact.list_for_user(current_user.username)})

    @app.route("/contact/<int:message_id>/respond", methods=["POST"])
    @admin_required
    def respond_contact(message_id):
        data = form_data()
        message = services().contact.respond(message_id, data.get("status", "Resolved"), data.get("response", ""))
        return jsonify(message.to_dict())

    # --- 7. ADMIN ---
    @app.route("/admin/users")
    @admin_required
    def admin_users():
        accounts = services().accounts
        return jsonify({"active": accounts.active_user_count(),
                        "users": accounts.list_users_with_session_status()})

    @app.route("/admin/users/<int:user_id>", methods=["DELETE"])
    @admin_required
    def delete_user(user_id):
        username = request.args.get("username")
        if not username:
            raise ValidationError("username is required.")
        services().accounts.delete_user(user_id, username)
        return jsonify({"message": "User '%s' has been deleted successfully." % username})

    @app.route("/admin/users", methods=["DELETE"])
    @admin_required
    def delete_all_users():
        return jsonify(services().accounts.bulk_delete_all_except_admin().to_dict())


if __name__ == "__main__":
    create_app().run(debug=True)
