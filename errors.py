class JobBoardError(Exception):
    """Base class for failures reported back to the caller of a service."""

    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(JobBoardError):
    status_code = 400


class InvalidCredentials(JobBoardError):
    status_code = 401

    def __init__(self, message="Invalid username or password."):
        super().__init__(message)


class NotFoundError(JobBoardError):
    status_code = 404


class ConflictError(JobBoardError):
    status_code = 409


class UsernameTaken(ConflictError):
    def __init__(self, username):
        super().__init__("Username already exists!")
        self.username = username


class CannotDeleteAdmin(ConflictError):
    def __init__(self, message="Cannot delete the admin user."):
        super().__init__(message)


class StoreError(JobBoardError):
    """The database could not complete the statement."""

    status_code = 500
