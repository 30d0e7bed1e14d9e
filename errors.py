"""
Service errors

Each error carries the HTTP status it maps to and a message that is safe to
show to the client. Internal detail belongs in the server log, not here.
"""

from typing import Optional


class ServiceError(Exception):
    status_code = 500
    default_message = "Server error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request data."


class AuthError(ServiceError):
    status_code = 401
    default_message = "Invalid username or password."


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found."


class ConflictError(ServiceError):
    status_code = 409
    default_message = "Already exists."


class InternalError(ServiceError):
    pass
