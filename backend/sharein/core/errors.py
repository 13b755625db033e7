class ServiceError(Exception):
    """Base for failures that map onto an HTTP error body."""

    status_code = 500
    code = "server_error"
    message = "Server error"

    def __init__(self, message: str | None = None, *, headers: dict[str, str] | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.headers = headers


class BadRequest(ServiceError):
    status_code = 400
    code = "bad_request"
    message = "Bad request"


class PayloadTooLarge(BadRequest):
    status_code = 413
    code = "payload_too_large"
    message = "File too large"


class Unauthorized(ServiceError):
    status_code = 401
    code = "unauthorized"
    message = "No token, authorization denied"


class InvalidToken(Unauthorized):
    code = "invalid_token"
    message = "Token is not valid"


class InvalidCredentials(Unauthorized):
    code = "invalid_credentials"
    message = "Invalid credentials"


class Forbidden(ServiceError):
    status_code = 403
    code = "forbidden"
    message = "Access denied"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class Conflict(ServiceError):
    status_code = 409
    code = "conflict"
    message = "User already exists"


class AdapterError(ServiceError):
    """An object store or mail call failed; retryable failures answer 503."""

    status_code = 502

    def __init__(self, message: str | None = None, *, retryable: bool = False):
        super().__init__(message, headers={"Retry-After": "30"} if retryable else None)
        self.retryable = retryable
        if retryable:
            self.status_code = 503


class UploadFailed(AdapterError):
    code = "upload_failed"
    message = "Server error during file upload"


class DeleteFailed(AdapterError):
    code = "delete_failed"
    message = "Server error while deleting file"


class MailDeliveryFailed(AdapterError):
    code = "mail_delivery_failed"
    message = "Server error while sending email"


class ServerError(ServiceError):
    pass
