"""Custom exceptions for the journal application."""


class JournalException(Exception):
    """Base class for journal exceptions with HTTP status code.

    All custom exceptions inherit from this class and define their
    status_code and error code for consistent HTTP response handling.
    """
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "Journal error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class AuthenticationError(JournalException):
    """Raised when the caller identity is missing.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401
    error_code = "unauthenticated"

    def __init__(self, detail: str = "Missing or invalid user identity"):
        self.detail = detail
        super().__init__(detail)


class UserNotFoundError(JournalException):
    """Raised when an authenticated identity has no ledger entry.

    Maps to HTTP 404 Not Found.
    """
    status_code = 404
    error_code = "user_not_found"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class EntitlementError(JournalException):
    """Raised when the user's tier does not include a feature.

    Never retried. Maps to HTTP 403 Forbidden with an upgrade call to action.
    """
    status_code = 403
    error_code = "feature_not_entitled"

    def __init__(self, feature: str, tier: str, required_tier: str | None = None):
        self.feature = feature
        self.tier = tier
        self.required_tier = required_tier
        super().__init__(
            f"Feature '{feature}' is not included in the '{tier}' subscription."
        )

    def to_response(self) -> dict:
        response = {
            "error": self.error_code,
            "message": self.message,
            "feature": self.feature,
            "tier": self.tier,
            "actions": [
                {
                    "type": "upgrade",
                    "title": "Upgrade your subscription",
                    "url": "/subscription",
                }
            ],
        }
        if self.required_tier:
            response["required_tier"] = self.required_tier
        return response


class QuotaExhaustedError(JournalException):
    """Raised when a user has no AI credits left.

    Never retried. Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429
    error_code = "credits_exhausted"

    def __init__(self, remaining: int = 0, total: int = 0, detail: str | None = None):
        self.remaining = remaining
        self.total = total
        message = detail or (
            f"No AI credits remaining ({remaining}/{total}). "
            "Credits renew with the next billing period."
        )
        super().__init__(message)

    def to_response(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "creditsRemaining": self.remaining,
            "creditsTotal": self.total,
        }


class UpstreamGenerationError(JournalException):
    """Raised when every generation attempt failed or the last one was empty.

    Maps to HTTP 502 Bad Gateway.
    """
    status_code = 502
    error_code = "generation_failed"

    def __init__(self, message: str, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message)

    def to_response(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "attempts": self.attempts,
        }


class ProviderResponseError(Exception):
    """Raised by inference providers when a response body is malformed."""


class IncompleteResultWarning(UserWarning):
    """Category for generations delivered with an appended advisory notice.

    Not raised to callers: the generation result carries incomplete=True.
    """


class ReconciliationValidationError(JournalException):
    """Raised when a payment-provider event cannot be applied.

    The event is aborted and the provider is expected to retry delivery.
    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error_code = "invalid_webhook_payload"

    def __init__(self, event_type: str, detail: str, field: str | None = None):
        self.event_type = event_type
        self.field = field
        super().__init__(f"{event_type}: {detail}")

    def to_response(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "event_type": self.event_type,
            "field": self.field,
        }
