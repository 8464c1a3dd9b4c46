"""Failures surfaced to the caller as a single human-readable message."""


class LookupFailure(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(LookupFailure):
    """A required API key is not stored. Raised before any network call."""


class ValidationError(LookupFailure):
    """Caller input that cannot be acted on (blank name, no candidates, blank keys)."""


class EmptyResultError(LookupFailure):
    """The demographic API answered but returned no candidates."""


class UpstreamError(LookupFailure):
    """A remote API answered with a non-success status or could not be reached.

    ``status_code`` is 0 when the request never got a response.
    """

    def __init__(self, service: str, status_code: int, detail: str):
        super().__init__(f"{service} API error {status_code}: {detail}")
        self.service = service
        self.status_code = status_code
        self.detail = detail
