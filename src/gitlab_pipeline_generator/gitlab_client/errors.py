"""Custom exceptions for the GitLab API client."""

from __future__ import annotations


class GitLabApiError(Exception):
    """Base error for GitLab HTTP failures.

    Attributes:
        status_code: The HTTP status code returned by the server.
        message: A human-readable error description.
        error_code: GitLab ``error`` field (e.g. ``invalid_token``), if any.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.error_code = error_code
        super().__init__(f"HTTP {status_code}: {message}")


class UnauthorizedError(GitLabApiError):
    """Raised when the server returns a 401 Unauthorized response."""

    def __init__(self, message: str = "Unauthorized", error_code: str | None = None) -> None:
        super().__init__(status_code=401, message=message, error_code=error_code)


class ForbiddenError(GitLabApiError):
    """Raised when the server returns a 403 Forbidden response."""

    def __init__(self, message: str = "Forbidden", error_code: str | None = None) -> None:
        super().__init__(status_code=403, message=message, error_code=error_code)


class NotFoundError(GitLabApiError):
    """Raised when the server returns a 404 Not Found response."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(status_code=404, message=message)


class RateLimitedError(GitLabApiError):
    """Raised when the server returns a 429 Too Many Requests response.

    Attributes:
        headers: Response headers, kept for rate limit inspection.
    """

    def __init__(
        self,
        message: str = "Too many requests",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.headers = dict(headers or {})
        super().__init__(status_code=429, message=message)


class ServerError(GitLabApiError):
    """Raised when the server returns a 5xx response."""

    def __init__(self, status_code: int = 500, message: str = "Server error") -> None:
        super().__init__(status_code=status_code, message=message)
