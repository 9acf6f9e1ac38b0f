"""Async Python client for the GitLab REST API."""

from .client import DEFAULT_GITLAB_URL, GitLabClient
from .errors import (
    ForbiddenError,
    GitLabApiError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UnauthorizedError,
)

__all__ = [
    "DEFAULT_GITLAB_URL",
    "ForbiddenError",
    "GitLabApiError",
    "GitLabClient",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "UnauthorizedError",
]
