"""Async HTTP client for the GitLab REST API (v4)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from .errors import (
    ForbiddenError,
    GitLabApiError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UnauthorizedError,
)

DEFAULT_GITLAB_URL = "https://gitlab.com"


class GitLabClient:
    """Async client wrapping the subset of the GitLab API used for analysis.

    Usage::

        async with GitLabClient(token="glpat-...") as client:
            user = await client.get_current_user()
            project = await client.get_project("group/app")

    Args:
        base_url: Base URL of the GitLab instance.
        token: Personal access token sent as ``PRIVATE-TOKEN``.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_GITLAB_URL,
        token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {"PRIVATE-TOKEN": token} if token else {}
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api/v4",
            headers=headers,
            timeout=timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> GitLabClient:
        """Enter the async context manager.

        Returns:
            The client instance.
        """
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit the async context manager, closing the underlying HTTP client."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> Any:
        """Send an HTTP request and return the parsed JSON response.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: URL path relative to ``/api/v4``.
            **kwargs: Extra keyword arguments forwarded to ``httpx.AsyncClient.request``.

        Returns:
            Parsed JSON response.

        Raises:
            UnauthorizedError: If the server responds with 401.
            ForbiddenError: If the server responds with 403.
            NotFoundError: If the server responds with 404.
            RateLimitedError: If the server responds with 429.
            ServerError: If the server responds with a 5xx status code.
            GitLabApiError: For any other non-2xx status code.
            httpx.TransportError: On connection, DNS or timeout failures.
        """
        response = await self._client.request(method, path, **kwargs)
        status = response.status_code

        if status < 400:
            return response.json()

        detail, error_code = self._extract_detail(response)
        if status == 401:
            raise UnauthorizedError(message=detail, error_code=error_code)
        if status == 403:
            raise ForbiddenError(message=detail, error_code=error_code)
        if status == 404:
            raise NotFoundError(message=detail)
        if status == 429:
            raise RateLimitedError(message=detail, headers=dict(response.headers))
        if status >= 500:
            raise ServerError(status_code=status, message=detail)
        raise GitLabApiError(status_code=status, message=detail, error_code=error_code)

    @staticmethod
    def _extract_detail(response: httpx.Response) -> tuple[str, str | None]:
        """Extract a human-readable error detail and GitLab error code.

        GitLab reports errors as ``{"message": ...}`` or
        ``{"error": ..., "error_description": ...}``; falls back to the raw
        response text.
        """
        try:
            body = response.json()
        except ValueError:
            return response.text, None
        if not isinstance(body, dict):
            return response.text, None

        error_code = body.get("error")
        for key in ("message", "error_description", "error"):
            if key in body:
                return str(body[key]), str(error_code) if error_code else None
        return response.text, None

    @staticmethod
    def _project_path(project: str | int) -> str:
        return quote(str(project), safe="")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_current_user(self) -> dict[str, Any]:
        """Return the user owning the token. Used to validate credentials."""
        result: dict[str, Any] = await self._request("GET", "/user")
        return result

    async def get_project(self, project: str | int) -> dict[str, Any]:
        """Get a project by numeric ID or ``namespace/path``.

        Args:
            project: Project ID or full path.

        Returns:
            Project payload.
        """
        result: dict[str, Any] = await self._request(
            "GET", f"/projects/{self._project_path(project)}"
        )
        return result

    async def get_project_languages(self, project: str | int) -> dict[str, float]:
        """Get the language breakdown of a project.

        Returns:
            Mapping of language name to percentage. Empty if GitLab returns
            something other than an object; non-numeric shares are skipped.
        """
        result = await self._request(
            "GET", f"/projects/{self._project_path(project)}/languages"
        )
        if not isinstance(result, dict):
            return {}
        return {
            str(name): float(share)
            for name, share in result.items()
            if isinstance(share, (int, float)) and not isinstance(share, bool)
        }
