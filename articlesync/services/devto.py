"""HTTP client for the Dev.to (Forem) articles API."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Mapping

import httpx

from articlesync.models.publisher import ArticlePayload, PublishedArticle
from articlesync.models.settings import DEFAULT_API_TIMEOUT, DEFAULT_API_URL


LOGGER = logging.getLogger(__name__)


class DevToAPIError(RuntimeError):
    """Raised when the API rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ArticleNotFoundError(DevToAPIError):
    """Raised when an article identifier is unknown to the API."""


@dataclass(slots=True, frozen=True)
class RemoteArticle:
    """Subset of an article record returned by the API."""

    id: int
    title: str
    url: str | None = None
    published: bool | None = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "RemoteArticle":
        return cls(
            id=int(data["id"]),
            title=str(data.get("title") or ""),
            url=data.get("url"),
            published=data.get("published"),
        )


class DevToClient:
    """Create, update and look up articles for the account owning the API key."""

    _ACCEPT_HEADER = "application/vnd.forem.api-v1+json"
    _PAGE_SIZE = 100

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_API_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Dev.to API key is required")
        headers = {
            "api-key": api_key,
            "Content-Type": "application/json",
            "Accept": self._ACCEPT_HEADER,
        }
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        self._client.headers.update(headers)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DevToClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def create_article(self, payload: ArticlePayload) -> PublishedArticle:
        data = self._request("POST", "/articles", json=payload.to_request(), context="create article")
        return _published_from(data, "create article")

    def update_article(self, article_id: int, payload: ArticlePayload) -> PublishedArticle:
        context = f"update article (ID: {article_id})"
        data = self._request("PUT", f"/articles/{article_id}", json=payload.to_request(), context=context)
        if isinstance(data, dict) and data.get("id") is None:
            data = {**data, "id": article_id}
        return _published_from(data, context)

    def get_article(self, article_id: int) -> RemoteArticle:
        """Return the article, raising :class:`ArticleNotFoundError` for unknown identifiers."""

        data = self._request("GET", f"/articles/{article_id}", context=f"fetch article (ID: {article_id})")
        return _remote_from(data, f"fetch article (ID: {article_id})")

    def list_my_articles(self) -> list[RemoteArticle]:
        """Return every article owned by the authenticated user, following pagination."""

        articles: list[RemoteArticle] = []
        page = 1
        while True:
            data = self._request(
                "GET",
                "/articles/me/all",
                params={"page": page, "per_page": self._PAGE_SIZE},
                context="list own articles",
            )
            if not isinstance(data, list):
                raise DevToAPIError("Unexpected response when listing own articles")
            articles.extend(_remote_from(item, "list own articles") for item in data)
            if len(data) < self._PAGE_SIZE:
                return articles
            page += 1

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _request(self, method: str, url: str, *, context: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            LOGGER.error("API Error: no response for %s %s: %s", method, url, exc)
            raise DevToAPIError(f"Failed to {context}: {exc}") from exc
        except (TypeError, ValueError) as exc:
            LOGGER.error("API Error: could not encode %s %s request: %s", method, url, exc)
            raise DevToAPIError(f"Failed to {context}: request could not be encoded: {exc}") from exc

        remaining = response.headers.get("ratelimit-remaining")
        if remaining:
            LOGGER.debug("Dev.to API rate limit remaining: %s", remaining)

        if response.status_code == 404:
            raise ArticleNotFoundError(f"Failed to {context}: not found", status_code=404)
        if response.is_error:
            detail = _error_detail(response)
            LOGGER.error("API Error: %s %s. URL: %s %s", response.status_code, detail, method, url)
            raise DevToAPIError(
                f"Failed to {context}: {response.status_code} {detail}", status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as exc:
            raise DevToAPIError(f"Failed to {context}: response was not valid JSON") from exc


def _published_from(data: Any, context: str) -> PublishedArticle:
    if not isinstance(data, dict):
        raise DevToAPIError(f"Failed to {context}: unexpected response body {type(data).__name__}")
    try:
        return PublishedArticle(id=int(data["id"]), url=data.get("url"))
    except (KeyError, TypeError, ValueError) as exc:
        raise DevToAPIError(f"Failed to {context}: response has no usable article id") from exc


def _remote_from(data: Any, context: str) -> RemoteArticle:
    if not isinstance(data, dict):
        raise DevToAPIError(f"Failed to {context}: unexpected response body {type(data).__name__}")
    try:
        return RemoteArticle.from_api(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise DevToAPIError(f"Failed to {context}: response has no usable article id") from exc


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or response.text.strip()
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return response.reason_phrase or ""


__all__ = ["ArticleNotFoundError", "DevToAPIError", "DevToClient", "RemoteArticle"]
