"""Content publisher backed by the WordPress REST API."""

import re
from typing import Any, Protocol

import httpx

from ..config import Settings
from ..errors import PublishError
from ..logging_config import get_logger
from ..models import PublishedRecord, PublishResult

logger = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


class IContentPublisher(Protocol):
    """Stores a finished post and reports where it lives."""

    async def publish(self, record: PublishedRecord) -> PublishResult:
        """Create the post; failures come back as a failed PublishResult."""
        ...


def plain_text(value: str) -> str:
    """Strip HTML tags and collapse whitespace, for titles and term names."""
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub("", value)).strip()


def slugify(value: str) -> str:
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[\s_-]+", "-", value).strip("-")


class WordPressPublisher:
    """Creates posts through ``/wp-json/wp/v2`` with an application password.

    Missing categories and tags are created on the fly. Content is sent as
    is; WordPress filters it according to the account's capabilities.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self._site_url = settings.wordpress_url
        self._auth = (settings.wordpress_username, settings.wordpress_app_password)
        self._post_status = settings.wordpress_post_status
        self._timeout = settings.http_timeout
        self._client = client
        self._owns_client = client is None

    @property
    def _api_url(self) -> str:
        return f"{self._site_url}/wp-json/wp/v2"

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

    async def stop(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def publish(self, record: PublishedRecord) -> PublishResult:
        if not self._site_url:
            return PublishResult.failure("WordPress is not configured")

        if self._client is None:
            await self.start()

        try:
            category_ids = []
            category = plain_text(record.category)
            if category:
                category_ids.append(await self._resolve_category(category))

            tag_ids = []
            for tag in record.tags:
                name = plain_text(tag)
                if name:
                    tag_ids.append(await self._resolve_tag(name))

            post = await self._request(
                "POST",
                "/posts",
                json={
                    "title": plain_text(record.title),
                    "content": record.content,
                    "status": self._post_status,
                    "categories": category_ids,
                    "tags": tag_ids,
                },
            )
            post_id = _id_of(post, "/posts")
        except PublishError as e:
            logger.error("WordPress publish failed: %s", e.detail)
            return PublishResult.failure(e.detail)

        logger.info("Created WordPress post %s", post_id)
        return PublishResult.success(post_id=post_id, permalink=post.get("link") or "")

    async def _resolve_category(self, name: str) -> int:
        slug = slugify(name)
        if slug:
            found = _terms_of(
                await self._request("GET", "/categories", params={"slug": slug}),
                "/categories",
            )
            if found:
                return _id_of(found[0], "/categories")

        payload = {"name": name}
        if slug:
            payload["slug"] = slug
        return await self._create_term("/categories", payload)

    async def _resolve_tag(self, name: str) -> int:
        found = _terms_of(
            await self._request(
                "GET", "/tags", params={"search": name, "per_page": 100}
            ),
            "/tags",
        )
        for term in found:
            if str(term.get("name") or "").lower() == name.lower():
                return _id_of(term, "/tags")
        return await self._create_term("/tags", {"name": name})

    async def _create_term(self, path: str, payload: dict) -> int:
        try:
            created = await self._request("POST", path, json=payload)
        except _TermExists as e:
            return e.term_id
        return _id_of(created, path)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(
                method,
                f"{self._api_url}{path}",
                auth=self._auth,
                timeout=self._timeout,
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise PublishError(f"{type(e).__name__}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_success:
            if body is None:
                raise PublishError(f"Unexpected response from {path}")
            return body

        error = body if isinstance(body, dict) else {}
        data = error.get("data")
        term_id = data.get("term_id") if isinstance(data, dict) else None
        if error.get("code") == "term_exists" and term_id:
            raise _TermExists(term_id)
        raise PublishError(error.get("message") or f"HTTP {response.status_code}")


def _id_of(body: Any, path: str) -> int:
    if isinstance(body, dict) and isinstance(body.get("id"), int):
        return body["id"]
    raise PublishError(f"Unexpected response from {path}")


def _terms_of(body: Any, path: str) -> list[dict]:
    """Term listings must be JSON arrays of objects."""
    if isinstance(body, list) and all(isinstance(term, dict) for term in body):
        return body
    raise PublishError(f"Unexpected response from {path}")


class _TermExists(PublishError):
    """WordPress refused to create a term that already exists."""

    def __init__(self, term_id: int):
        super().__init__("term exists")
        self.term_id = term_id
