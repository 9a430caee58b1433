"""Document store reading the data repository through the GitHub API.

Documents are fetched with the contents API. When that fails the store
falls back to raw.githubusercontent.com, then to its on-disk cache.
Transport errors are retried with tenacity before a transport counts as
failed.

Example:
    >>> async with GitHubDocumentStore("bonome", "donnees") as store:
    ...     classes = await store.list_files_in_path("classes")
"""

from __future__ import annotations

import asyncio
import base64
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bonome.core.exceptions import (
    DocumentFetchError,
    DocumentNotFoundError,
    DocumentStoreError,
)
from bonome.core.logging import get_logger
from bonome.storage.base import BaseDocumentStore


if TYPE_CHECKING:
    from tenacity.wait import wait_base

    from bonome.core.config import StoreSettings


logger = get_logger(__name__)

API_ROOT = "https://api.github.com"
RAW_ROOT = "https://raw.githubusercontent.com"


class GitHubDocumentStore(BaseDocumentStore):
    """Read-only store over one branch of a GitHub repository.

    Attributes:
        owner: Repository owner.
        repo: Repository name.
        branch: Branch documents are read from.
        cache_dir: Directory mirroring fetched documents, if any.
        use_raw_fallback: Try raw content URLs when the contents API fails.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        branch: str = "main",
        token: str | None = None,
        cache_dir: Path | str | None = None,
        use_raw_fallback: bool = True,
        scan_folders: list[str] | tuple[str, ...] | None = None,
        timeout: float = 20.0,
        max_retries: int = 3,
        client: httpx.AsyncClient | None = None,
        retry_wait: wait_base | None = None,
    ) -> None:
        super().__init__(scan_folders=scan_folders)
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self.use_raw_fallback = use_raw_fallback
        self._token = token
        self._max_retries = max_retries
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._file_cache: dict[str, Any] = {}

    @classmethod
    def from_settings(
        cls,
        settings: StoreSettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> "GitHubDocumentStore":
        """Build a store from the ``BONOME_STORE_*`` settings group."""
        return cls(
            settings.github_owner or "",
            settings.github_repo or "",
            branch=settings.branch,
            token=settings.token.get_secret_value() if settings.token else None,
            cache_dir=settings.cache_dir,
            use_raw_fallback=settings.use_raw_fallback,
            scan_folders=settings.scan_folders,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
            client=client,
        )

    async def __aenter__(self) -> "GitHubDocumentStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # URLs and transport
    # =========================================================================

    def api_contents_url(self, repo_path: str) -> str:
        return (
            f"{API_ROOT}/repos/{self.owner}/{self.repo}/contents/"
            f"{quote(repo_path.strip('/'), safe='/')}?ref={quote(self.branch, safe='')}"
        )

    def raw_url(self, repo_path: str) -> str:
        return f"{RAW_ROOT}/{self.owner}/{self.repo}/{self.branch}/{quote(repo_path.strip('/'), safe='/')}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    async def _get(self, url: str) -> httpx.Response:
        """GET with retries on transport errors (not on HTTP status codes)."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self._max_retries),
            wait=self._retry_wait,
            reraise=True,
        ):
            with attempt:
                return await self._client.get(url, headers=self._headers())
        raise DocumentFetchError("Request was not attempted", details={"url": url})

    @staticmethod
    def _raise_for_status(response: httpx.Response, repo_path: str) -> None:
        if response.status_code == 404:
            raise DocumentNotFoundError("Document not found", path=repo_path)
        if response.status_code >= 400:
            raise DocumentFetchError(
                f"HTTP {response.status_code} {response.reason_phrase}",
                path=repo_path,
                status_code=response.status_code,
                details={"body": response.text[:200]},
            )

    # =========================================================================
    # Disk cache
    # =========================================================================

    def _cache_path(self, repo_path: str) -> Path | None:
        if self.cache_dir is None:
            return None
        return self.cache_dir / repo_path.strip("/")

    def _write_disk_cache(self, repo_path: str, document: Any) -> None:
        target = self._cache_path(repo_path)
        if target is None:
            return
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            logger.warning("disk_cache_write_failed", path=repo_path, error=str(exc))

    async def _read_disk_cache(self, repo_path: str) -> Any | None:
        target = self._cache_path(repo_path)
        if target is None or not target.is_file():
            return None
        try:
            text = await asyncio.to_thread(target.read_text, encoding="utf-8")
            return json.loads(text)
        except (OSError, ValueError) as exc:
            logger.warning("disk_cache_read_failed", path=repo_path, error=str(exc))
            return None

    # =========================================================================
    # DocumentStore primitives
    # =========================================================================

    async def list_files_in_path(self, path: str) -> list[dict[str, Any]]:
        url = self.api_contents_url(path)
        try:
            response = await self._get(url)
        except httpx.HTTPError as exc:
            raise DocumentFetchError(f"Listing failed: {exc}", path=path) from exc
        self._raise_for_status(response, path)
        try:
            data = response.json()
        except ValueError as exc:
            raise DocumentFetchError("Listing is not JSON", path=path) from exc
        if isinstance(data, dict):
            data = [data]
        return [entry for entry in data if isinstance(entry, dict)]

    async def _fetch_via_api(self, repo_path: str) -> Any:
        response = await self._get(self.api_contents_url(repo_path))
        self._raise_for_status(response, repo_path)
        payload = response.json()
        content = payload.get("content") if isinstance(payload, dict) else None
        if not content:
            raise DocumentFetchError("Contents API returned no inline content", path=repo_path)
        return json.loads(base64.b64decode(content).decode("utf-8"))

    async def _fetch_via_raw(self, repo_path: str) -> Any:
        response = await self._get(self.raw_url(repo_path))
        self._raise_for_status(response, repo_path)
        return response.json()

    async def fetch_json_from_repo_path(self, path: str) -> Any:
        """Fetch a document: memory cache, contents API, raw URL, then disk cache.

        Raises:
            DocumentNotFoundError: If the API reports the document missing and
                no fallback produced it.
            DocumentFetchError: For any other failure.
        """
        if path in self._file_cache:
            return self._file_cache[path]

        try:
            document = await self._fetch_via_api(path)
        except (httpx.HTTPError, DocumentStoreError, ValueError) as api_error:
            logger.debug("contents_api_failed", path=path, error=str(api_error))
            document = await self._fetch_fallback(path, api_error)
        else:
            self._write_disk_cache(path, document)

        self._file_cache[path] = document
        return document

    async def _fetch_fallback(self, path: str, api_error: Exception) -> Any:
        if self.use_raw_fallback:
            try:
                document = await self._fetch_via_raw(path)
            except (httpx.HTTPError, DocumentStoreError, ValueError) as raw_error:
                logger.debug("raw_fetch_failed", path=path, error=str(raw_error))
            else:
                self._write_disk_cache(path, document)
                return document

        cached = await self._read_disk_cache(path)
        if cached is not None:
            logger.info("document_served_from_disk_cache", path=path)
            return cached

        if isinstance(api_error, DocumentStoreError):
            raise api_error
        raise DocumentFetchError(f"Fetch failed: {api_error}", path=path) from api_error


__all__ = ["GitHubDocumentStore", "API_ROOT", "RAW_ROOT"]
