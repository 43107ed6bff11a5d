"""Internet Archive catalog client — album listing and album details.

Features:
  - Paginated album search (``/advancedsearch.php``)
  - Album details with MP3 song list (``/metadata/{identifier}``)
  - Fixed-delay retries on request errors, 429 and 5xx
  - Minimal logging
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, List, Mapping, Optional
from urllib.parse import quote

import httpx

from app.config import get_settings
from core.models import Album, AlbumPage, AlbumRef, Song

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_MP3_FORMATS = ("VBR MP3", "MP3", "128Kbps MP3", "64Kbps MP3")
_SEARCH_FIELDS = ("identifier", "title")
_MEDIATYPE = "audio"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class CatalogError(Exception):
    """Raised when the album listing itself fails."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Catalog error {status_code}: {detail}")


class AlbumFetchError(Exception):
    """Raised when album details could not be fetched after all retries."""

    def __init__(self, identifier: str, detail: str):
        self.identifier = identifier
        self.detail = detail
        super().__init__(f"Album {identifier}: {detail}")


class AlbumNotFound(AlbumFetchError):
    """The catalog has no metadata for this album.  Never retried."""


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _text(value: Any) -> str:
    """archive.org returns either a string or a list of strings."""
    if isinstance(value, list):
        value = value[0] if value else ""
    return str(value) if value is not None else ""


def _year(metadata: Mapping[str, Any]) -> Optional[int]:
    match = re.match(r"\d{4}", _text(metadata.get("year") or metadata.get("date")))
    return int(match.group()) if match else None


def _track_number(value: Any) -> int:
    """Parse ``"3"``, ``"03"`` or ``"3/12"``; unnumbered files sort last."""
    match = re.match(r"\s*(\d+)", _text(value))
    return int(match.group(1)) if match else 10**6


def _length(value: Any) -> Optional[float]:
    """Parse ``"342.56"`` or ``"05:42"`` into seconds."""
    raw = _text(value)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        pass
    seconds = 0.0
    try:
        for part in raw.split(":"):
            seconds = seconds * 60 + float(part)
    except ValueError:
        return None
    return seconds


def build_search_query(filters: Mapping[str, str]) -> str:
    """Lucene query for the advanced search, e.g. ``collection:(etree)``."""
    clauses = [f"mediatype:({_MEDIATYPE})"]
    for field, value in sorted(filters.items()):
        clauses.append(f'{field}:("{value}")' if " " in value else f"{field}:({value})")
    return " AND ".join(clauses)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class CatalogClient:
    """Async client for the album catalog.

    Parameters
    ----------
    base_url : str
        Defaults to ``Settings.catalog_base_url``.
    transport : httpx.AsyncBaseTransport
        Override for tests (``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.catalog_base_url).rstrip("/")
        self._timeout = httpx.Timeout(
            settings.catalog_read_timeout, connect=settings.catalog_connect_timeout
        )
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    # ------------------------------------------------------------------
    # Album listing
    # ------------------------------------------------------------------

    async def list_albums(
        self,
        *,
        filters: Optional[Mapping[str, str]] = None,
        page: int = 1,
        rows: int = 1,
        sort: Optional[str] = None,
    ) -> Optional[AlbumPage]:
        """Return one page of albums, or None when the page is empty.

        Raises
        ------
        CatalogError
            On transport failures and non-2xx responses.
        """
        params: list[tuple[str, Any]] = [("q", build_search_query(filters or {}))]
        params += [("fl[]", field) for field in _SEARCH_FIELDS]
        if sort:
            params.append(("sort[]", sort))
        params += [("rows", rows), ("page", page), ("output", "json")]

        async with self._client() as client:
            try:
                resp = await client.get("/advancedsearch.php", params=params)
            except httpx.HTTPError as exc:
                raise CatalogError(0, f"listing failed: {exc!r}") from exc

        if resp.status_code >= 400:
            raise CatalogError(resp.status_code, resp.text)

        try:
            response = resp.json().get("response") or {}
        except ValueError as exc:
            raise CatalogError(resp.status_code, "invalid JSON") from exc
        docs = response.get("docs") or []
        if not docs:
            logger.debug("Empty album page %d (rows=%d)", page, rows)
            return None

        return AlbumPage(
            items=[
                AlbumRef(identifier=doc["identifier"], title=_text(doc.get("title")))
                for doc in docs
            ],
            total=int(response.get("numFound", 0)),
            start=int(response.get("start", (page - 1) * rows)),
        )

    # ------------------------------------------------------------------
    # Album details
    # ------------------------------------------------------------------

    async def fetch_album_details(
        self,
        identifier: str,
        *,
        retry: int = 3,
        delay: float = 0.1,
    ) -> Album:
        """Fetch an album with its songs, retrying transient failures.

        *retry* is the number of attempts, *delay* the pause in seconds
        between two attempts.

        Raises
        ------
        AlbumNotFound
            The catalog knows nothing about *identifier*.
        AlbumFetchError
            Every attempt failed.
        """
        path = f"/metadata/{quote(identifier)}"

        for attempt in range(retry):
            async with self._client() as client:
                try:
                    resp = await client.get(path)
                except httpx.HTTPError as exc:
                    logger.warning(
                        "Request error on attempt %d for album %s: %r",
                        attempt + 1, identifier, exc,
                    )
                    resp = None

            if resp is not None:
                if resp.status_code < 400:
                    try:
                        data = resp.json()
                    except ValueError as exc:
                        raise AlbumFetchError(identifier, "invalid JSON") from exc
                    if not isinstance(data, dict):
                        raise AlbumFetchError(identifier, "unexpected metadata body")
                    return self._parse_album(identifier, data)
                if resp.status_code < 500 and resp.status_code != 429:
                    raise AlbumFetchError(identifier, f"HTTP {resp.status_code}")
                logger.warning(
                    "Server error %d for album %s (attempt %d)",
                    resp.status_code, identifier, attempt + 1,
                )

            if attempt + 1 < retry:
                await asyncio.sleep(delay)

        raise AlbumFetchError(identifier, f"gave up after {retry} attempt(s)")

    def _parse_album(self, identifier: str, data: Mapping[str, Any]) -> Album:
        metadata = data.get("metadata")
        if not metadata or not isinstance(metadata, dict):
            raise AlbumNotFound(identifier, "no metadata")

        title = _text(metadata.get("title"))
        creator = _text(metadata.get("creator"))
        year = _year(metadata)

        files = [
            f for f in data.get("files") or []
            if isinstance(f, dict) and isinstance(f.get("name"), str) and f.get("format") in _MP3_FORMATS
        ]
        # prefer a single MP3 flavour so derivatives don't duplicate songs
        vbr = [f for f in files if f.get("format") == "VBR MP3"]
        files = sorted(vbr or files, key=lambda f: (_track_number(f.get("track")), f["name"]))

        songs: List[Song] = [
            Song(
                identifier=identifier,
                filename=f["name"],
                title=_text(f.get("title")) or f["name"],
                url=f"{self.base_url}/download/{quote(identifier)}/{quote(f['name'])}",
                album_title=title,
                creator=_text(f.get("creator")) or creator,
                year=year,
                length=_length(f.get("length")),
                position=i,
                album_size=len(files),
            )
            for i, f in enumerate(files)
        ]
        return Album(identifier=identifier, title=title, creator=creator, year=year, songs=songs)
