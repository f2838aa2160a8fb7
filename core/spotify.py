"""Spotify catalog search with client-credentials token caching."""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from core.config import Settings
from core.errors import CatalogError, MissingCredentialsError, TokenRequestError
from core.models import Track

logger = logging.getLogger(__name__)


@dataclass
class SpotifyCredentials:
    """Client credentials plus the cached bearer token."""
    client_id: str = ""
    client_secret: str = ""
    access_token: Optional[str] = None
    expires_at: float = 0.0  # epoch seconds


class TokenManager:
    """Lazily obtains and caches a bearer token; refreshes it near expiry."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient,
        clock: Callable[[], float] = time.time,
        on_request: Optional[Callable[[], None]] = None,
    ) -> None:
        self.s = settings
        self._http = http
        self._clock = clock
        self._on_request = on_request
        self.credentials = SpotifyCredentials(
            client_id=settings.SPOTIFY_CLIENT_ID.strip(),
            client_secret=settings.SPOTIFY_CLIENT_SECRET.strip(),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.credentials.client_id and self.credentials.client_secret)

    def set_credentials(self, client_id: str, client_secret: str) -> None:
        """Store new credentials; any cached token belongs to the old ones and is dropped."""
        self.credentials = SpotifyCredentials(client_id=client_id, client_secret=client_secret)

    def invalidate(self) -> None:
        self.credentials.access_token = None
        self.credentials.expires_at = 0.0

    def is_valid(self) -> bool:
        """True if the cached token has more than TOKEN_SAFETY_MARGIN seconds left."""
        c = self.credentials
        return bool(c.access_token) and c.expires_at > self._clock() + self.s.TOKEN_SAFETY_MARGIN

    async def ensure_token(self) -> str:
        """Return a usable access token, exchanging client credentials if needed."""
        if self.is_valid():
            return self.credentials.access_token
        if not self.has_credentials:
            raise MissingCredentialsError("Spotify client credentials are not set")

        if self._on_request is not None:
            self._on_request()
        logger.debug("[spotify] requesting client-credentials token")
        try:
            resp = await self._http.post(
                self.s.SPOTIFY_TOKEN_URL,
                auth=(self.credentials.client_id, self.credentials.client_secret),
                data={"grant_type": "client_credentials"},
            )
        except httpx.HTTPError as e:
            self.invalidate()
            raise TokenRequestError(None, f"Token request failed: {e}") from e

        if resp.is_error:
            self.invalidate()
            raise TokenRequestError(resp.status_code)

        try:
            data = resp.json()
            self.credentials.access_token = data["access_token"]
            self.credentials.expires_at = self._clock() + float(data["expires_in"])
        except (KeyError, TypeError, ValueError) as e:
            self.invalidate()
            raise TokenRequestError(resp.status_code, "Malformed token response") from e
        logger.info(f"[spotify] token acquired, expires_in={data['expires_in']}s")
        return self.credentials.access_token


def track_from_item(item: Dict[str, Any]) -> Track:
    """Map a Spotify search track item to our Track shape."""
    album = item.get("album") or {}
    images = album.get("images") or []
    # Prefer the medium-sized cover; fall back to the largest
    image = images[1] if len(images) > 1 else (images[0] if images else {})
    return Track(
        id=item.get("id") or "",
        uri=item.get("uri") or "",
        title=item.get("name") or "",
        artists=[a.get("name", "") for a in item.get("artists") or [] if a.get("name")],
        thumbnail_url=(image or {}).get("url") or "",
        preview_url=item.get("preview_url") or None,
        external_url=(item.get("external_urls") or {}).get("spotify"),
    )


class CatalogClient:
    """Track search against the Spotify Web API."""

    # One silent retry after a 401; a second 401 is surfaced as a fetch error.
    MAX_AUTH_RETRIES = 1

    def __init__(self, settings: Settings, http: httpx.AsyncClient, tokens: TokenManager) -> None:
        self.s = settings
        self._http = http
        self.tokens = tokens

    async def search_tracks(self, keyword: str, limit: Optional[int] = None) -> List[Track]:
        limit = limit or self.s.TRACK_LIMIT
        params = {"q": keyword, "type": "track", "limit": limit}
        retries = 0
        while True:
            token = await self.tokens.ensure_token()
            try:
                resp = await self._http.get(
                    self.s.SPOTIFY_SEARCH_URL,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except httpx.HTTPError as e:
                raise CatalogError(None, f"Spotify request failed: {e}") from e

            if resp.status_code == 401 and retries < self.MAX_AUTH_RETRIES:
                logger.info("[spotify] search unauthorized; refreshing token and retrying once")
                self.tokens.invalidate()
                retries += 1
                continue
            if resp.is_error:
                raise CatalogError(resp.status_code)
            break

        try:
            body = resp.json() or {}
        except ValueError as e:
            raise CatalogError(resp.status_code, "Spotify returned a non-JSON search response") from e
        items = (body.get("tracks") or {}).get("items") or []
        tracks = [track_from_item(i) for i in items if i]
        logger.debug(f"[spotify] search q={keyword!r} results={len(tracks)}")
        return tracks
