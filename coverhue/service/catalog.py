"""Spotify Web API client used to resolve matched track identifiers."""
from __future__ import annotations

import logging
import os
import time
from threading import Lock
from typing import Any, Dict, Optional

import requests
from requests import Session
from tenacity import (  # type: ignore[import-untyped]
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from coverhue.pipeline.matcher import CatalogError, CatalogNotFound
from coverhue.pipeline.types import TrackMetadata

from .config import (
    HTTP_TIMEOUT,
    SPOTIFY_API_URL,
    SPOTIFY_CLIENT_ID_ENV,
    SPOTIFY_CLIENT_SECRET_ENV,
    SPOTIFY_TOKEN_URL,
)

logger = logging.getLogger("coverhue.service")

# refresh a little before the advertised expiry
_TOKEN_EXPIRY_MARGIN = 30.0


class RetryableHTTPStatusError(Exception):
    """Raised for HTTP status codes that should trigger a retry."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server returned status {status_code}")
        self.status_code = status_code


class SpotifyCatalogClient:
    """Resolves track identifiers with the client-credentials flow.

    The access token is kept in memory and reused until shortly before it
    expires. Timeouts, connection errors, 401, 429 and 5xx responses are
    retried with exponential backoff; anything else surfaces as
    :class:`CatalogError` (or :class:`CatalogNotFound` for unknown tracks).
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        session: Session | None = None,
        timeout: float = HTTP_TIMEOUT,
        attempts: int = 3,
        retry_wait: Any = None,
        token_url: str = SPOTIFY_TOKEN_URL,
        api_url: str = SPOTIFY_API_URL,
    ) -> None:
        if not client_id or not client_secret:
            raise CatalogError("Spotify client id and secret are required")
        self._client_id = client_id
        self._client_secret = client_secret
        self._session = session or requests.Session()
        self._timeout = timeout
        self._token_url = token_url
        self._api_url = api_url.rstrip("/")
        self._token_lock = Lock()
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._retryer = Retrying(
            stop=stop_after_attempt(max(1, attempts)),
            wait=retry_wait if retry_wait is not None else wait_exponential(multiplier=1, min=1, max=5),
            retry=retry_if_exception_type(
                (requests.Timeout, requests.ConnectionError, RetryableHTTPStatusError)
            ),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "SpotifyCatalogClient":
        client_id = os.environ.get(SPOTIFY_CLIENT_ID_ENV, "")
        client_secret = os.environ.get(SPOTIFY_CLIENT_SECRET_ENV, "")
        if not client_id or not client_secret:
            raise CatalogError(
                f"Set {SPOTIFY_CLIENT_ID_ENV} and {SPOTIFY_CLIENT_SECRET_ENV} to resolve track metadata"
            )
        return cls(client_id, client_secret, **kwargs)

    def fetch_metadata(self, identifier: str) -> TrackMetadata:
        try:
            payload = self._retryer(lambda: self._get_track(identifier))
        except RetryableHTTPStatusError as exc:
            raise CatalogError(f"Spotify error for track {identifier}: {exc}") from exc
        except requests.RequestException as exc:
            raise CatalogError(f"Request error for track {identifier}: {exc}") from exc
        return _parse_track(identifier, payload)

    # ------------------------------------------------------------------
    def _access_token(self) -> str:
        with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token
            response = self._session.post(
                self._token_url,
                data={"grant_type": "client_credentials"},
                auth=(self._client_id, self._client_secret),
                timeout=self._timeout,
            )
            if 500 <= response.status_code < 600:
                raise RetryableHTTPStatusError(response.status_code)
            if response.status_code != 200:
                raise CatalogError(f"Spotify token request rejected with status {response.status_code}")
            body = response.json()
            token = body.get("access_token")
            if not token:
                raise CatalogError("Spotify token response did not contain an access token")
            expires_in = float(body.get("expires_in", 3600))
            self._token = str(token)
            self._token_expires_at = time.monotonic() + max(0.0, expires_in - _TOKEN_EXPIRY_MARGIN)
            logger.debug("Obtained Spotify access token valid for %.0fs", expires_in)
            return self._token

    def _invalidate_token(self) -> None:
        with self._token_lock:
            self._token = None
            self._token_expires_at = 0.0

    def _get_track(self, identifier: str) -> Dict[str, Any]:
        token = self._access_token()
        response = self._session.get(
            f"{self._api_url}/tracks/{identifier}",
            headers={"Authorization": f"Bearer {token}"},
            timeout=self._timeout,
        )
        status = response.status_code
        if status == 401:
            self._invalidate_token()
            raise RetryableHTTPStatusError(status)
        if status == 429 or 500 <= status < 600:
            raise RetryableHTTPStatusError(status)
        if status in (400, 404):
            raise CatalogNotFound(f"Track {identifier} not found (status {status})")
        if status != 200:
            raise CatalogError(f"Unexpected status {status} for track {identifier}")
        return response.json()


def _parse_track(identifier: str, payload: Dict[str, Any]) -> TrackMetadata:
    name = payload.get("name")
    if not name:
        raise CatalogError(f"Track {identifier} has no name in catalog response")
    artists = tuple(
        str(artist.get("name"))
        for artist in payload.get("artists") or []
        if isinstance(artist, dict) and artist.get("name")
    )
    return TrackMetadata(
        identifier=str(payload.get("id") or identifier),
        name=str(name),
        preview_url=payload.get("preview_url") or None,
        artists=artists,
    )


__all__ = ["RetryableHTTPStatusError", "SpotifyCatalogClient"]
