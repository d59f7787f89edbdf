# src/spotify_queue/auth/tokens.py
from __future__ import annotations
import logging
from typing import Optional

from spotify_queue.client import SpotifyClient, SpotifyError

log = logging.getLogger(__name__)


class TokenManager:
    """
    Holds the one access/refresh token pair for this process.

    There is a single session per process, so no per-user isolation and no locking.
    Tokens only live in memory and are gone on restart.
    """

    def __init__(self, client: SpotifyClient):
        self.client = client
        self._access: Optional[str] = None
        self._refresh: Optional[str] = None

    def get_access_token(self) -> Optional[str]:
        return self._access

    def get_refresh_token(self) -> Optional[str]:
        return self._refresh

    @property
    def authenticated(self) -> bool:
        return bool(self._access and self._refresh)

    def set_tokens(self, access: str, refresh: str) -> None:
        self._access = access
        self._refresh = refresh
        self.client.set_access_token(access)
        self.client.set_refresh_token(refresh)

    def refresh_if_needed(self) -> bool:
        """
        Refresh the access token. This runs before every authenticated call and
        does not look at expiry. On failure the previous token stays in place.
        """
        if not self._refresh:
            log.warning("No refresh token stored yet; skipping refresh (visit /login first)")
            return False

        try:
            tok = self.client.refresh_access_token(self._refresh)
        except SpotifyError as e:
            log.error("Error refreshing access token: %s", e)
            return False

        self._access = tok["access_token"]
        self.client.set_access_token(self._access)

        # Spotify may sometimes return a new refresh token
        if tok.get("refresh_token"):
            self._refresh = tok["refresh_token"]
            self.client.set_refresh_token(self._refresh)

        log.info("Access token refreshed")
        return True
