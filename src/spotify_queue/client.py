# This file handles the networking between Spotify servers and the web app. Including Auth

from __future__ import annotations
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlencode
import requests

TIMEOUT = 30

AUTH_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
API_URL = "https://api.spotify.com/v1"


class SpotifyError(Exception):
    """Any failed call to Spotify: bad status, network trouble or an unexpected body."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def _error_message(r: requests.Response) -> str:
    # Web API errors look like {"error": {"status": 401, "message": "..."}},
    # accounts errors like {"error": "invalid_grant", "error_description": "..."}
    try:
        body = r.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return err["message"]
        if isinstance(err, str):
            desc = body.get("error_description")
            return f"{err}: {desc}" if desc else err

    return f"{r.status_code} {r.reason or ''}".strip()


class SpotifyClient:
    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self._session = session or requests.Session()

        # Credentials currently used for Web API calls
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None

    def set_access_token(self, token: Optional[str]) -> None:
        self.access_token = token

    def set_refresh_token(self, token: Optional[str]) -> None:
        self.refresh_token = token

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        try:
            r = self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise SpotifyError(f"Could not reach Spotify: {e}") from e

        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            raise SpotifyError(_error_message(r), status=r.status_code) from e
        return r

    def _json(self, r: requests.Response) -> Dict:
        try:
            return r.json()
        except ValueError as e:
            raise SpotifyError("Spotify returned a response that is not JSON", status=r.status_code) from e

    def _auth_header(self) -> Dict[str, str]:
        if not self.access_token:
            raise SpotifyError("No access token set, log in first.", status=401)
        return {"Authorization": f"Bearer {self.access_token}"}

    def authorize_url(self, scopes: Iterable[str], state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(scopes),
            "state": state,
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    def _token_request(self, data: Dict[str, str]) -> Dict:
        r = self._request(
            "POST",
            TOKEN_URL,
            data=data,
            auth=(self.client_id, self.client_secret),
        )
        tok = self._json(r)
        if not isinstance(tok, dict) or not tok.get("access_token"):
            raise SpotifyError("Token response did not contain an access_token", status=r.status_code)
        return tok

    def exchange_code(self, code: str) -> Dict:
        """Trade an authorization code for {access_token, refresh_token, expires_in, ...}."""
        return self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        })

    def refresh_access_token(self, refresh_token: Optional[str] = None) -> Dict:
        """
        Ask for a fresh access token.
        The response may or may not include a rotated refresh_token.
        """
        token = refresh_token or self.refresh_token
        if not token:
            raise SpotifyError("No refresh token set, log in first.", status=401)
        return self._token_request({"grant_type": "refresh_token", "refresh_token": token})

    def search_tracks(self, query: str, *, limit: Optional[int] = None) -> List[Dict]:
        params = {"q": query, "type": "track"}
        if limit is not None:
            params["limit"] = max(1, min(50, int(limit)))
        r = self._request("GET", f"{API_URL}/search", headers=self._auth_header(), params=params)
        data = self._json(r)
        try:
            items = data["tracks"]["items"]
        except (KeyError, TypeError) as e:
            raise SpotifyError("Malformed search response", status=r.status_code) from e
        if not isinstance(items, list):
            raise SpotifyError("Malformed search response", status=r.status_code)
        return items

    def add_to_queue(self, uri: str) -> None:
        # Spotify answers 204 (older deployments 200 with an empty body)
        self._request(
            "POST",
            f"{API_URL}/me/player/queue",
            headers=self._auth_header(),
            params={"uri": uri},
        )
