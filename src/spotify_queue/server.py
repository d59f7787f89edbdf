# Spotify search & queue server (Authorization Code flow, no PKCE)
# Routes:
#   /login    -> redirect user to Spotify consent screen
#   /callback -> handle Spotify redirect, exchange code for tokens, show the search box
#   /search   -> search tracks, show the first five
#   /queue    -> add the posted track URI to the playback queue

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from flask import Blueprint, Flask, current_app, redirect, request

from . import pages
from .auth.tokens import TokenManager
from .client import SpotifyClient, SpotifyError
from .config import Settings, load_settings
from .tracks import MAX_RESULTS, top_results

log = logging.getLogger(__name__)

SCOPES = [
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
]

EXTENSION_KEY = "spotify_queue"

TEXT = {"Content-Type": "text/plain; charset=utf-8"}

bp = Blueprint("spotify_queue", __name__)


@dataclass
class QueueContext:
    settings: Settings
    client: SpotifyClient
    tokens: TokenManager


def _ctx() -> QueueContext:
    return current_app.extensions[EXTENSION_KEY]


def _authenticated_client() -> SpotifyClient:
    # Refresh first, then make sure the client carries whatever token we ended up with
    ctx = _ctx()
    ctx.tokens.refresh_if_needed()
    ctx.client.set_access_token(ctx.tokens.get_access_token())
    return ctx.client


@bp.get("/login")
def login():
    ctx = _ctx()
    return redirect(ctx.client.authorize_url(SCOPES, ctx.settings.state))


@bp.get("/callback")
def callback():
    if (err := request.args.get("error")):
        log.error("Callback error: Spotify returned %s", err)
        return pages.AUTH_FAILED, 400, TEXT

    code = request.args.get("code")
    if not code:
        log.error("Callback error: missing 'code' in callback")
        return pages.AUTH_FAILED, 400, TEXT

    ctx = _ctx()
    try:
        tok = ctx.client.exchange_code(code)
        access, refresh = tok["access_token"], tok["refresh_token"]
    except (SpotifyError, KeyError) as e:
        log.error("Callback error: %s", e)
        return pages.AUTH_FAILED, 400, TEXT

    ctx.tokens.set_tokens(access, refresh)
    log.info("Logged in with Spotify")
    return pages.search_page()


@bp.get("/search")
def search():
    q = request.args.get("q", "")

    try:
        client = _authenticated_client()
        items = client.search_tracks(q, limit=MAX_RESULTS)
        tracks = top_results(items, MAX_RESULTS)
    except (SpotifyError, KeyError, TypeError, AttributeError) as e:
        log.error("Search error: %s", e)
        return pages.SEARCH_FAILED, 200, TEXT

    return pages.results_page(tracks)


@bp.post("/queue")
def queue():
    uri = request.form.get("uri")
    if not uri:
        return pages.missing_uri_page()

    try:
        client = _authenticated_client()
        client.add_to_queue(uri)
    except SpotifyError as e:
        log.error("Error adding to queue: %s", e)
        return pages.queue_error_page(e.message)

    log.info("Queued %s", uri)
    return pages.queued_page()


def create_app(
    settings: Optional[Settings] = None,
    *,
    client: Optional[SpotifyClient] = None,
    tokens: Optional[TokenManager] = None,
) -> Flask:
    settings = settings or load_settings()
    if client is None:
        client = SpotifyClient(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            redirect_uri=settings.redirect_uri,
            timeout=settings.timeout,
        )
    tokens = tokens or TokenManager(client)

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = QueueContext(settings=settings, client=client, tokens=tokens)
    app.register_blueprint(bp)
    return app
