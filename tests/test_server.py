import pytest

from spotify_queue.auth.tokens import TokenManager
from spotify_queue.client import SpotifyError
from spotify_queue.config import Settings
from spotify_queue.server import SCOPES, create_app

# -------- helpers --------

def mk_track(name: str, artists: list[str], uri: str, img: str | None = None, tid: str = "id"):
    """Build a Spotify-like search result track dict."""
    return {
        "id": tid,
        "name": name,
        "artists": [{"name": a} for a in artists],
        "album": {"images": [{"url": img}] if img else []},
        "uri": uri,
    }


class StubClient:
    """Stands in for SpotifyClient; records every call in order."""

    def __init__(self, *, tracks=None, fail=None):
        self.calls = []
        self.tracks = tracks or []
        self.fail = fail or {}
        self.access_token = None
        self.refresh_token = None

    def _maybe_fail(self, op):
        if op in self.fail:
            raise self.fail[op]

    def set_access_token(self, token):
        self.access_token = token

    def set_refresh_token(self, token):
        self.refresh_token = token

    def authorize_url(self, scopes, state):
        self.calls.append(("authorize", list(scopes), state))
        return f"https://accounts.example/authorize?scope={'+'.join(scopes)}&state={state}"

    def exchange_code(self, code):
        self.calls.append(("exchange", code))
        self._maybe_fail("exchange")
        return {"access_token": "acc-1", "refresh_token": "ref-1", "expires_in": 3600}

    def refresh_access_token(self, refresh_token=None):
        self.calls.append(("refresh", refresh_token))
        self._maybe_fail("refresh")
        return {"access_token": "acc-2", "expires_in": 3600}

    def search_tracks(self, query, *, limit=None):
        self.last_limit = limit
        self.calls.append(("search", query, self.access_token))
        self._maybe_fail("search")
        return self.tracks

    def add_to_queue(self, uri):
        self.calls.append(("queue", uri, self.access_token))
        self._maybe_fail("queue")

    def ops(self):
        return [c[0] for c in self.calls]


def mk_app(client):
    settings = Settings(
        client_id="cid",
        client_secret="secret",
        redirect_uri="http://127.0.0.1:3001/callback",
    )
    tokens = TokenManager(client)
    app = create_app(settings, client=client, tokens=tokens)
    app.config["TESTING"] = True
    return app, tokens


def logged_in(client):
    app, tokens = mk_app(client)
    tokens.set_tokens("acc-1", "ref-1")
    return app.test_client(), tokens


# -------- /login --------

def test_login_redirects_to_consent_page_with_fixed_scopes_and_state():
    stub = StubClient()
    app, _ = mk_app(stub)
    resp = app.test_client().get("/login")

    assert resp.status_code == 302
    assert resp.headers["Location"].startswith("https://accounts.example/authorize")
    assert stub.calls == [("authorize", SCOPES, "noizee-state")]
    assert set(SCOPES) == {
        "user-read-playback-state",
        "user-modify-playback-state",
        "user-read-currently-playing",
    }


# -------- /callback --------

def test_callback_stores_tokens_and_renders_search_form():
    stub = StubClient()
    app, tokens = mk_app(stub)
    resp = app.test_client().get("/callback?code=good-code")

    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert 'action="/search"' in body
    assert 'name="q"' in body
    assert tokens.get_access_token() == "acc-1"
    assert tokens.get_refresh_token() == "ref-1"
    # client carries the new credentials too
    assert stub.access_token == "acc-1"
    assert stub.refresh_token == "ref-1"


def test_callback_with_bad_code_is_400_and_stores_nothing():
    stub = StubClient(fail={"exchange": SpotifyError("invalid_grant: Invalid authorization code", status=400)})
    app, tokens = mk_app(stub)
    resp = app.test_client().get("/callback?code=expired")

    assert resp.status_code == 400
    assert resp.mimetype == "text/plain"
    assert "Authentication failed" in resp.get_data(as_text=True)
    assert tokens.get_access_token() is None
    assert tokens.get_refresh_token() is None


@pytest.mark.parametrize("query", ["", "?error=access_denied"])
def test_callback_without_code_never_exchanges(query):
    stub = StubClient()
    app, tokens = mk_app(stub)
    resp = app.test_client().get(f"/callback{query}")

    assert resp.status_code == 400
    assert "exchange" not in stub.ops()
    assert not tokens.authenticated


# -------- /search --------

def test_search_example_renders_single_row():
    stub = StubClient(tracks=[
        mk_track("Imagine", ["John Lennon"], "spotify:track:1", img="http://x/img.jpg"),
    ])
    http, _ = logged_in(stub)
    resp = http.get("/search?q=imagine")

    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert body.count('class="track"') == 1
    assert '<div class="name">Imagine</div>' in body
    assert '<div class="artist">John Lennon</div>' in body
    assert 'src="http://x/img.jpg"' in body
    assert 'name="uri" value="spotify:track:1"' in body
    assert 'href="/login"' in body


def test_search_keeps_only_first_five():
    tracks = [mk_track(f"Song {i}", ["A", "B"], f"spotify:track:{i}") for i in range(8)]
    stub = StubClient(tracks=tracks)
    http, _ = logged_in(stub)
    body = http.get("/search?q=song").get_data(as_text=True)

    assert body.count('class="track"') == 5
    assert body.count('<div class="artist">A, B</div>') == 5
    for i in range(5):
        assert f'value="spotify:track:{i}"' in body
    assert "spotify:track:5" not in body


def test_search_with_fewer_results_renders_each():
    tracks = [mk_track(f"Song {i}", ["A"], f"spotify:track:{i}") for i in range(3)]
    http, _ = logged_in(StubClient(tracks=tracks))
    body = http.get("/search?q=song").get_data(as_text=True)
    assert body.count('class="track"') == 3


def test_search_track_without_art_gets_empty_src():
    http, _ = logged_in(StubClient(tracks=[mk_track("No Art", ["X"], "spotify:track:n")]))
    body = http.get("/search?q=x").get_data(as_text=True)
    assert 'src=""' in body


def test_search_escapes_markup_in_names():
    http, _ = logged_in(StubClient(tracks=[mk_track("<b>Loud</b>", ["A & B"], "spotify:track:e")]))
    body = http.get("/search?q=x").get_data(as_text=True)
    assert "<b>Loud</b>" not in body
    assert "&lt;b&gt;Loud&lt;/b&gt;" in body
    assert "A &amp; B" in body


def test_search_refreshes_once_before_searching():
    stub = StubClient(tracks=[])
    http, tokens = logged_in(stub)
    http.get("/search?q=anything")

    assert stub.ops() == ["refresh", "search"]
    assert stub.calls[0] == ("refresh", "ref-1")
    # search ran with the refreshed token
    assert stub.calls[1] == ("search", "anything", "acc-2")
    assert tokens.get_access_token() == "acc-2"


def test_search_failure_is_plain_text_200():
    stub = StubClient(fail={"search": SpotifyError("boom", status=502)})
    http, _ = logged_in(stub)
    resp = http.get("/search?q=x")

    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "Error searching tracks"


def test_search_malformed_track_is_plain_text_200():
    http, _ = logged_in(StubClient(tracks=[{"artists": []}]))
    resp = http.get("/search?q=x")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "Error searching tracks"


def test_search_continues_with_stale_token_when_refresh_fails():
    stub = StubClient(tracks=[], fail={"refresh": SpotifyError("invalid_grant", status=400)})
    http, tokens = logged_in(stub)
    resp = http.get("/search?q=x")

    assert resp.status_code == 200
    assert stub.ops() == ["refresh", "search"]
    assert stub.calls[1][2] == "acc-1"
    assert tokens.get_access_token() == "acc-1"


# -------- /queue --------

def test_queue_without_uri_makes_no_external_call():
    stub = StubClient()
    http, _ = logged_in(stub)
    resp = http.post("/queue", data={})

    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "No URI received." in body
    assert 'href="/login"' in body
    assert stub.ops() == []


def test_queue_adds_uri_once_and_confirms():
    stub = StubClient()
    http, _ = logged_in(stub)
    resp = http.post("/queue", data={"uri": "spotify:track:1"})

    assert resp.status_code == 200
    assert "Track added to the queue!" in resp.get_data(as_text=True)
    assert stub.ops() == ["refresh", "queue"]
    assert stub.calls[1] == ("queue", "spotify:track:1", "acc-2")


def test_queue_failure_shows_provider_message_with_200():
    stub = StubClient(fail={"queue": SpotifyError("Player command failed: No active device found", status=404)})
    http, _ = logged_in(stub)
    resp = http.post("/queue", data={"uri": "spotify:track:1"})

    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Error adding to the queue: Player command failed: No active device found" in body
    assert [op for op in stub.ops() if op == "queue"] == ["queue"]


def test_search_asks_provider_for_five_results():
    stub = StubClient(tracks=[])
    http, _ = logged_in(stub)
    http.get("/search?q=x")
    assert stub.last_limit == 5
