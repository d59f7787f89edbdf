# HTML fragments returned by the web handlers. Plain strings, no template engine.
from __future__ import annotations
from typing import Iterable

from markupsafe import escape

from .tracks import TrackResult

BASE_STYLES = """
  <style>
    body {
      font-family: 'Arial', sans-serif;
      background: #f9f9f9;
      padding: 20px;
      color: #333;
    }
    .search-box {
      max-width: 500px;
      margin: 0 auto 30px;
      display: flex;
      background: #eee;
      border-radius: 50px;
      padding: 10px 20px;
    }
    .search-box input {
      border: none;
      background: transparent;
      flex: 1;
      font-size: 18px;
      outline: none;
    }
    .search-box button {
      background: none;
      border: none;
      cursor: pointer;
      font-size: 18px;
    }
    .track {
      display: flex;
      align-items: center;
      margin-bottom: 20px;
      background: white;
      padding: 10px 15px;
      border-radius: 15px;
      box-shadow: 0 2px 8px rgba(0,0,0,0.05);
    }
    .track img {
      width: 64px;
      height: 64px;
      border-radius: 10px;
      object-fit: cover;
      margin-right: 15px;
    }
    .track-info {
      flex: 1;
    }
    .track-info .name {
      font-size: 16px;
      font-weight: bold;
    }
    .track-info .artist {
      font-size: 14px;
      color: #666;
    }
    .track form {
      margin: 0;
    }
    .add-button {
      width: 36px;
      height: 36px;
      background: #b44cf3;
      border-radius: 50%;
      border: none;
      color: white;
      font-size: 22px;
      font-weight: bold;
      cursor: pointer;
    }
    a {
      display: inline-block;
      margin-top: 30px;
      color: #888;
      text-decoration: none;
    }
  </style>
"""

AUTH_FAILED = "Authentication failed"
SEARCH_FAILED = "Error searching tracks"
NO_URI = "No URI received."
QUEUE_OK = "Track added to the queue!"

BACK_LINK = '<a href="/login">&#11013; Back</a>'


def search_page() -> str:
    return f"""{BASE_STYLES}
      <div class="search-box">
        <form action="/search" method="get" style="display: flex; width: 100%;">
          <input type="text" name="q" placeholder="Search for a song" required />
          <button type="submit">&#128269;</button>
        </form>
      </div>
    """


def track_row(track: TrackResult) -> str:
    return f"""
        <div class="track">
          <img src="{escape(track.album_art_url)}" alt="cover" />
          <div class="track-info">
            <div class="name">{escape(track.name)}</div>
            <div class="artist">{escape(track.artist_names)}</div>
          </div>
          <form action="/queue" method="post">
            <input type="hidden" name="uri" value="{escape(track.uri)}" />
            <button class="add-button" type="submit">+</button>
          </form>
        </div>"""


def results_page(tracks: Iterable[TrackResult]) -> str:
    rows = "".join(track_row(t) for t in tracks)
    return f"{BASE_STYLES}<h2>Results:</h2>{rows}\n{BACK_LINK}"


def missing_uri_page() -> str:
    return f"<p>&#10060; {NO_URI}</p>{BACK_LINK}"


def queued_page() -> str:
    return f"{BASE_STYLES}<p>&#9989; {QUEUE_OK}</p>{BACK_LINK}"


def queue_error_page(message: str) -> str:
    return f"{BASE_STYLES}<p>&#10060; Error adding to the queue: {escape(message)}</p>{BACK_LINK}"
