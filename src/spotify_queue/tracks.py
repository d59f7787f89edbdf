from dataclasses import dataclass
from typing import Iterable, List

MAX_RESULTS = 5


# Built fresh for every search and thrown away once the page is rendered
@dataclass
class TrackResult:
    id: str
    name: str
    artists: List[str]
    album_art_url: str
    uri: str

    @property
    def artist_names(self) -> str:
        return ", ".join(self.artists)


def track_from_item(track: dict) -> TrackResult:
    # Raises KeyError/TypeError if the item isn't shaped like a Spotify track
    images = (track.get("album") or {}).get("images") or []
    art = ""
    if images and images[0]:
        art = images[0].get("url") or ""
    return TrackResult(
        id=track.get("id") or "",
        name=track["name"] or "",
        artists=[a.get("name", "") for a in track.get("artists", [])],
        album_art_url=art,
        uri=track["uri"],
    )


def top_results(items: Iterable[dict], limit: int = MAX_RESULTS) -> List[TrackResult]:
    out: List[TrackResult] = []
    for item in items:
        if len(out) >= limit:
            break
        out.append(track_from_item(item))
    return out
