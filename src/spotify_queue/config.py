# config.py: .env loading, settings and logging setup
from __future__ import annotations
import logging
import os
import sys
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlsplit, urlunsplit

from dotenv import load_dotenv, find_dotenv

# Loads ${workspace}/.env if present; doesn't overwrite existing env by default
load_dotenv(find_dotenv(), override=False)

DEFAULT_STATE = "noizee-state"
DEFAULT_PORT = 3001
DEFAULT_TIMEOUT = 30

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


class ConfigError(RuntimeError):
    pass


@dataclass
class Settings:
    client_id: str
    client_secret: str
    redirect_uri: str
    state: str = DEFAULT_STATE
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    ssl_cert: Optional[str] = None
    ssl_key: Optional[str] = None

    def missing(self) -> List[str]:
        required = {
            "SPOTIFY_CLIENT_ID": self.client_id,
            "SPOTIFY_CLIENT_SECRET": self.client_secret,
            "SPOTIFY_REDIRECT_URI": self.redirect_uri,
        }
        return [name for name, value in required.items() if not value]

    @property
    def login_url(self) -> str:
        """The redirect URI with its callback path swapped for /login."""
        parts = urlsplit(self.redirect_uri)
        path = parts.path
        if path.endswith("/callback"):
            path = path[: -len("/callback")] + "/login"
        else:
            path = path.rstrip("/") + "/login"
        return urlunsplit((parts.scheme, parts.netloc, path, "", ""))

    @property
    def ssl_context(self):
        if self.ssl_cert and self.ssl_key:
            return (self.ssl_cert, self.ssl_key)
        return None


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def load_settings(*, require: bool = True) -> Settings:
    try:
        port = int(_env("PORT", str(DEFAULT_PORT)))
        timeout = float(_env("SPOTIFY_HTTP_TIMEOUT", str(DEFAULT_TIMEOUT)))
    except ValueError as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    settings = Settings(
        client_id=_env("SPOTIFY_CLIENT_ID"),
        client_secret=_env("SPOTIFY_CLIENT_SECRET"),
        redirect_uri=_env("SPOTIFY_REDIRECT_URI"),
        state=_env("SPOTIFY_AUTH_STATE", DEFAULT_STATE) or DEFAULT_STATE,
        host=_env("HOST", "127.0.0.1") or "127.0.0.1",
        port=port,
        timeout=timeout,
        ssl_cert=_env("SSL_CERT") or None,
        ssl_key=_env("SSL_KEY") or None,
    )

    missing = settings.missing()
    if require and missing:
        raise ConfigError(f"Missing {', '.join(missing)} in environment.")
    return settings


def configure_logging(level: Optional[str] = None) -> None:
    """Send log records to stdout; safe to call more than once."""
    level_name = (level or _env("LOG_LEVEL", "INFO") or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Avoid adding handlers multiple times
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)
