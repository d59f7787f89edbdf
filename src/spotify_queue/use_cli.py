# Run the search & queue web app from the command line
import argparse
import logging
import sys
import threading
import webbrowser
from pathlib import Path
from typing import List

from .auth.make_dev_cert import write_dev_cert
from .config import ConfigError, configure_logging, load_settings
from .server import create_app

log = logging.getLogger(__name__)

BROWSER_DELAY_SECS = 1.0


def _open_browser_later(url: str) -> None:
    # app.run blocks, so open the login page once the server had a moment to bind
    timer = threading.Timer(BROWSER_DELAY_SECS, webbrowser.open, args=(url,))
    timer.daemon = True
    timer.start()


def cmd_serve(args) -> int:
    try:
        settings = load_settings()
    except ConfigError as e:
        log.error("%s", e)
        return 2

    if args.host:
        settings.host = args.host
    if args.port:
        settings.port = args.port

    app = create_app(settings)
    scheme = "https" if settings.ssl_context else "http"
    log.info("Server running at %s://%s:%s", scheme, settings.host, settings.port)

    if not args.no_browser:
        _open_browser_later(settings.login_url)

    app.run(host=settings.host, port=settings.port, ssl_context=settings.ssl_context)
    return 0


def cmd_make_cert(args) -> int:
    write_dev_cert(Path(args.cert), Path(args.key))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="queue-it")
    sub = p.add_subparsers(dest="cmd", required=True)

    serve = sub.add_parser("serve", help="Run the web app and open the login page")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--no-browser", action="store_true", help="Do not open the system browser")
    serve.set_defaults(func=cmd_serve)

    cert = sub.add_parser("make-cert", help="Write a self-signed localhost certificate")
    cert.add_argument("--cert", default="localhost.pem")
    cert.add_argument("--key", default="localhost-key.pem")
    cert.set_defaults(func=cmd_make_cert)

    return p


COMMANDS = ("serve", "make-cert")


def main(argv: List[str] | None = None) -> int:
    configure_logging()
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    # no subcommand means serve, and any options belong to serve
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help")):
        argv = ["serve", *argv]

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
