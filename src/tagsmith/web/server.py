"""
Static HTTP server for the output tree with live-reload injection.
"""

from __future__ import annotations

import logging
import queue
from functools import partial
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from threading import Thread
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from ..util import read_text_file
from .livereload import LIVERELOAD_PATH, LiveReloadHub, inject_client

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0
HTML_SUFFIXES = (".html", ".htm")


class LiveReloadRequestHandler(SimpleHTTPRequestHandler):
    """Serves files from the output root; HTML pages carry the live-reload client."""

    def __init__(self, *args, hub: LiveReloadHub, **kwargs) -> None:
        self.hub = hub
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        if parts.path == LIVERELOAD_PATH:
            page = parse_qs(parts.query).get("path", ["/"])[0]
            self._stream_events(page)
            return
        html_file = self._html_file(parts.path)
        if html_file is None:
            super().do_GET()
            return
        self._send_html(html_file)

    def _html_file(self, url_path: str) -> Optional[Path]:
        target = Path(self.translate_path(url_path))
        if target.is_dir():
            if not url_path.endswith("/"):
                # Let the base class issue its trailing-slash redirect.
                return None
            target = target / "index.html"
        if target.suffix.lower() in HTML_SUFFIXES and target.is_file():
            return target
        return None

    def _send_html(self, path: Path) -> None:
        try:
            text = read_text_file(path, errors="replace")
        except OSError:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return
        body = inject_client(text).encode("utf-8")
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-cache")
        self.end_headers()
        self.wfile.write(body)

    def _stream_events(self, page: str) -> None:
        client_id, channel = self.hub.connect(page)
        try:
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", "text/event-stream")
            self.send_header("Cache-Control", "no-cache")
            self.send_header("Connection", "keep-alive")
            self.end_headers()
            self.wfile.write(b": connected\n\n")
            self.wfile.flush()
            while True:
                try:
                    message = channel.get(timeout=KEEPALIVE_SECONDS)
                except queue.Empty:
                    self.wfile.write(b": ping\n\n")
                    self.wfile.flush()
                    continue
                if message is None:
                    break
                self.wfile.write(f"event: reload\ndata: {message}\n\n".encode("utf-8"))
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("Live-reload client %d went away", client_id)
        finally:
            self.hub.disconnect(client_id)
            self.close_connection = True

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class DevServer:
    """
    Threaded HTTP server for a build's output directory.

    Attributes:
        root: Directory served.
        hub: Live-reload registry shared with the watcher.
    """

    def __init__(self, root: Path, host: str = "127.0.0.1", port: int = 8000, hub: Optional[LiveReloadHub] = None) -> None:
        self.root = Path(root).expanduser().resolve()
        self.hub = hub or LiveReloadHub()
        handler = partial(LiveReloadRequestHandler, directory=str(self.root), hub=self.hub)
        self.httpd = ThreadingHTTPServer((host, port), handler)
        self._thread: Optional[Thread] = None

    @property
    def url(self) -> str:
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}/"

    def start(self) -> None:
        self._thread = Thread(target=self.httpd.serve_forever, name="tagsmith-http", daemon=True)
        self._thread.start()
        logger.info("Serving %s at %s", self.root, self.url)

    def stop(self) -> None:
        self.hub.close()
        if self._thread is not None:
            self.httpd.shutdown()
            self._thread.join(timeout=5)
            self._thread = None
        self.httpd.server_close()
