"""
Live-reload bookkeeping: which browser tabs view which page, and telling them to reload.
"""

from __future__ import annotations

import itertools
import logging
import queue
import re
from threading import Lock
from typing import Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

LIVERELOAD_PATH = "/__livereload"

CLIENT_SCRIPT = """<script>
(function () {
  var source = new EventSource("%s?path=" + encodeURIComponent(window.location.pathname));
  source.addEventListener("reload", function () { window.location.reload(); });
})();
</script>
""" % LIVERELOAD_PATH

_BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)


def normalize_page_path(path: str) -> str:
    """
    Canonical URL path of a page: leading slash, directories mapped to index.html.
    """
    path = "/" + path.lstrip("/")
    if path.endswith("/"):
        path += "index.html"
    return path


def inject_client(html: str) -> str:
    """Insert the live-reload script before the last ``</body>``, or append it."""
    matches = list(_BODY_CLOSE.finditer(html))
    if not matches:
        return html + CLIENT_SCRIPT
    position = matches[-1].start()
    return html[:position] + CLIENT_SCRIPT + html[position:]


class LiveReloadHub:
    """
    Registry of connected live-reload clients.

    Each client gets a queue; ``notify`` puts the reloaded page on the queue
    of every client viewing it. ``None`` on a queue means the hub closed.
    """

    def __init__(self) -> None:
        self._clients: Dict[int, Tuple[str, "queue.Queue[Optional[str]]"]] = {}
        self._ids = itertools.count(1)
        self._lock = Lock()

    def connect(self, page: str) -> Tuple[int, "queue.Queue[Optional[str]]"]:
        client_id = next(self._ids)
        channel: "queue.Queue[Optional[str]]" = queue.Queue()
        with self._lock:
            self._clients[client_id] = (normalize_page_path(page), channel)
        logger.debug("Live-reload client %d connected for %s", client_id, page)
        return client_id, channel

    def disconnect(self, client_id: int) -> None:
        with self._lock:
            self._clients.pop(client_id, None)

    def notify(self, pages: Optional[Iterable[str]] = None) -> int:
        """
        Ask clients to reload.

        Args:
            pages: Affected page paths; None reloads every client.

        Returns:
            Number of clients notified.
        """
        wanted = None if pages is None else {normalize_page_path(page) for page in pages}
        with self._lock:
            targets = [
                (page, channel)
                for page, channel in self._clients.values()
                if wanted is None or page in wanted
            ]
        for page, channel in targets:
            channel.put(page)
        if targets:
            logger.info("Live reload sent to %d client(s)", len(targets))
        return len(targets)

    def close(self) -> None:
        with self._lock:
            channels = [channel for _, channel in self._clients.values()]
            self._clients.clear()
        for channel in channels:
            channel.put(None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)
