"""
Serving and watching: live-reload hub, dev HTTP server and file watcher.
"""

from .livereload import LiveReloadHub, inject_client, normalize_page_path
from .server import DevServer
from .watch import Watcher

__all__ = ["DevServer", "LiveReloadHub", "Watcher", "inject_client", "normalize_page_path"]
