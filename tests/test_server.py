import urllib.request

import pytest

from tagsmith.build import process_directory
from tagsmith.web import DevServer, LiveReloadHub, inject_client, normalize_page_path
from tagsmith.web.livereload import CLIENT_SCRIPT


def test_client_script_goes_before_closing_body() -> None:
    html = "<html><body><p>x</p></BODY></html>"

    injected = inject_client(html)

    assert injected == "<html><body><p>x</p>" + CLIENT_SCRIPT + "</BODY></html>"


def test_client_script_appended_without_body() -> None:
    assert inject_client("<p>x</p>") == "<p>x</p>" + CLIENT_SCRIPT


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("/", "/index.html"), ("about/", "/about/index.html"), ("/a.html", "/a.html")],
)
def test_page_paths_are_normalized(raw: str, expected: str) -> None:
    assert normalize_page_path(raw) == expected


def test_hub_notifies_matching_clients() -> None:
    hub = LiveReloadHub()
    first_id, first = hub.connect("/index.html")
    _, second = hub.connect("/about/index.html")

    assert hub.notify(["/"]) == 1
    assert first.get_nowait() == "/index.html"
    assert second.empty()

    assert hub.notify() == 2
    hub.disconnect(first_id)
    assert len(hub) == 1

    hub.close()
    assert second.get_nowait() == "/about/index.html"
    assert second.get_nowait() is None
    assert len(hub) == 0


def test_server_injects_live_reload_and_streams_events(sample_site: dict) -> None:
    process_directory(sample_site["config"])
    server = DevServer(sample_site["output"], host="127.0.0.1", port=0)
    server.start()
    try:
        with urllib.request.urlopen(server.url, timeout=5) as response:
            page = response.read().decode("utf-8")
        assert '<div class="card">Home</div>' in page
        assert "EventSource" in page

        with urllib.request.urlopen(server.url + "style.css", timeout=5) as response:
            assert response.read() == b"body { color: red; }\n"

        with urllib.request.urlopen(server.url + "about", timeout=5) as response:
            assert "EventSource" in response.read().decode("utf-8")

        events_url = server.url + "__livereload?path=/index.html"
        with urllib.request.urlopen(events_url, timeout=5) as stream:
            assert stream.readline() == b": connected\n"
            assert stream.readline() == b"\n"
            assert server.hub.notify(["/index.html"]) == 1
            assert stream.readline() == b"event: reload\n"
            assert stream.readline() == b"data: /index.html\n"
    finally:
        server.stop()
