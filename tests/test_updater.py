import json
import threading
import urllib.error
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from pcompose.updater import get_latest_release_name

_RESPONSES = {
    "/latest": (200, json.dumps({"name": "v1.2.3", "tag_name": "x"}).encode()),
    "/noname": (200, json.dumps({"tag_name": "x"}).encode()),
    "/broken": (200, b"not json"),
    "/list": (200, json.dumps(["v1"]).encode()),
    "/missing": (404, json.dumps({"name": "from-error-body"}).encode()),
}


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        status, body = _RESPONSES.get(self.path, (404, b""))
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def base_url():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


def test_returns_release_name(base_url):
    assert get_latest_release_name(base_url + "/latest") == "v1.2.3"


def test_missing_name_gives_empty_string(base_url):
    assert get_latest_release_name(base_url + "/noname") == ""


def test_error_status_body_is_still_decoded(base_url):
    assert get_latest_release_name(base_url + "/missing") == "from-error-body"


def test_invalid_json_raises(base_url):
    with pytest.raises(ValueError):
        get_latest_release_name(base_url + "/broken")


def test_non_object_json_raises(base_url):
    with pytest.raises(ValueError):
        get_latest_release_name(base_url + "/list")


def test_unreachable_server_raises():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    port = server.server_address[1]
    server.server_close()
    with pytest.raises(urllib.error.URLError):
        get_latest_release_name(f"http://127.0.0.1:{port}/latest")