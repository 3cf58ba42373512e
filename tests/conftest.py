import contextlib
import logging
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class StubSite:
    """Routes served by the local HTTP stub: path -> (status, body, delay)."""

    def __init__(self):
        self.root = ""
        self.routes = {}

    def add(self, path, body, *, status=200, delay=0.0):
        self.routes[path] = (status, body, delay)

    def toc(self, anchors_html):
        self.add("/table-of-contents/", f'<html><body><div class="entry-content">{anchors_html}</div></body></html>')


def chapter_page(title, paragraphs=None):
    """WordPress-like chapter page; paragraphs=None leaves out .entry-content."""
    content = ""
    if paragraphs is not None:
        content = '<div class="entry-content">' + "".join(paragraphs) + "</div>"
    return (
        "<html><head><title>x</title></head><body><article>"
        f'<h1 class="entry-title">{title}</h1>{content}'
        "</article></body></html>"
    )


@pytest.fixture
def site():
    stub = StubSite()

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            status, body, delay = stub.routes.get(self.path, (404, "<html><body>not found</body></html>", 0.0))
            if delay:
                time.sleep(delay)
            data = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    server.daemon_threads = True
    stub.root = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield stub
    server.shutdown()
    server.server_close()


@pytest.fixture
def dead_url():
    """URL on a local port nobody listens on."""
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}"


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    log = logging.getLogger("wildbow_epub")
    log.handlers.clear()
    log.setLevel(logging.NOTSET)
    log.propagate = True


@pytest.fixture
def garbage_url():
    """URL on a local server that answers every request with a non-HTTP status line."""
    srv = socket.socket()
    srv.bind(("127.0.0.1", 0))
    srv.listen()
    stop = threading.Event()

    def serve():
        while not stop.is_set():
            try:
                conn, _ = srv.accept()
            except OSError:
                return
            with conn, contextlib.suppress(OSError):
                conn.recv(4096)
                conn.sendall(b"GARBAGE\r\n\r\n")

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{srv.getsockname()[1]}"
    stop.set()
    srv.close()
