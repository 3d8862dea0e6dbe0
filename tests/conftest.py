"""Shared pytest fixtures for statusprobe tests."""

from __future__ import annotations

import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Iterator

import pytest


class _TargetHandler(BaseHTTPRequestHandler):
    """Tiny origin server with a few behaviours the prober cares about.

    - /status/<code>   reply with <code> and a short body
    - /slow/<seconds>  wait before sending anything
    - /redirect        302 to /status/200
    - /big             200 with a 1 MiB body
    - /chain/<n>/<s>   wait <s> seconds, then 302 to /chain/<n-1>/<s>; 200 at 0
    """

    protocol_version = "HTTP/1.1"

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        pass

    def _reply(self, code: int, body: bytes = b"ok", headers: dict | None = None) -> None:
        self.send_response(code)
        self.send_header("Content-Length", str(len(body)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:  # noqa: N802
        self.server.hits.append(self.path)
        parts = self.path.strip("/").split("/")
        if parts[0] == "status":
            self._reply(int(parts[1]))
        elif parts[0] == "slow":
            time.sleep(float(parts[1]))
            self._reply(200)
        elif parts[0] == "redirect":
            self._reply(302, b"", {"Location": "/status/200"})
        elif parts[0] == "chain":
            hops, delay = int(parts[1]), parts[2]
            time.sleep(float(delay))
            if hops > 0:
                self._reply(302, b"", {"Location": f"/chain/{hops - 1}/{delay}"})
            else:
                self._reply(200)
        elif parts[0] == "big":
            self._reply(200, b"x" * (1024 * 1024))
        else:
            self._reply(404, b"not found")


@pytest.fixture
def origin_server() -> Iterator[ThreadingHTTPServer]:
    """Local HTTP server running in a background thread; `hits` lists request paths."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _TargetHandler)
    server.daemon_threads = True
    server.hits = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def origin(origin_server: ThreadingHTTPServer) -> str:
    """Base URL of the local origin server."""
    return f"http://127.0.0.1:{origin_server.server_address[1]}"


@pytest.fixture
def closed_port_url() -> str:
    """A URL on a local port that nothing listens on (connection refused)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/"


@pytest.fixture
def write_json(tmp_path: Path):
    """Write a JSON document to a temp file and return its path as a string."""

    def _write(data, name: str = "config.json") -> str:
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def drip_origin() -> Iterator[str]:
    """URL of a raw-socket server that sends `200 OK` at once, then one header line every 0.6s.

    Every single read finishes well inside a one second read timeout, but the
    full header block takes about six seconds.
    """
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(5)
    stop = threading.Event()

    def handle(conn: socket.socket) -> None:
        with conn:
            try:
                conn.recv(4096)
                conn.sendall(b"HTTP/1.1 200 OK\r\n")
                for i in range(10):
                    if stop.wait(0.6):
                        return
                    conn.sendall(f"X-Drip-{i}: {i}\r\n".encode())
                conn.sendall(b"Content-Length: 0\r\nConnection: close\r\n\r\n")
            except OSError:
                pass

    def serve() -> None:
        while not stop.is_set():
            try:
                conn, _ = listener.accept()
            except OSError:
                return
            threading.Thread(target=handle, args=(conn,), daemon=True).start()

    threading.Thread(target=serve, daemon=True).start()
    try:
        yield f"http://127.0.0.1:{listener.getsockname()[1]}/"
    finally:
        stop.set()
        listener.close()
