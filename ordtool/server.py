"""HTTP interface to the index, kept up to date by a background indexer."""

from __future__ import annotations

import json
import logging
import socket
import sys
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlsplit

from .index import Index
from .sat_point import OutPoint

logger = logging.getLogger(__name__)

_INDEX_RETRY_SECONDS = 0.1
_LIST_PREFIX = "/list/"
_JSON = "application/json"


class _IndexServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, sockaddr, family: int, index: Index) -> None:
        self.address_family = family
        self.index = index
        super().__init__(sockaddr, _Handler)


class _Handler(BaseHTTPRequestHandler):
    server: _IndexServer

    def do_GET(self) -> None:
        path = unquote(urlsplit(self.path).path)
        if path == "/status":
            self._respond(HTTPStatus.OK, b"")
        elif path.startswith(_LIST_PREFIX) and "/" not in path[len(_LIST_PREFIX):]:
            self._list(path[len(_LIST_PREFIX):])
        else:
            self._respond(HTTPStatus.NOT_FOUND, b"")

    def do_OPTIONS(self) -> None:
        self.send_response(HTTPStatus.OK)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _list(self, text: str) -> None:
        try:
            outpoint = OutPoint.parse(text)
        except ValueError as error:
            self._respond(
                HTTPStatus.BAD_REQUEST,
                f"Invalid URL: {error}".encode(),
                "text/plain; charset=utf-8",
            )
            return
        try:
            ranges = self.server.index.list(outpoint)
        except Exception as error:
            print(
                f"Error serving request for outpoint {outpoint}: {error}",
                file=sys.stderr,
            )
            self._respond(HTTPStatus.INTERNAL_SERVER_ERROR, b"null", _JSON)
            return
        if ranges is None:
            self._respond(HTTPStatus.NOT_FOUND, b"null", _JSON)
        else:
            body = json.dumps(ranges, separators=(",", ":")).encode()
            self._respond(HTTPStatus.OK, body, _JSON)

    def _respond(self, status: HTTPStatus, body: bytes, content_type: str | None = None) -> None:
        self.send_response(status)
        self.send_header("Access-Control-Allow-Origin", "*")
        if content_type is not None:
            self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def create_server(index: Index, address: str, port: int) -> ThreadingHTTPServer:
    """An HTTP server bound to the address, answering from the index."""
    infos = socket.getaddrinfo(address, port, type=socket.SOCK_STREAM)
    if not infos:
        raise OSError("Failed to get socket addrs")
    family, _, _, _, sockaddr = infos[0]
    return _IndexServer(sockaddr, family, index)


def _keep_indexing(index: Index, stop: threading.Event) -> None:
    while not stop.is_set():
        try:
            index.index_ranges()
        except Exception as error:
            logger.error("%s", error)
        stop.wait(_INDEX_RETRY_SECONDS)


def serve(options, address: str = "0.0.0.0", port: int = 80) -> None:
    """Serve the index over HTTP until interrupted, indexing new blocks meanwhile."""
    with Index.open(options) as index:
        stop = threading.Event()
        indexer = threading.Thread(
            target=_keep_indexing, args=(index, stop), name="indexer", daemon=True
        )
        indexer.start()
        try:
            with create_server(index, address, port) as server:
                try:
                    server.serve_forever()
                except KeyboardInterrupt:
                    logger.info("Shutting down")
        finally:
            stop.set()
            index.interrupt()
            indexer.join()