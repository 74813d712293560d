"""Shared fixtures: a stub AdGuard Home upstream and a running exporter."""

import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Optional, Tuple

import pytest
from prometheus_client.parser import text_string_to_metric_families

from adguard_exporter.models import ExporterConfig
from adguard_exporter.server import create_server

SAMPLE_STATS = {
    "num_dns_queries": 10,
    "num_blocked_filtering": 2,
    "avg_processing_time": 0.5,
    "num_replaced_safebrowsing": 1,
    "num_replaced_safesearch": 0,
    "top_upstreams_avg_time": [{"1.1.1.1": 0.02}],
}


class StubUpstream:
    """Programmable stand-in for the AdGuard Home control API."""

    def __init__(self):
        self.status = 200
        self.body: bytes = json.dumps(SAMPLE_STATS).encode()
        self.delay = 0.0
        self.chunk_size = 0  # write the body in pieces of this size when set
        self.chunk_delay = 0.0
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self._server: Optional[ThreadingHTTPServer] = None

    def respond_json(self, payload, status: int = 200):
        self.respond(json.dumps(payload).encode(), status)

    def respond(self, body: bytes, status: int = 200):
        self.body = body
        self.status = status

    @property
    def endpoint(self) -> str:
        host, port = self._server.server_address[:2]
        return f"{host}:{port}"

    def start(self):
        stub = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self):
                stub.requests.append((self.path, dict(self.headers)))
                if stub.delay:
                    time.sleep(stub.delay)
                self.send_response(stub.status)
                self.send_header('Content-Type', 'application/json')
                self.send_header('Content-Length', str(len(stub.body)))
                self.end_headers()
                if not stub.chunk_size:
                    self.wfile.write(stub.body)
                    return
                for start in range(0, len(stub.body), stub.chunk_size):
                    self.wfile.write(stub.body[start:start + stub.chunk_size])
                    self.wfile.flush()
                    time.sleep(stub.chunk_delay)

            def log_message(self, format, *args):
                pass

        self._server = ThreadingHTTPServer(('127.0.0.1', 0), Handler)
        self._server.daemon_threads = True
        threading.Thread(target=self._server.serve_forever, daemon=True).start()

    def stop(self):
        self._server.shutdown()
        self._server.server_close()


@pytest.fixture
def upstream():
    stub = StubUpstream()
    stub.start()
    yield stub
    stub.stop()


@pytest.fixture
def unused_endpoint() -> str:
    """An address nothing is listening on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"127.0.0.1:{port}"


@pytest.fixture
def run_exporter():
    """Start an exporter for a config and return its base URL."""
    servers = []

    def start(config: ExporterConfig) -> str:
        server = create_server(config)
        servers.append(server)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        host, port = server.server_address[:2]
        return f"http://{host}:{port}"

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


def parse_samples(text: str) -> Dict[Tuple[str, Tuple[Tuple[str, str], ...]], float]:
    """Index exposition output by (sample name, sorted labels)."""
    samples = {}
    for family in text_string_to_metric_families(text):
        for sample in family.samples:
            samples[(sample.name, tuple(sorted(sample.labels.items())))] = sample.value
    return samples
