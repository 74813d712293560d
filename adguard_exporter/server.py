"""HTTP server exposing the collected metrics."""

import socket
from socketserver import ThreadingMixIn
from typing import Callable, Iterable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer
from wsgiref.simple_server import make_server as make_wsgi_server

from prometheus_client import CollectorRegistry, make_wsgi_app

from .client import AdGuardClient
from .exporter import AdGuardCollector
from .models import ExporterConfig
from .utils import parse_bind_address

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """Handle every scrape in its own thread."""
    daemon_threads = True


class QuietHandler(WSGIRequestHandler):
    """Do not log every scrape."""

    def log_message(self, format, *args):
        pass


def make_app(registry: CollectorRegistry, path: str = '/metrics') -> WSGIApp:
    """Serve the registry on one path and 404 everything else."""
    metrics_app = make_wsgi_app(registry)

    def app(environ, start_response):
        if environ.get('PATH_INFO', '') != path:
            start_response('404 Not Found', [('Content-Type', 'text/plain; charset=utf-8')])
            return [b'404 page not found\n']
        return metrics_app(environ, start_response)

    return app


def _server_class(host: str) -> type:
    """Pick the address family that can bind the host."""
    infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
    family = infos[0][0] if infos else socket.AF_INET

    class Server(ThreadingWSGIServer):
        address_family = family

    return Server


def make_server(address: str, app: WSGIApp) -> WSGIServer:
    """Bind a threading WSGI server to a "host:port" address."""
    host, port = parse_bind_address(address)
    return make_wsgi_server(host, port, app, server_class=_server_class(host), handler_class=QuietHandler)


def build_registry(config: ExporterConfig) -> CollectorRegistry:
    registry = CollectorRegistry()
    registry.register(AdGuardCollector(AdGuardClient.from_config(config), verbose=config.verbose))
    return registry


def create_server(config: ExporterConfig) -> WSGIServer:
    """Wire client, collector, registry and HTTP server for a configuration."""
    return make_server(config.address, make_app(build_registry(config), config.path))


def serve(config: ExporterConfig) -> None:
    """Serve metrics until interrupted."""
    server = create_server(config)
    print(f"Listening on {config.address}{config.path}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
