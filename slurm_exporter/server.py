"""HTTP server exposing the Slurm metrics and its command line."""

from __future__ import annotations

import argparse
import logging
import socket
from collections.abc import Sequence
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

from .accounts import AccountsCollector
from .cpus import CPUsCollector
from .exposition import Registry
from .gpus import GPUsCollector
from .node import NodeCollector
from .nodes import NodesCollector
from .partitions import PartitionsCollector
from .queue import QueueCollector
from .scheduler import SchedulerCollector
from .sshare import FairShareCollector
from .users import UsersCollector

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"
METRICS_PATH = "/metrics"

logger = logging.getLogger(__name__)


def build_registry(gpus_acct: bool) -> Registry:
    """Register every collector; the GPU collector only when asked for."""
    registry = Registry()
    for collector in (
        AccountsCollector(),
        CPUsCollector(),
        NodesCollector(),
        NodeCollector(),
        PartitionsCollector(),
        QueueCollector(),
        SchedulerCollector(),
        FairShareCollector(),
        UsersCollector(),
    ):
        registry.register(collector)
    if gpus_acct:
        registry.register(GPUsCollector())
    return registry


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into a host and a port number; the host may be empty."""
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not port:
        return host, 0
    if port.isascii() and port.isdigit():
        number = int(port)
    else:
        try:
            number = socket.getservbyname(port, "tcp")
        except OSError as exc:
            raise ValueError(f"unknown port {port!r}") from exc
    if number > 65535:
        raise ValueError(f"invalid port {port!r}")
    return host, number


def _handler_for(registry: Registry) -> type[BaseHTTPRequestHandler]:
    class MetricsHandler(BaseHTTPRequestHandler):
        def _respond(self, send_body: bool) -> None:
            if urlsplit(self.path).path != METRICS_PATH:
                self._send(404, "404 page not found\n", "text/plain; charset=utf-8", send_body)
                return
            try:
                body = registry.render()
            except Exception as exc:  # a failing collector must not kill the server
                logger.error("error gathering metrics: %s", exc)
                self._send(
                    500,
                    f"An error has occurred while serving metrics:\n\n{exc}\n",
                    "text/plain; charset=utf-8",
                    send_body,
                )
                return
            self._send(200, body, CONTENT_TYPE, send_body)

        def _send(self, status: int, text: str, content_type: str, send_body: bool) -> None:
            payload = text.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            if send_body:
                self.wfile.write(payload)

        def do_GET(self) -> None:
            self._respond(True)

        def do_HEAD(self) -> None:
            self._respond(False)

        def log_message(self, format: str, *args: object) -> None:
            logger.debug("%s - " + format, self.address_string(), *args)

    return MetricsHandler


def create_server(listen_address: str, registry: Registry) -> ThreadingHTTPServer:
    """Bind an HTTP server that serves ``registry`` at ``/metrics``."""
    host, port = parse_listen_address(listen_address)
    return ThreadingHTTPServer((host, port), _handler_for(registry))


_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {text!r}")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="slurm-exporter")
    parser.add_argument(
        "-listen-address",
        "--listen-address",
        dest="listen_address",
        default=":8080",
        help="The address to listen on for HTTP requests.",
    )
    parser.add_argument(
        "-gpus-acct",
        "--gpus-acct",
        dest="gpus_acct",
        nargs="?",
        const=True,
        default=False,
        type=_parse_bool,
        help="Enable GPUs accounting",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    registry = build_registry(args.gpus_acct)
    logger.info("Starting Server: %s", args.listen_address)
    logger.info("GPUs Accounting: %s", "true" if args.gpus_acct else "false")
    try:
        server = create_server(args.listen_address, registry)
    except (OSError, ValueError) as exc:
        logger.critical("%s", exc)
        return 1
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0