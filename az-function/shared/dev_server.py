"""Local development server for the relay.

Serves the same ``/api/fetch`` endpoint as the Azure Function so the web client
can run against ``http://127.0.0.1:<port>`` without deploying anything.

Usage:
    linkding-relay-dev [--host 127.0.0.1] [--port 5173]
"""

import os
import argparse
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

from .relay import RelayResponse, handle, json_response

logger = logging.getLogger("linkding_relay")

MOUNT_PATH = "/api/fetch"


class RelayRequestHandler(BaseHTTPRequestHandler):
    def _relay(self):
        # Mounted like a middleware prefix: /api/fetch and anything below it.
        path = urlsplit(self.path).path
        if path != MOUNT_PATH and not path.startswith(MOUNT_PATH + "/"):
            self._send(json_response(404, {"error": "not_found"}))
            return
        self._send(handle(self.command, self.path, dict(self.headers.items())))

    def _send(self, result: RelayResponse):
        self.send_response(result.status)
        for key, val in result.headers.items():
            self.send_header(key, val)
        # 1xx, 204 and 304 never carry a body.
        if result.status < 200 or result.status in (204, 304):
            self.end_headers()
            return
        self.send_header("Content-Length", str(len(result.body)))
        self.end_headers()
        if result.body and self.command != "HEAD":
            self.wfile.write(result.body)

    do_GET = _relay
    do_HEAD = _relay
    do_POST = _relay
    do_PUT = _relay
    do_PATCH = _relay
    do_DELETE = _relay
    do_OPTIONS = _relay

    def log_message(self, format, *args):
        logger.info("dev_server: " + format % args)


def make_server(host: str, port: int) -> ThreadingHTTPServer:
    return ThreadingHTTPServer((host, port), RelayRequestHandler)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Local CORS relay for the linkding web client")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("RELAY_DEV_PORT", "5173")),
        help="Port to listen on (default: 5173, or RELAY_DEV_PORT)",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    server = make_server(args.host, args.port)
    logger.info("dev_server listening on http://%s:%d%s", args.host, server.server_address[1], MOUNT_PATH)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
