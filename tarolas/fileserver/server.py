# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""WSGI server exposing the root directory over HTTP (threaded backend).

This module exposes a minimal WebOb-based WSGI application hosted by a
threading ``wsgiref`` server under ``oslo_service``. It implements the
directory and file endpoints on top of :mod:`tarolas.directory` and
:mod:`tarolas.files`. Results are wrapped in a ``data`` envelope, failures
in an ``errors`` envelope. TLS support is configured via
``oslo_service.sslutils`` and ``oslo_config``.
"""

import os
import ssl
import threading
from socketserver import ThreadingMixIn
from typing import Callable, Dict, Tuple
from wsgiref.simple_server import WSGIServer, make_server

from oslo_config import cfg
from oslo_log import log as logging
from oslo_service import service, sslutils
from webob import Request, Response

from tarolas import __version__, directory, files
from tarolas.errors import CHECK_SERVER_LOG, ErrorKind, StorageError

from .utils import (
    add_cors_headers,
    data_response,
    error_response,
    flag_param,
    internal_error_response,
    required_int_param,
    required_name_param,
    stream_response,
)

LOG = logging.getLogger(__name__)


fileserver_opts = [
    cfg.StrOpt(
        "host",
        default=os.environ.get("TAROLAS_HOST", "0.0.0.0"),
        help="Listen address for the file server",
    ),
    cfg.IntOpt(
        "port",
        default=int(os.environ.get("TAROLAS_PORT", "8099")),
        min=1,
        help="TCP listen port for the file server",
    ),
    cfg.StrOpt(
        "root_directory",
        default=os.environ.get("TAROLAS_ROOT_DIRECTORY"),
        help="Directory below which all files and directories are stored",
    ),
    cfg.StrOpt(
        "url_prefix",
        default="",
        help="Prefix prepended to every API route",
    ),
    cfg.IntOpt(
        "buffered_read_limit",
        default=files.DEFAULT_BUFFERED_READ_LIMIT,
        min=0,
        help=(
            "Bounded reads up to this many bytes are read completely before the "
            "response starts; larger reads are streamed"
        ),
    ),
]

CONF = cfg.CONF
CONF.register_opts(fileserver_opts, group="fileserver")
sslutils.register_opts(CONF)


def _root_directory() -> str:
    """Return the absolute root directory all operations are scoped to."""
    root = os.environ.get("TAROLAS_ROOT_DIRECTORY") or CONF.fileserver.root_directory
    if not root:
        raise RuntimeError("root directory is not configured")
    return os.path.abspath(root)


def directory_read_ep(request: Request, root: str) -> Response:
    """Read the immediate content of a directory."""
    name = required_name_param(request)
    return data_response(directory.content(root, name).to_payload())


def directory_tree_ep(request: Request, root: str) -> Response:
    """Read the whole directory tree, files included."""
    return data_response(directory.tree(root).to_payload())


def directory_list_ep(request: Request, root: str) -> Response:
    """List all directories below a directory with relative paths."""
    name = required_name_param(request)
    return data_response(directory.list_directories(root, name))


def directory_create_ep(request: Request, root: str) -> Response:
    """Create a directory, optionally with all missing parents."""
    name = required_name_param(request)
    recursive = flag_param(request, "all")
    return data_response(directory.create(root, name, recursive).to_payload())


def directory_delete_ep(request: Request, root: str) -> Response:
    """Delete a directory, optionally with all of its content."""
    name = required_name_param(request)
    recursive = flag_param(request, "all")
    return data_response(directory.delete(root, name, recursive).to_payload())


def file_read_ep(request: Request, root: str) -> Response:
    """Read a window of a file, base64 encoded."""
    name = required_name_param(request)
    offset = required_int_param(request, "offset")
    size = required_int_param(request, "size")
    stream = files.read(root, name, offset, size, CONF.fileserver.buffered_read_limit)
    return stream_response(stream)


def file_write_ep(request: Request, root: str) -> Response:
    """Write the base64 encoded request body to a file."""
    name = required_name_param(request)
    return data_response(files.write(root, name, request.body_file).to_payload())


def file_append_ep(request: Request, root: str) -> Response:
    """Append the base64 encoded request body to a file."""
    name = required_name_param(request)
    return data_response(files.append(root, name, request.body_file).to_payload())


def file_delete_ep(request: Request, root: str) -> Response:
    """Delete a file."""
    name = required_name_param(request)
    return data_response(files.delete(root, name).to_payload())


def file_exists_ep(request: Request, root: str) -> Response:
    """Check whether a file exists."""
    name = required_name_param(request)
    return data_response(files.exists(root, name).to_payload())


def file_checksum_ep(request: Request, root: str) -> Response:
    """Calculate the SHA-256 checksum of a file."""
    name = required_name_param(request)
    return data_response(files.checksum(root, name).to_payload())


def shared_file_ep(request: Request, root: str, name: str) -> Response:
    """Serve the raw content of a file shared as a link."""
    return stream_response(files.served_content(root, name))


Endpoint = Callable[[Request, str], Response]

ROUTES: Dict[str, Tuple[str, Endpoint]] = {
    "/directory/read": ("GET", directory_read_ep),
    "/directory/tree": ("GET", directory_tree_ep),
    "/directory/list": ("GET", directory_list_ep),
    "/directory/create": ("POST", directory_create_ep),
    "/directory/delete": ("DELETE", directory_delete_ep),
    "/file/read": ("GET", file_read_ep),
    "/file/write": ("POST", file_write_ep),
    "/file/append": ("PUT", file_append_ep),
    "/file/delete": ("DELETE", file_delete_ep),
    "/file/exists": ("GET", file_exists_ep),
    "/file/checksum": ("GET", file_checksum_ep),
}

SHARED_ROUTE = "/shared/"


def _dispatch(request: Request, method: str, endpoint: Callable[[], Response]) -> Response:
    """Check the request method and run the endpoint, mapping its errors."""
    if request.method == "OPTIONS":
        return Response(status=200)
    if request.method != method:
        return error_response(StorageError(ErrorKind.METHOD_NOT_SUPPORTED, request.method))
    try:
        return endpoint()
    except StorageError as exc:
        return error_response(exc)
    except Exception as exc:
        LOG.exception("%s %s failed: %s", request.method, request.path_info, exc)
        return internal_error_response(CHECK_SERVER_LOG)


def _route(request: Request) -> Response:
    """Dispatch incoming requests to the appropriate endpoint handler."""
    path = request.path_info or "/"
    if path == "/healthz" and request.method == "GET":
        return Response(json_body={"status": "ok"})
    prefix = CONF.fileserver.url_prefix
    if prefix:
        if not path.startswith(prefix):
            return Response(status=404)
        path = path[len(prefix) :]  # noqa: E203
    if path in ROUTES:
        method, endpoint = ROUTES[path]
        return _dispatch(request, method, lambda: endpoint(request, _root_directory()))
    if path.startswith(SHARED_ROUTE):
        name = "/" + path[len(SHARED_ROUTE) :]  # noqa: E203
        return _dispatch(
            request, "GET", lambda: shared_file_ep(request, _root_directory(), name)
        )
    return Response(status=404)


def application(environ, start_response):
    """WSGI application callable."""
    request = Request(environ)
    response = add_cors_headers(_route(request))
    return response(environ, start_response)


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """Threading-based WSGI server.

    Request threads are joined on close so in-flight requests can finish
    during a graceful shutdown.
    """

    daemon_threads = False
    block_on_close = True


class ThreadingWSGIService(service.ServiceBase):
    """Threading-based WSGI service."""

    def __init__(self, app, host: str, port: int, ssl_context: ssl.SSLContext | None):
        self._app = app
        self._host = host
        self._port = port
        self._ssl_context = ssl_context
        self._httpd = None
        self._thread = None

    def start(self):
        """Start the WSGI service."""
        self._httpd = make_server(
            self._host, self._port, self._app, server_class=ThreadingWSGIServer
        )
        if self._ssl_context is not None:
            self._httpd.socket = self._ssl_context.wrap_socket(
                self._httpd.socket, server_side=True
            )
        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name="fileserver", daemon=True
        )
        self._thread.start()

    def stop(self, graceful=True):
        """Stop the WSGI service.

        A graceful stop waits for in-flight requests; the launcher bounds
        the wait with ``graceful_shutdown_timeout``.
        """
        if self._httpd is not None:
            self._httpd.shutdown()
            if graceful:
                self._httpd.server_close()

    def wait(self):
        """Wait for the WSGI service to finish."""
        if self._thread is not None:
            self._thread.join()

    def reset(self, exiting=False):
        """Reset service state (no-op)."""
        return


def _ssl_context() -> ssl.SSLContext | None:
    """Build the server TLS context from the ``[ssl]`` options, if enabled."""
    if not sslutils.is_enabled(CONF):
        LOG.info("TLS disabled for fileserver")
        return None
    ssl_ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ssl_ctx.load_cert_chain(CONF.ssl.cert_file, CONF.ssl.key_file)
    if CONF.ssl.ca_file:
        ssl_ctx.load_verify_locations(CONF.ssl.ca_file)
        ssl_ctx.verify_mode = ssl.CERT_REQUIRED
        LOG.info("mTLS enabled for fileserver")
    else:
        LOG.info("TLS enabled for fileserver")
    return ssl_ctx


def _log_summary(root: str) -> None:
    LOG.info("Tarolas - the lightweight file server v%s", __version__)
    LOG.info("  port           : %d", CONF.fileserver.port)
    LOG.info("  root directory : %s", root)
    LOG.info("  URL prefix     : %s", CONF.fileserver.url_prefix or "(none)")


def main(argv=None) -> int:
    """Parse configuration and run the file server until signalled."""
    logging.register_options(CONF)
    CONF(
        argv,
        project="tarolas",
        prog="tarolas-server",
        version=__version__,
    )
    logging.setup(CONF, "tarolas")

    try:
        root = _root_directory()
    except RuntimeError as exc:
        LOG.error("Cannot start fileserver: %s", exc)
        return 1
    if not os.path.isdir(root):
        LOG.error("Cannot start fileserver: root directory %s does not exist", root)
        return 1
    _log_summary(root)

    service_obj = ThreadingWSGIService(
        application, CONF.fileserver.host, CONF.fileserver.port, _ssl_context()
    )
    launcher = service.ServiceLauncher(CONF)
    launcher.launch_service(service_obj, workers=1)
    launcher.wait()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
