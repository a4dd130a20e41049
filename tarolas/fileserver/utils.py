"""Request parameter and response helpers for the fileserver transport."""

# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
import json
import re
from typing import Any, Dict

from webob import Request, Response

from tarolas.errors import ErrorKind, StorageError
from tarolas.files import FileStream
from tarolas.models import ROOT_SYMBOL

JSON_API_CONTENT_TYPE = "application/vnd.api+json"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": (
        "Accept, Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization"
    ),
}

_INTEGER = re.compile(r"[+-]?[0-9]+")


def required_single_param(request: Request, name: str) -> str:
    """Return the value of a query parameter that must be given exactly once.

    The value is stripped of surrounding whitespace and may not be empty.
    """
    values = request.GET.getall(name)
    if not values:
        raise StorageError(ErrorKind.PARAMETER_MISSING, name)
    if len(values) > 1:
        raise StorageError(ErrorKind.DUPLICATE_PARAMETER, name)
    value = values[0].strip()
    if not value:
        raise StorageError(ErrorKind.PARAMETER_EMPTY, name)
    return value


def optional_single_param(request: Request, name: str, default: str) -> str:
    """Return the value of an optional query parameter, or default.

    A blank value counts as absent; a repeated parameter is an error.
    """
    values = request.GET.getall(name)
    if not values:
        return default
    if len(values) > 1:
        raise StorageError(ErrorKind.DUPLICATE_PARAMETER, name)
    return values[0].strip() or default


def required_name_param(request: Request) -> str:
    """Return the ``name`` parameter, which must begin with a slash."""
    name = required_single_param(request, "name")
    if not name.startswith(ROOT_SYMBOL):
        raise StorageError(ErrorKind.NAME_WITHOUT_SLASH, name)
    return name


def required_int_param(request: Request, name: str) -> int:
    """Return a required query parameter parsed as a base 10 integer."""
    value = required_single_param(request, name)
    if not _INTEGER.fullmatch(value):
        raise StorageError(ErrorKind.PARAMETER_NOT_INTEGER, name)
    return int(value)


def flag_param(request: Request, name: str) -> bool:
    """Return an optional boolean flag, true only for ``true`` in any case."""
    return optional_single_param(request, name, "false").lower() == "true"


def _json_response(payload: Dict[str, Any], status: int = 200) -> Response:
    body = json.dumps(payload, indent=2).encode("utf-8")
    return Response(body=body, status=status, content_type=JSON_API_CONTENT_TYPE, charset=None)


def data_response(data: Any) -> Response:
    """Return a 200 response wrapping data in a ``data`` envelope."""
    return _json_response({"data": data})


def error_response(error: StorageError) -> Response:
    """Return an error envelope with the HTTP status taken from the error."""
    return _json_response({"errors": [error.to_dict()]}, status=int(error.status))


def internal_error_response(detail: str) -> Response:
    """Return a 500 error envelope for failures outside the error taxonomy."""
    error = {"status": "500", "title": "internal server error", "detail": detail}
    return _json_response({"errors": [error]}, status=500)


def stream_response(stream: FileStream) -> Response:
    """Return a 200 response whose body is produced by the stream.

    The WSGI server closes the stream once the body is sent or the
    connection drops.
    """
    response = Response(app_iter=stream)
    response.headers["Content-Type"] = stream.content_type
    return response


def add_cors_headers(response: Response) -> Response:
    """Add the CORS headers to a response."""
    for key, value in CORS_HEADERS.items():
        response.headers[key] = value
    return response
