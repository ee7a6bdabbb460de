"""JSON error responses shared by the error handlers and the token guard."""

from __future__ import annotations

import uuid

from flask import Response, g, jsonify
from werkzeug.exceptions import HTTPException


def current_request_id() -> str:
    request_id = g.get("request_id")
    if not request_id:
        request_id = str(uuid.uuid4())
        g.request_id = request_id
    return request_id


def error_response(error: HTTPException) -> Response:
    """Render an HTTP error as ``{error, message, request_id}``."""

    request_id = current_request_id()
    response = jsonify(
        {
            "error": getattr(error, "name", "Error"),
            "message": error.description,
            "request_id": request_id,
        }
    )
    response.status_code = error.code or 500
    response.headers.setdefault("X-Request-ID", request_id)
    if error.code == 401:
        response.headers.setdefault("WWW-Authenticate", "Bearer")
    return response
