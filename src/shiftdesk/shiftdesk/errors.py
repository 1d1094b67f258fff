from __future__ import annotations

import logging

import mysql.connector
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .core.exceptions import DomainError

log = logging.getLogger(__name__)


def fail(message="Bad Request", status=400, code=None, detail=None):
    err = {"message": message}
    if code:
        err["code"] = code
    if detail:
        err["detail"] = detail
    return jsonify({"success": False, "error": err}), status


def register_error_handlers(app: Flask) -> None:
    """Map attendance errors onto JSON responses with their stable codes."""

    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        return fail(e.message, status=e.http_status, code=e.code, detail=dict(e.details) or None)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(mysql.connector.Error)
    def _db(e: mysql.connector.Error):
        log.exception("database error")
        return fail("Internal server error", status=500, code="common.databaseError")

    @app.errorhandler(Exception)
    def _500(e: Exception):
        log.exception("unhandled error")
        return fail("Internal server error", status=500)
