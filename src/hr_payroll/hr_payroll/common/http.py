from __future__ import annotations

import logging
import math
from typing import Any, Optional

from flask import current_app, jsonify, request

from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def success(message: str, data: Any = None, code: int = 200, **extra):
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), code


def domain_error(e: DomainError):
    return jsonify({"success": False, "message": str(e)}), e.http_status


def server_error(e: Exception, message: str):
    logger.exception("%s: %s", message, e)
    body = {"success": False, "message": message}
    if current_app.config.get("DEBUG"):
        body["error"] = str(e)
    return jsonify(body), 500


def page_response(items: list, *, total: int, page: int, limit: int, **extra):
    """List envelope: data, total, page, totalPages, count."""
    total_pages = math.ceil(total / limit) if limit else 0
    body = {
        "success": True,
        "data": items,
        "total": total,
        "page": page,
        "totalPages": total_pages,
        "count": len(items),
    }
    body.update(extra)
    return jsonify(body), 200
