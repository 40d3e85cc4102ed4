# app/utils/responses.py
from typing import Any, Optional
from flask import jsonify


def api_response(data: Optional[Any] = None, message: Optional[str] = None, status: int = 200):
    """Success envelope shared by every endpoint: {success, message?, data?}."""
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status
