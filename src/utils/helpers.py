"""
Utility functions and helpers
"""

import json
import logging
from typing import Any, Dict

from fastapi import Request

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class RequestBodyError(ValueError):
    """Raised when a request body cannot be parsed into an object"""


async def parse_request_body(request: Request) -> Dict[str, Any]:
    """
    Parse a JSON or URL-encoded request body into a dictionary

    Bodies with any other content type are treated as empty.
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    if "json" not in content_type:
        return {}

    body = await request.body()
    if not body.strip():
        return {}

    try:
        data = json.loads(body)
    except ValueError as e:
        logger.warning(f"Failed to parse JSON body: {e}")
        raise RequestBodyError("Invalid request body") from e

    if not isinstance(data, dict):
        raise RequestBodyError("Invalid request body")
    return data
