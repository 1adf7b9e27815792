"""Request payload parsing for the signaling routes."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from rtcsignal.core.errors import SignalError
from rtcsignal.server.http import HttpRequest


class BodyParseError(SignalError):
    """Raised when a request body is missing, not JSON, or has the wrong shape."""


class RemoteDescriptionBody(BaseModel):
    """Body of ``POST .../remote-description``."""

    model_config = ConfigDict(extra="ignore")

    sdp: str
    type: Literal["offer", "answer", "pranswer", "rollback"]


def request_json(request: HttpRequest) -> Any:
    """Return the JSON payload of a request.

    A body already parsed upstream (``request.json_body``) wins over the raw
    body text.

    Raises:
        BodyParseError: If there is no body or it is not valid JSON.
    """
    if request.json_body is not None:
        return request.json_body
    if not request.body.strip():
        raise BodyParseError("Request body required")
    try:
        return json.loads(request.body)
    except json.JSONDecodeError as e:
        raise BodyParseError(f"Invalid JSON: {e}") from e


def parse_remote_description(request: HttpRequest) -> RemoteDescriptionBody:
    """Parse and validate a remote-description body.

    Raises:
        BodyParseError: If the body is not an object with string ``sdp`` and
            a known ``type``.
    """
    data = request_json(request)
    if not isinstance(data, dict):
        raise BodyParseError(f"Body must be a JSON object, got {type(data).__name__}")
    try:
        return RemoteDescriptionBody.model_validate(data)
    except ValidationError as e:
        raise BodyParseError(f"Invalid remote description: {e.error_count()} error(s)") from e
