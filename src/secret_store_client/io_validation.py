"""Pydantic-based validation helpers for inbound response payloads."""

from __future__ import annotations

from datetime import datetime
from typing import NotRequired, TypedDict

from pydantic import JsonValue, TypeAdapter, ValidationError


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class ErrorBodyInput(TypedDict, total=False):
    error: str
    message: str
    timestamp: str
    status: int


class SecretBodyInput(TypedDict):
    value: str
    version: int
    updated_at: datetime
    expires_at: NotRequired[datetime | None]
    metadata: NotRequired[JsonValue]


def validate_json_as[SchemaT](schema: type[SchemaT], payload: str | bytes | bytearray) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_json(payload)
    except ValidationError as exc:
        message = f"Invalid JSON payload for {schema}."
        raise IncomingDataError(message) from exc


def parse_error_body(payload: str | bytes) -> ErrorBodyInput | None:
    """Return the structured error body, or None when the body is not one."""
    if not payload:
        return None
    try:
        body = validate_json_as(ErrorBodyInput, payload)
    except IncomingDataError:
        return None
    if "error" not in body or "message" not in body:
        return None
    return body
