"""Map raw responses onto the engine error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import pydantic
from pydantic import BaseModel

from lambdalabs_provisioner.engine.errors import DecodeError, NotFoundError, RemoteError

if TYPE_CHECKING:
    from lambdalabs_provisioner.core.client import ApiResponse

M = TypeVar("M", bound=BaseModel)

HTTP_NOT_FOUND = 404


class ErrorBody(BaseModel):
    code: str | None = None
    message: str
    suggestion: str | None = None


class ErrorEnvelope(BaseModel):
    """``{"error": {"code": ..., "message": ..., "suggestion": ...}}``"""

    error: ErrorBody


def decode(response: ApiResponse, model: type[M]) -> M:
    """Validate a response body against *model*.

    Raises:
        DecodeError: The body is not JSON or does not match *model*.
    """
    try:
        return model.model_validate_json(response.content)
    except pydantic.ValidationError as exc:
        raise DecodeError(
            f"Unexpected response body for {model.__name__} "
            f"(status {response.status_code}): {exc}"
        ) from exc


def classify(response: ApiResponse) -> NotFoundError | RemoteError | None:
    """Return the typed error for *response*, or ``None`` on success.

    404 is reported as ``NotFoundError`` so callers can treat it as absence.
    Every other non-2xx status is decoded as an error envelope.

    Raises:
        DecodeError: A non-success body could not be decoded as an envelope.
    """
    if response.ok:
        return None
    if response.status_code == HTTP_NOT_FOUND:
        return NotFoundError(_not_found_message(response))

    envelope = decode(response, ErrorEnvelope)
    return RemoteError(
        response.status_code,
        envelope.error.message,
        code=envelope.error.code,
        suggestion=envelope.error.suggestion,
    )


def raise_for_response(response: ApiResponse) -> None:
    """Raise the error :func:`classify` returns, if any."""
    error = classify(response)
    if error is not None:
        raise error


def _not_found_message(response: ApiResponse) -> str:
    try:
        return ErrorEnvelope.model_validate_json(response.content).error.message
    except pydantic.ValidationError:
        return "Resource not found"
