"""Errors raised by the PhysioCenter API client."""

from typing import Dict, Optional

import httpx

GENERIC_ERROR_MESSAGE = "Une erreur s'est produite"


class ClientError(Exception):
    """Base class for client-side errors."""


class ApiError(ClientError):
    """A request failed, either on the network or with an HTTP error status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = None

        errors = {}
        message = None
        if isinstance(body, dict):
            data = body.get("data")
            if isinstance(data, dict) and isinstance(data.get("errors"), dict):
                errors = data["errors"]
            detail = body.get("detail")
            message = body.get("message") or body.get("error") or (detail if isinstance(detail, str) else None)

        return cls(
            message or f"HTTP {response.status_code}",
            status_code=response.status_code,
            errors=errors,
        )


class ToggleInFlightError(ClientError):
    """A completion toggle for this exercise has not returned yet."""

    def __init__(self, exercise_id: str):
        super().__init__(f"A toggle for exercise {exercise_id} is already in progress")
        self.exercise_id = exercise_id


def describe_error(error: BaseException) -> str:
    """Turn an exception into a message fit for the end user.

    The first field error wins over the general message.
    """
    if isinstance(error, ApiError):
        for message in error.errors.values():
            if message:
                return message
        return error.message or GENERIC_ERROR_MESSAGE
    return str(error) or GENERIC_ERROR_MESSAGE
