"""Async HTTP client for the PhysioCenter REST API."""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from .models import Exercise
from .errors import ApiError
from .feedback import FeedbackData

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"

TokenSource = Union[str, Callable[[], Optional[str]], None]


class PhysioCenterClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the patient endpoints.

    ``token`` is either the bearer token itself or a callable reading it from
    wherever the application keeps it; it is resolved on every request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: TokenSource = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "PhysioCenterClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def token(self) -> Optional[str]:
        if callable(self._token):
            return self._token()
        return self._token

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and keep the access token for the following calls."""
        body = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self._token = body["access_token"]
        return body

    async def get_today_exercises(self) -> List[Exercise]:
        body = await self._request("GET", "/exercises/patient/today")
        return [Exercise.model_validate(item) for item in body.get("data") or []]

    async def toggle_completion(
        self,
        exercise_id: str,
        completed: bool,
        feedback: Optional[FeedbackData] = None,
    ) -> Exercise:
        """Set an exercise's completion flag for today."""
        payload: Dict[str, Any] = {"completed": completed}
        if feedback is not None:
            payload.update(feedback.to_payload())

        body = await self._request("POST", f"/exercises/{exercise_id}/toggle", json=payload)
        return Exercise.model_validate(body["data"])

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {}
        token = self.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiError(str(e) or type(e).__name__) from e

        if response.is_error:
            error = ApiError.from_response(response)
            logger.warning(f"{method} {path} returned {response.status_code}: {error.message}")
            raise error

        return response.json()
