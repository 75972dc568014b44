"""Shared HTTP plumbing for the backend clients."""

import logging
from typing import Any

import requests

from microlearn.config import MicrolearnConfig
from microlearn.exceptions import RemoteServiceError

logger = logging.getLogger(__name__)


class ApiClient:
    """Blocking JSON client for the learning backend.

    Adds the bearer token and timeout to every request. Idempotent GETs are
    retried ``config.api_retries`` extra times on connection errors and
    timeouts; POSTs are sent exactly once.
    """

    def __init__(self, config: MicrolearnConfig, timeout: float | None = None):
        """Initialize the client.

        Args:
            config: Configuration (base URL, auth token, timeout, retries)
            timeout: Override for config.api_timeout
        """
        self.config = config
        self.timeout = timeout if timeout is not None else config.api_timeout

    def url(self, path: str) -> str:
        return f"{self.config.api_base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.auth_token:
            headers["Authorization"] = f"Bearer {self.config.auth_token}"
        return headers

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document, retrying transient failures.

        Raises:
            RemoteServiceError: If every attempt fails or the response is an error
        """
        attempts = 1 + max(0, self.config.api_retries)
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                return self._request("GET", path, params=params)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                last_error = e
                logger.debug(f"GET {path} failed (attempt {attempt}/{attempts}): {e}")
            except requests.RequestException as e:
                raise RemoteServiceError(f"GET {path} failed: {e}") from e
        raise RemoteServiceError(
            f"GET {path} failed after {attempts} attempts: {last_error}"
        ) from last_error

    def post(self, path: str, payload: dict[str, Any]) -> Any:
        """POST a JSON body once.

        Raises:
            RemoteServiceError: On connection errors, timeouts or error responses
        """
        try:
            return self._request("POST", path, json=payload)
        except requests.RequestException as e:
            raise RemoteServiceError(f"POST {path} failed: {e}") from e

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = requests.request(
            method,
            self.url(path),
            headers=self.headers(),
            timeout=self.timeout,
            **kwargs,
        )
        if response.status_code >= 400:
            raise RemoteServiceError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteServiceError(f"{method} {path} returned invalid JSON") from e
