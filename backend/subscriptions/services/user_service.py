"""HTTP client for the remote user-record service (premium flag updates)."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from subscriptions.config import DEFAULT_USER_SERVICE_TIMEOUT, RelayConfig

logger = logging.getLogger(__name__)

PREMIUM_USAGE_BONUS = 20


class UserServiceError(Exception):
    """Raised when the user-record service cannot be reached or rejects a call."""


class UserServiceClient:
    """Issue ``/users/{id}`` calls against the user-record service.

    No call is retried; callers decide whether a failure matters.
    """

    def __init__(self, base_url: str, *, timeout: float = DEFAULT_USER_SERVICE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: RelayConfig) -> "UserServiceClient":
        return cls(config.user_service_base_url, timeout=config.user_service_timeout)

    def close(self) -> None:
        """Release the pooled connections if this client created the session."""

        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "UserServiceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _user_url(self, user_id: str) -> str:
        return f"{self.base_url}/users/{user_id}"

    @staticmethod
    def _headers(token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, user_id: str, *, payload: Optional[Dict[str, Any]] = None,
              token: Optional[str] = None) -> requests.Response:
        url = self._user_url(user_id)
        try:
            return self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(token),
                timeout=self.timeout,
            )
        except Timeout as exc:
            error_msg = f"User service timed out after {self.timeout} seconds ({method} {url})."
            logger.error(error_msg)
            raise UserServiceError(error_msg) from exc
        except ConnectionError as exc:
            error_msg = f"Failed to connect to user service at {self.base_url}."
            logger.error(error_msg)
            raise UserServiceError(error_msg) from exc
        except RequestException as exc:
            error_msg = f"User service request failed: {exc}"
            logger.error(error_msg)
            raise UserServiceError(error_msg) from exc

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _require_ok(self, response: requests.Response, user_id: str, action: str) -> Dict[str, Any]:
        if not response.ok:
            error_msg = f"User service rejected {action} for user {user_id} (HTTP {response.status_code})."
            logger.error(error_msg)
            raise UserServiceError(error_msg)
        return self._json(response)

    def set_premium(self, user_id: str, is_premium: bool) -> bool:
        """Toggle the premium flag; returns ``False`` when the service answers non-2xx."""

        response = self._send("PUT", user_id, payload={"isPremium": bool(is_premium)})
        if not response.ok:
            logger.error(
                "Failed to update user %s premium status (HTTP %s).",
                user_id,
                response.status_code,
            )
            return False

        logger.info("User %s premium status set to %s.", user_id, bool(is_premium))
        return True

    def get_user(self, user_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        response = self._send("GET", user_id, token=token)
        return self._require_ok(response, user_id, "lookup")

    def grant_premium(self, user_id: str, token: Optional[str] = None,
                      usage_bonus: int = PREMIUM_USAGE_BONUS) -> Dict[str, Any]:
        """Mark the user premium and top up their AI usage counter."""

        data = self.get_user(user_id, token=token)
        user = data.get("user") or {}
        current_count = user.get("aiUsageCount") or 0

        payload = {"isPremium": True, "aiUsageCount": int(current_count) + usage_bonus}
        response = self._send("PUT", user_id, payload=payload)
        return self._require_ok(response, user_id, "premium upgrade")

    def revoke_premium(self, user_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        response = self._send("PUT", user_id, payload={"isPremium": False}, token=token)
        return self._require_ok(response, user_id, "premium removal")
