from __future__ import annotations

"""Minimal Telegram Bot API client on top of ``requests``."""

import logging
import os
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import RequestException

from bot_config import mask_token

logger = logging.getLogger(__name__)

_TELEGRAM_API_ROOT = "https://api.telegram.org"
DEFAULT_REQUEST_TIMEOUT = 10
LONG_POLL_TIMEOUT = 10


class TelegramApiError(RuntimeError):
    """Raised when a Telegram Bot API call fails."""


def _ensure_no_proxy() -> None:
    """Add api.telegram.org to NO_PROXY/no_proxy to bypass system proxies."""

    domain = "api.telegram.org"
    for key in ("NO_PROXY", "no_proxy"):
        current = os.environ.get(key, "")
        normalized = {item.strip() for item in current.split(",") if item.strip()}
        if domain in normalized:
            continue
        normalized.add(domain)
        os.environ[key] = ",".join(sorted(normalized))


class TelegramApiClient:
    def __init__(
        self,
        token: str,
        *,
        verify: bool | str = True,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("Bot token must not be empty.")
        self._token = token
        self._verify = verify
        self._session = session or requests.Session()
        _ensure_no_proxy()

    def call(
        self,
        method: str,
        payload: Mapping[str, Any] | None = None,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> Any:
        """POST ``payload`` to ``method`` and return the ``result`` field."""

        endpoint = f"{_TELEGRAM_API_ROOT}/bot{self._token}/{method}"
        logger.debug("Telegram call %s (token %s)", method, mask_token(self._token))

        try:
            response = self._session.post(
                endpoint,
                json=dict(payload or {}),
                timeout=timeout,
                verify=self._verify,
                proxies={"http": None, "https": None},
            )
            response.raise_for_status()
        except RequestException as exc:
            message = str(exc).replace(self._token, mask_token(self._token))
            raise TelegramApiError(f"Telegram API call {method} failed: {message}") from exc

        try:
            parsed = response.json()
        except ValueError as exc:
            raise TelegramApiError(f"Telegram API returned invalid JSON for {method}") from exc

        if not isinstance(parsed, Mapping) or not parsed.get("ok", False):
            description = (
                parsed.get("description", "unknown error")
                if isinstance(parsed, Mapping)
                else "unknown error"
            )
            raise TelegramApiError(f"Telegram API reported an error for {method}: {description}")

        return parsed.get("result")

    def get_me(self) -> Dict[str, Any]:
        result = self.call("getMe")
        return dict(result) if isinstance(result, Mapping) else {}

    def get_updates(
        self,
        offset: Optional[int] = None,
        *,
        timeout: int = LONG_POLL_TIMEOUT,
    ) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        # The HTTP timeout has to outlast the long poll.
        result = self.call("getUpdates", payload, timeout=timeout + DEFAULT_REQUEST_TIMEOUT)
        if not isinstance(result, list):
            return []
        return [update for update in result if isinstance(update, dict)]

    def send_message(self, chat_id: int | str, text: str) -> Any:
        return self.call("sendMessage", {"chat_id": chat_id, "text": text})

    def set_webhook(
        self,
        url: str,
        *,
        secret_token: str | None = None,
        drop_pending_updates: bool = False,
    ) -> Any:
        if not url:
            raise ValueError("Webhook URL must not be empty.")
        payload: Dict[str, Any] = {
            "url": url,
            "drop_pending_updates": drop_pending_updates,
            "allowed_updates": ["message"],
        }
        if secret_token:
            payload["secret_token"] = secret_token
        return self.call("setWebhook", payload)

    def delete_webhook(self, *, drop_pending_updates: bool = False) -> Any:
        return self.call("deleteWebhook", {"drop_pending_updates": drop_pending_updates})
