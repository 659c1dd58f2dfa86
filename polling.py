from __future__ import annotations

"""Long-polling transport: fetch updates with getUpdates and send replies."""

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any, Optional

from telegram_api import LONG_POLL_TIMEOUT, TelegramApiClient, TelegramApiError
from webhook_handlers import TelegramWebhookHandler

logger = logging.getLogger(__name__)

ERROR_PAUSE_SECONDS = 2.0


def deliver_reply(client: TelegramApiClient, payload: Mapping[str, Any]) -> bool:
    """Send a handler payload through the Bot API. Returns True when sent."""

    if payload.get("method") != "sendMessage":
        return False

    try:
        client.send_message(payload["chat_id"], payload["text"])
    except TelegramApiError as exc:
        logger.error("Reply to chat %s could not be sent: %s", payload.get("chat_id"), exc)
        return False
    return True


def poll_once(
    client: TelegramApiClient,
    handler: TelegramWebhookHandler,
    offset: Optional[int] = None,
    *,
    timeout: int = LONG_POLL_TIMEOUT,
) -> Optional[int]:
    """Process one getUpdates batch and return the next offset."""

    updates = client.get_updates(offset, timeout=timeout)
    for update in updates:
        update_id = update.get("update_id")
        if isinstance(update_id, int):
            offset = update_id + 1
        try:
            payload = handler.handle_update(update)
        except Exception:
            logger.exception("Update %s could not be handled", update_id)
            continue
        deliver_reply(client, payload)
    return offset


def run_polling(
    client: TelegramApiClient,
    handler: TelegramWebhookHandler,
    *,
    timeout: int = LONG_POLL_TIMEOUT,
    should_continue: Callable[[], bool] = lambda: True,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll until ``should_continue`` returns False or the process is interrupted."""

    offset: Optional[int] = None
    logger.info("Polling for updates (timeout %ss)", timeout)
    try:
        while should_continue():
            try:
                offset = poll_once(client, handler, offset, timeout=timeout)
            except TelegramApiError as exc:
                logger.error("getUpdates failed: %s", exc)
                sleep(ERROR_PAUSE_SECONDS)
    except KeyboardInterrupt:
        logger.info("Polling stopped by user")
