from __future__ import annotations

import logging
import sys
from typing import Sequence

from app import create_app
from bot_config import BotConfig, configure_logging, parse_config
from chat_corpus import load_markov_corpus
from polling import run_polling
from telegram_api import TelegramApiClient, TelegramApiError
from texts import load_texts
from webhook_handlers import TelegramWebhookHandler, TextMessageHandler

logger = logging.getLogger(__name__)


def build_webhook_handler(config: BotConfig) -> TelegramWebhookHandler:
    # The chain is frozen before any handler can read it.
    chain = load_markov_corpus(config.chat_history_file)
    text_handler = TextMessageHandler(
        chain,
        config.status_url,
        config.location,
        texts=load_texts(config.texts_file),
        http_timeout=config.http_timeout,
    )
    return TelegramWebhookHandler(text_handler)


def main(argv: Sequence[str] | None = None) -> int:
    config = parse_config(argv)
    configure_logging()

    try:
        client = TelegramApiClient(config.token)
        me = client.get_me()
    except (TelegramApiError, ValueError) as exc:
        logger.error("Could not connect the bot (token %s): %s", config.masked_token, exc)
        return 1
    logger.info("Connected as @%s", me.get("username", "?"))

    webhook_handler = build_webhook_handler(config)

    if config.mode == "webhook":
        app = create_app(webhook_handler)
        app.run(host="0.0.0.0", port=config.port)
    else:
        # getUpdates does not work while a webhook is registered
        try:
            client.delete_webhook()
        except TelegramApiError as exc:
            logger.warning("Could not remove webhook before polling: %s", exc)
        run_polling(client, webhook_handler)
    return 0


if __name__ == "__main__":
    sys.exit(main())
