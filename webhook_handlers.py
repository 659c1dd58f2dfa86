from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Dict, Optional

from markov_chain import DEFAULT_MAX_TOKENS, MarkovChain, MarkovGenerationError, generate_sentence
from space_status import DEFAULT_HTTP_TIMEOUT, StatusDocument, StatusFetchError, fetch_status, format_status
from texts import TextResources, load_texts

logger = logging.getLogger(__name__)

ChatId = int | str
StatusFetcher = Callable[..., StatusDocument]

# Telegram rejects longer sendMessage texts
MAX_MESSAGE_LENGTH = 4096


def _send_message(chat_id: ChatId, text: str) -> Dict[str, Any]:
    return {"method": "sendMessage", "chat_id": chat_id, "text": text}


class TextMessageHandler:

    """Answers the /status and /sprachassistentin commands."""

    def __init__(
        self,
        chain: MarkovChain,
        status_url: str,
        location: str,
        *,
        texts: Mapping[str, str] | TextResources | None = None,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        max_sentence_tokens: int = DEFAULT_MAX_TOKENS,
        status_fetcher: StatusFetcher = fetch_status,
    ) -> None:
        if not chain.frozen:
            raise ValueError("The Markov chain must be frozen before handlers share it.")

        if texts is None:
            resources = load_texts()
        elif isinstance(texts, TextResources):
            resources = texts
        else:
            resources = TextResources(texts)

        self.texts = resources
        self.chain = chain
        self.status_url = status_url
        self.location = location
        self.http_timeout = http_timeout
        self.max_sentence_tokens = max_sentence_tokens
        self._status_fetcher = status_fetcher
        self._command_handlers: Dict[str, Callable[[ChatId], Dict[str, Any]]] = {
            "/status": self._handle_status,
            "/sprachassistentin": self._handle_sentence,
        }

    def handle(self, chat_id: ChatId, text: str) -> Optional[Dict[str, Any]]:
        """Return the sendMessage payload for ``text`` or None when it is no command."""

        normalized = text.strip()
        if not normalized:
            return None

        # "/status@k4cg_bot" in group chats
        first_token = normalized.split()[0].split("@", 1)[0].lower()
        handler = self._command_handlers.get(first_token)
        if handler is None:
            return None

        logger.info("Command %s from chat %s", first_token, chat_id)
        return handler(chat_id)

    def _handle_status(self, chat_id: ChatId) -> Dict[str, Any]:
        try:
            status = self._status_fetcher(self.status_url, timeout=self.http_timeout)
        except StatusFetchError as exc:
            logger.warning("Replying with status fallback: %s", exc)
            return _send_message(chat_id, self.texts["status_error_text"])

        return _send_message(chat_id, format_status(status, self.location, self.texts))

    def _handle_sentence(self, chat_id: ChatId) -> Dict[str, Any]:
        try:
            sentence = generate_sentence(self.chain, max_tokens=self.max_sentence_tokens)
        except MarkovGenerationError as exc:
            logger.warning("Markov generation failed: %s", exc)
            sentence = ""

        # Telegram rejects empty messages
        if not sentence.strip():
            sentence = self.texts["empty_corpus_text"]
        elif len(sentence) > MAX_MESSAGE_LENGTH:
            sentence = sentence[:MAX_MESSAGE_LENGTH]
        return _send_message(chat_id, sentence)


class TelegramWebhookHandler:

    """Turns Telegram updates into reply payloads."""

    def __init__(self, text_handler: TextMessageHandler) -> None:
        self.text_handler = text_handler

    def handle_update(self, update: Mapping[str, Any] | None) -> Dict[str, Any]:
        """Return a sendMessage payload, or a status marker when nothing is sent."""

        if not isinstance(update, Mapping):
            logger.debug("handle_update: ignored - update is not a mapping")
            return {"status": "ignored"}

        message = update.get("message")
        if isinstance(message, Mapping):
            text_response = self._handle_text_message(message)
            if text_response is not None:
                return text_response

        return {"status": "ok"}

    def _handle_text_message(self, message: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        text = message.get("text")
        chat = message.get("chat")

        if not isinstance(text, str) or not isinstance(chat, Mapping):
            return None

        chat_id = chat.get("id")
        if not isinstance(chat_id, (int, str)):
            return None

        return self.text_handler.handle(chat_id, text)
