from __future__ import annotations

"""Builds the Markov chain from a Telegram chat export."""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, List, Optional

from markov_chain import MarkovChain

logger = logging.getLogger(__name__)


def message_text(record: Any) -> Optional[str]:
    """Return the plain text of an exported message record.

    Telegram Desktop stores formatted messages as a list mixing plain strings
    and entity objects such as ``{"type": "bold", "text": "..."}``.
    """

    if not isinstance(record, Mapping):
        return None

    text = record.get("text")
    if isinstance(text, str):
        return text

    if isinstance(text, list):
        parts: List[str] = []
        for item in text:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, Mapping) and isinstance(item.get("text"), str):
                parts.append(item["text"])
        return "".join(parts)

    return None


def train_chain(chain: MarkovChain, messages: Any) -> int:
    """Feed every message longer than one character into ``chain``."""

    if not isinstance(messages, list):
        return 0

    trained = 0
    for record in messages:
        line = message_text(record)
        if line is None or len(line) <= 1:
            continue
        chain.add(line.split(" "))
        trained += 1
    return trained


def load_markov_corpus(path: Path | str) -> MarkovChain:
    """Load the export at ``path`` and return a frozen chain.

    A missing or malformed export gives an empty chain; the reason is logged.
    """

    chain = MarkovChain()
    path_obj = Path(path).expanduser()

    try:
        with path_obj.open(encoding="utf-8") as file:
            loaded = json.load(file)
    except FileNotFoundError:
        logger.error("Chat export not found: %s", path_obj)
        return chain.freeze()
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Chat export could not be read (%s): %s", path_obj, exc)
        return chain.freeze()
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.error("Chat export is not valid JSON (%s): %s", path_obj, exc)
        return chain.freeze()

    if not isinstance(loaded, Mapping) or not isinstance(loaded.get("messages"), list):
        logger.warning("Chat export %s has no 'messages' list, corpus is empty", path_obj)
        return chain.freeze()

    trained = train_chain(chain, loaded["messages"])
    logger.info(
        "Markov corpus loaded from %s: %d lines, %d contexts",
        path_obj,
        trained,
        len(chain),
    )
    return chain.freeze()
