from __future__ import annotations

"""Reply texts and labels used by the bot, with optional JSON overrides."""

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_TEXTS: Dict[str, str] = {
    "status_error_text": "Oops... something went wrong. :(",
    "empty_corpus_text": "Ich habe noch nichts gelernt. :(",
    "segment_template": "{label}: {value}",
    "door_label": "Tür",
    "door_open": "offen",
    "door_closed": "geschlossen",
    "door_unknown": "unbekannt",
    "temperature_label": "Temperatur",
    "humidity_label": "Luftfeuchtigkeit",
    "co2_label": "CO2",
}


class TextResources(Mapping[str, str]):
    """Text set with defaults and safe formatting."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        sanitized: Dict[str, str] = DEFAULT_TEXTS.copy()
        if data:
            for key, value in data.items():
                if isinstance(key, str) and isinstance(value, str):
                    sanitized[key] = value
        self._texts = sanitized

    def __getitem__(self, key: str) -> str:
        return self._texts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._texts)

    def __len__(self) -> int:
        return len(self._texts)

    def format(self, key: str, **kwargs: Any) -> str:
        template = self._texts.get(key, DEFAULT_TEXTS.get(key, ""))
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            fallback = DEFAULT_TEXTS.get(key, template)
            return fallback.format(**kwargs)


def load_texts(path: Path | str | None = None) -> TextResources:
    """Load a JSON text override file; missing keys keep their defaults."""

    if path is None:
        path_obj = Path(__file__).resolve().with_name("texts.json")
    else:
        path_obj = Path(path).expanduser()

    try:
        with path_obj.open(encoding="utf-8") as file:
            loaded = json.load(file)
    except FileNotFoundError:
        if path is not None:
            logger.warning("Texts file not found, using defaults: %s", path_obj)
        return TextResources()
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Texts file %s could not be loaded, using defaults: %s", path_obj, exc)
        return TextResources()

    if not isinstance(loaded, dict):
        logger.warning("Texts file %s does not contain an object, using defaults", path_obj)
        return TextResources()

    return TextResources(loaded)
