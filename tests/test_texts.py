from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from markov_chain import MarkovChain
from space_status import StatusDocument, StatusFetchError
from texts import DEFAULT_TEXTS, TextResources, load_texts
from webhook_handlers import TextMessageHandler


def failing_fetcher(url: str, *, timeout: float) -> StatusDocument:
    raise StatusFetchError("offline")


class TextsIntegrationTests(unittest.TestCase):
    def test_custom_texts_applied_to_status_command(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "texts.json"
            custom_texts = {
                "status_error_text": "Der Space antwortet gerade nicht.",
                "empty_corpus_text": "Noch stumm.",
            }
            path.write_text(json.dumps(custom_texts, ensure_ascii=False), encoding="utf-8")

            resources = load_texts(path)
            handler = TextMessageHandler(
                MarkovChain().freeze(),
                "https://status.example",
                "office",
                texts=resources,
                status_fetcher=failing_fetcher,
            )

            payload = handler.handle(42, "/status")
            self.assertIsNotNone(payload)
            assert payload is not None
            self.assertEqual(payload["text"], custom_texts["status_error_text"])

            payload = handler.handle(42, "/sprachassistentin")
            assert payload is not None
            self.assertEqual(payload["text"], custom_texts["empty_corpus_text"])

    def test_defaults_used_when_file_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            resources = load_texts(Path(tmpdir) / "absent.json")

        self.assertEqual(resources["status_error_text"], DEFAULT_TEXTS["status_error_text"])
        self.assertEqual(len(resources), len(DEFAULT_TEXTS))

    def test_defaults_used_when_file_is_not_an_object(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "texts.json"
            path.write_text("[1, 2]", encoding="utf-8")
            resources = load_texts(path)

        self.assertEqual(resources["door_label"], DEFAULT_TEXTS["door_label"])

    def test_non_string_values_are_ignored(self) -> None:
        resources = TextResources({"door_label": 5, "co2_label": "CO₂"})

        self.assertEqual(resources["door_label"], DEFAULT_TEXTS["door_label"])
        self.assertEqual(resources["co2_label"], "CO₂")

    def test_broken_template_falls_back_to_default(self) -> None:
        resources = TextResources({"segment_template": "{name} -> {value}"})

        self.assertEqual(resources.format("segment_template", label="Tür", value="offen"), "Tür: offen")


if __name__ == "__main__":
    unittest.main()
