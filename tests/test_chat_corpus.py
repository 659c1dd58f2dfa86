from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from chat_corpus import load_markov_corpus, message_text
from markov_chain import END_TOKEN, START_TOKEN, MarkovGenerationError, generate_sentence


def write_export(directory: str, payload: object) -> Path:
    path = Path(directory) / "result.json"
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


class LoadMarkovCorpusTests(unittest.TestCase):
    def test_messages_become_training_lines(self) -> None:
        export = {
            "name": "K4CG",
            "type": "public_supergroup",
            "id": 1,
            "messages": [
                {"id": 1, "type": "message", "text": "a b c"},
                {"id": 2, "type": "service", "action": "join_group", "text": ""},
            ],
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            chain = load_markov_corpus(write_export(tmpdir, export))

        self.assertTrue(chain.frozen)
        self.assertEqual(chain.successors(START_TOKEN), {"a": 1})
        self.assertEqual(chain.successors("c"), {END_TOKEN: 1})
        self.assertEqual(generate_sentence(chain), "a b c")

    def test_single_character_messages_are_skipped(self) -> None:
        export = {"messages": [{"text": "k"}, {"text": "ok"}]}
        with tempfile.TemporaryDirectory() as tmpdir:
            chain = load_markov_corpus(write_export(tmpdir, export))

        self.assertEqual(chain.successors(START_TOKEN), {"ok": 1})

    def test_split_on_single_spaces(self) -> None:
        export = {"messages": [{"text": "a  b"}]}
        with tempfile.TemporaryDirectory() as tmpdir:
            chain = load_markov_corpus(write_export(tmpdir, export))

        self.assertEqual(chain.successors("a"), {"": 1})
        self.assertEqual(chain.successors(""), {"b": 1})

    def test_formatted_text_entities_are_flattened(self) -> None:
        export = {
            "messages": [
                {"text": ["schaut mal ", {"type": "link", "text": "https://k4cg.org"}, " an"]},
            ]
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            chain = load_markov_corpus(write_export(tmpdir, export))

        self.assertEqual(generate_sentence(chain), "schaut mal https://k4cg.org an")

    def test_missing_file_gives_empty_chain(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            chain = load_markov_corpus(Path(tmpdir) / "absent.json")

        self.assertEqual(len(chain), 0)
        with self.assertRaises(MarkovGenerationError):
            generate_sentence(chain)

    def test_invalid_json_gives_empty_chain_and_logs(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("chat_corpus", level="ERROR"):
                chain = load_markov_corpus(path)

        self.assertEqual(len(chain), 0)

    def test_deeply_nested_export_gives_empty_chain(self) -> None:
        depth = 100000
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested.json"
            path.write_text('{"messages": ' + "[" * depth + "]" * depth + "}", encoding="utf-8")
            with self.assertLogs("chat_corpus", level="ERROR"):
                chain = load_markov_corpus(path)

        self.assertTrue(chain.frozen)
        self.assertEqual(len(chain), 0)

    def test_document_without_messages_gives_empty_chain(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            chain = load_markov_corpus(write_export(tmpdir, [{"text": "a b"}]))

        self.assertEqual(len(chain), 0)


class MessageTextTests(unittest.TestCase):
    def test_non_mapping_record(self) -> None:
        self.assertIsNone(message_text("text"))

    def test_missing_text(self) -> None:
        self.assertIsNone(message_text({"id": 3}))

    def test_unknown_entity_items_are_ignored(self) -> None:
        self.assertEqual(message_text({"text": ["a", 5, {"type": "bold"}, "b"]}), "ab")


if __name__ == "__main__":
    unittest.main()
