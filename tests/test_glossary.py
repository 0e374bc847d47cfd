"""
Glossary tests - validation, merging and file loading
"""

import json
import os
import tempfile
import unittest

from pydantic import ValidationError

from folio.errors import InvalidArgumentError
from folio.models.glossary import (
    GlossaryEntry,
    keep,
    load_glossary_file,
    merge_glossaries,
    parse_glossary,
    proper_noun,
)


def entry(original, translated, context=None):
    return GlossaryEntry(original=original, translated=translated, context=context)


class TestGlossaryEntry(unittest.TestCase):

    def test_blank_terms_are_rejected(self):
        with self.assertRaises(ValidationError):
            GlossaryEntry(original="", translated="x")
        with self.assertRaises(ValueError):
            GlossaryEntry(original="x", translated="   ")

    def test_entries_are_immutable(self):
        e = entry("A", "a")
        with self.assertRaises(ValidationError):
            e.translated = "b"

    def test_keep_and_proper_noun(self):
        self.assertEqual(keep("API"), entry("API", "API"))
        self.assertEqual(keep("API", "acronym").context, "acronym")
        self.assertEqual(proper_noun("Folio"), entry("Folio", "Folio", "proper noun"))


class TestMergeGlossaries(unittest.TestCase):

    def test_last_write_wins(self):
        merged = merge_glossaries([entry("A", "x")], [entry("A", "y")])
        self.assertEqual(merged, [entry("A", "y")])

    def test_empty(self):
        self.assertEqual(merge_glossaries([], []), [])
        self.assertEqual(merge_glossaries(), [])

    def test_three_way_merge(self):
        merged = merge_glossaries([entry("A", "a")], [entry("B", "b")], [entry("A", "a2")])
        self.assertEqual(len(merged), 2)
        mapping = {e.original: e.translated for e in merged}
        self.assertEqual(mapping, {"A": "a2", "B": "b"})

    def test_keys_are_case_sensitive(self):
        merged = merge_glossaries([entry("API", "x")], [entry("api", "y")])
        self.assertEqual(len(merged), 2)

    def test_collision_within_one_input(self):
        merged = merge_glossaries([entry("A", "1"), entry("A", "2")])
        self.assertEqual(merged, [entry("A", "2")])

    def test_first_position_is_kept(self):
        merged = merge_glossaries([entry("A", "a"), entry("B", "b")], [entry("A", "a2")])
        self.assertEqual([e.original for e in merged], ["A", "B"])


class TestLoadGlossary(unittest.TestCase):

    def write(self, suffix, content):
        fd, path = tempfile.mkstemp(suffix=suffix)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        self.addCleanup(os.remove, path)
        return path

    def test_yaml_file(self):
        path = self.write(".yaml", "- original: chunk\n  translated: 청크\n  context: docs\n")
        self.assertEqual(load_glossary_file(path), [entry("chunk", "청크", "docs")])

    def test_json_file(self):
        path = self.write(".json", json.dumps([{"original": "A", "translated": "B"}]))
        self.assertEqual(load_glossary_file(path), [entry("A", "B")])

    def test_malformed_entry(self):
        path = self.write(".json", json.dumps([{"original": "A"}]))
        with self.assertRaises(InvalidArgumentError):
            load_glossary_file(path)

    def test_not_a_list(self):
        with self.assertRaises(InvalidArgumentError):
            parse_glossary({"original": "A", "translated": "B"})

    def test_unparseable_file(self):
        path = self.write(".json", "{not json")
        with self.assertRaises(InvalidArgumentError):
            load_glossary_file(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_glossary_file("/nonexistent/glossary.yaml")


if __name__ == "__main__":
    unittest.main()
