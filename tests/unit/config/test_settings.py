"""Tests for persisted roots, system ignores and prompt templates.

Every test points ``CONFIG_PATH`` at a temporary file.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from askrepo import config
from askrepo.ignore import DEFAULT_SYSTEM_IGNORES


class ConfigTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self._tmp.name) / "nested" / "config.json"
        patcher = mock.patch("askrepo.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)


class ConfigFileTests(ConfigTestCase):
    def test_missing_config_is_empty(self) -> None:
        self.assertEqual(config.load_config(), {})

    def test_malformed_config_is_empty(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text("{not json", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

    def test_non_object_config_is_empty(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

    def test_save_creates_parent_directories(self) -> None:
        config.save_config({"a": 1})
        self.assertEqual(config.load_config(), {"a": 1})


class RootDirectoryTests(ConfigTestCase):
    def test_roots_keep_order(self) -> None:
        config.save_root_directories(["/b", "/a"])
        self.assertEqual(config.load_root_directories(), ["/b", "/a"])

    def test_invalid_entries_are_dropped(self) -> None:
        config.save_config({"root_directories": ["/a", 3, "", None]})
        self.assertEqual(config.load_root_directories(), ["/a"])


class SystemIgnoreSettingsTests(ConfigTestCase):
    def test_defaults_until_saved(self) -> None:
        self.assertEqual(config.load_system_ignores(), list(DEFAULT_SYSTEM_IGNORES))

    def test_add_trims_and_skips_duplicates_and_blanks(self) -> None:
        config.save_system_ignores(["*.log"])
        config.add_system_ignore("  *.cache  ")
        config.add_system_ignore("*.log")
        config.add_system_ignore("   ")
        self.assertEqual(config.load_system_ignores(), ["*.log", "*.cache"])

    def test_remove_by_index_ignores_out_of_range(self) -> None:
        config.save_system_ignores(["a", "b", "c"])
        self.assertEqual(config.remove_system_ignore(1), ["a", "c"])
        self.assertEqual(config.remove_system_ignore(9), ["a", "c"])

    def test_saved_empty_list_is_respected(self) -> None:
        config.save_system_ignores([])
        self.assertEqual(config.load_system_ignores(), [])

    def test_reset_restores_defaults(self) -> None:
        config.save_system_ignores(["only"])
        config.reset_system_ignores()
        self.assertEqual(config.load_system_ignores(), list(DEFAULT_SYSTEM_IGNORES))


class PromptTemplateTests(ConfigTestCase):
    def test_defaults_have_stable_ids(self) -> None:
        first = config.load_prompt_templates()
        second = config.load_prompt_templates()
        self.assertEqual([t.name for t in first], ["Code Review", "Bug Analysis", "Documentation", "Refactoring", "Testing"])
        self.assertEqual([t.id for t in first], [t.id for t in second])

    def test_add_requires_name_and_content(self) -> None:
        self.assertIsNone(config.add_prompt_template("  ", "body"))
        self.assertIsNone(config.add_prompt_template("Name", "   "))
        created = config.add_prompt_template(" Explain ", " Explain this code. ")

        assert created is not None
        self.assertEqual((created.name, created.content), ("Explain", "Explain this code."))
        self.assertEqual(config.load_prompt_templates()[-1], created)

    def test_update_and_remove_by_id(self) -> None:
        created = config.add_prompt_template("Draft", "v1")
        assert created is not None

        updated = config.update_prompt_template(created.id, "Final", "v2")
        self.assertEqual(updated, config.PromptTemplate(id=created.id, name="Final", content="v2"))
        self.assertIsNone(config.update_prompt_template("missing", "x", "y"))

        self.assertTrue(config.remove_prompt_template(created.id))
        self.assertFalse(config.remove_prompt_template(created.id))
        self.assertIsNone(config.find_prompt_template("Final"))

    def test_default_template_can_be_removed_by_id(self) -> None:
        review = config.find_prompt_template("code review")
        assert review is not None
        self.assertTrue(config.remove_prompt_template(review.id))
        self.assertNotIn("Code Review", [t.name for t in config.load_prompt_templates()])

    def test_malformed_entries_are_skipped(self) -> None:
        config.save_config(
            {
                "prompt_templates": [
                    {"id": "1", "name": "Ok", "content": "fine"},
                    {"name": "No id", "content": "gets one"},
                    {"name": 3, "content": "bad"},
                    "junk",
                ]
            }
        )
        templates = config.load_prompt_templates()
        self.assertEqual([t.name for t in templates], ["Ok", "No id"])
        self.assertTrue(templates[1].id)


if __name__ == "__main__":
    unittest.main()
