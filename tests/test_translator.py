"""Tests for the Chinese-to-English prompt translator"""
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import config
import translator
from tests.helpers import make_client


class TestTranslateToEnglish(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.prompt_path = Path(self.tmp.name) / "prompts" / "translate_prompt.txt"
        patcher = patch.object(config, "TRANSLATE_PROMPT_PATH", self.prompt_path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self.tmp.cleanup)
        self.client = make_client()

    def test_returns_translation(self):
        self.client.complete_text.return_value = "Red bottle"

        self.assertEqual(translator.translate_to_english(self.client, "红色瓶子"), "Red bottle")

        prompt = self.client.complete_text.call_args.args[0]
        self.assertIn('Chinese text: "红色瓶子"', prompt)
        self.assertIn("Return only the translated English text", prompt)
        self.assertEqual(self.client.complete_text.call_args.kwargs["temperature"], 0)

    def test_blank_input_is_returned_unchanged(self):
        for text in ("", "   ", "\n\t"):
            self.assertEqual(translator.translate_to_english(self.client, text), text)
        self.client.complete_text.assert_not_called()

    def test_call_failure_falls_back_to_original(self):
        self.client.complete_text.side_effect = RuntimeError("quota exceeded")

        with self.assertLogs("translator", level="WARNING") as logs:
            result = translator.translate_to_english(self.client, "合成")

        self.assertEqual(result, "合成")
        self.assertIn("quota exceeded", logs.output[0])

    def test_empty_reply_falls_back_to_original(self):
        self.client.complete_text.return_value = ""

        self.assertEqual(translator.translate_to_english(self.client, "移除背景"), "移除背景")

    def test_missing_prompt_file_uses_default(self):
        self.client.complete_text.return_value = "Red bottle"

        self.assertEqual(translator.translate_to_english(self.client, "红色瓶子"), "Red bottle")

        expected = translator.DEFAULT_TRANSLATE_PROMPT.replace("{text}", "红色瓶子")
        self.client.complete_text.assert_called_once_with(expected, temperature=0)
        self.assertFalse(self.prompt_path.exists())

    def test_unreadable_prompt_location_still_translates(self):
        blocker = Path(self.tmp.name) / "prompts"
        blocker.write_text("not a directory", encoding="utf-8")
        self.client.complete_text.return_value = "Red bottle"

        self.assertEqual(translator.translate_to_english(self.client, "红色瓶子"), "Red bottle")
        self.client.complete_text.assert_called_once()

    def test_custom_prompt_file_is_used(self):
        self.prompt_path.parent.mkdir(parents=True)
        self.prompt_path.write_text("Into English please: {text}", encoding="utf-8")

        translator.translate_to_english(self.client, "红色瓶子")

        self.client.complete_text.assert_called_once_with("Into English please: 红色瓶子", temperature=0)

    def test_prompt_file_without_placeholder_is_ignored(self):
        self.prompt_path.parent.mkdir(parents=True)
        self.prompt_path.write_text("Translate this.", encoding="utf-8")

        self.assertEqual(translator.load_translate_prompt(), translator.DEFAULT_TRANSLATE_PROMPT)


if __name__ == "__main__":
    unittest.main()
