from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from repoprep.config import AppConfig, ConfigurationError, load_config, resolve_api_key


class ConfigTests(unittest.TestCase):
    def test_load_default_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config = load_config(Path(tmp) / "missing.yaml")
        self.assertIsInstance(config, AppConfig)
        self.assertFalse(config.analysis_mode)
        self.assertEqual(config.llm.provider, "gemini")
        self.assertEqual(config.llm.api_key_env, "GEMINI_API_KEY")
        self.assertEqual(config.packager.command, ["npx", "repomix"])
        self.assertEqual(config.packager.timeout_seconds, 300)
        self.assertEqual(config.output.questions_path, Path("interview_questions.json"))

    def test_load_custom_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_file = Path(tmp) / "settings.yaml"
            config_file.write_text(
                """
                analysis_mode: true
                llm:
                  provider: openai
                  model: gpt-4o
                  fallback_model: gpt-4o-mini
                  temperature: 0.5
                  max_output_tokens: 800
                  api_key_env: ALT_KEY
                  max_prompt_tokens: 120000
                packager:
                  command: bunx repomix
                  timeout_seconds: 60
                  config_template: repomix.config.json
                  fetch_metadata: false
                output:
                  directory: custom_reports
                  answers_markdown: answers.md
                rubric:
                  path: rubrics/backend.md
                """,
                encoding="utf-8",
            )

            config = load_config(config_file)

        self.assertTrue(config.analysis_mode)
        self.assertEqual(config.llm.model, "gpt-4o")
        self.assertEqual(config.llm.fallback_model, "gpt-4o-mini")
        self.assertEqual(config.llm.api_key_env, "ALT_KEY")
        self.assertEqual(config.llm.max_prompt_tokens, 120000)
        self.assertEqual(config.packager.command, ["bunx", "repomix"])
        self.assertEqual(config.packager.config_template, Path("repomix.config.json"))
        self.assertFalse(config.packager.fetch_metadata)
        self.assertEqual(config.output.directory, Path("custom_reports"))
        self.assertEqual(config.output.report_path, Path("custom_reports") / "interview-report.json")
        self.assertEqual(config.output.answers_markdown, "answers.md")
        self.assertEqual(config.rubric.path, Path("rubrics/backend.md"))

    def test_missing_api_key_is_a_configuration_error(self) -> None:
        config = AppConfig()
        config.llm.api_key_env = "REPOPREP_TEST_UNSET_KEY"
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop("REPOPREP_TEST_UNSET_KEY", None)
            with self.assertRaises(ConfigurationError):
                resolve_api_key(config)

    def test_api_key_read_from_environment(self) -> None:
        config = AppConfig()
        with mock.patch.dict(os.environ, {"GEMINI_API_KEY": "secret"}):
            self.assertEqual(resolve_api_key(config), "secret")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
