from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from repoprep.inputs import (
    DEFAULT_REPOSITORY,
    CommandInputs,
    classify_arguments,
    load_rubric,
    read_repository_list,
    resolve_repositories,
)
from repoprep.rubric import DEFAULT_RUBRIC


class ClassifyArgumentsTests(unittest.TestCase):
    def test_arguments_are_sorted_by_shape(self) -> None:
        inputs = classify_arguments(
            ["https://github.com/a/one", "team.list", "rubric.md", "https://github.com/b/two", "--stray"]
        )
        self.assertEqual(inputs.urls, ["https://github.com/a/one", "https://github.com/b/two"])
        self.assertEqual(inputs.repo_list, Path("team.list"))
        self.assertEqual(inputs.rubric, Path("rubric.md"))

    def test_repos_suffix_and_txt_rubric(self) -> None:
        inputs = classify_arguments(["projects.repos", "questions.txt"])
        self.assertEqual(inputs.repo_list, Path("projects.repos"))
        self.assertEqual(inputs.rubric, Path("questions.txt"))


class RepositoryListTests(unittest.TestCase):
    def test_reads_only_https_lines(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "repos.list"
            path.write_text(
                "# team repositories\n  https://github.com/a/one  \n\nhttp://insecure/x\nhttps://github.com/b/two\n",
                encoding="utf-8",
            )
            self.assertEqual(read_repository_list(path), ["https://github.com/a/one", "https://github.com/b/two"])

    def test_missing_file_yields_empty_list(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(read_repository_list(Path(tmp) / "absent.list"), [])

    def test_list_file_wins_over_urls(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "repos.list"
            path.write_text("https://github.com/from/file\n", encoding="utf-8")
            inputs = CommandInputs(urls=["https://github.com/from/args"], repo_list=path)
            self.assertEqual(resolve_repositories(inputs), ["https://github.com/from/file"])

    def test_urls_used_when_list_file_missing(self) -> None:
        inputs = CommandInputs(urls=["https://github.com/from/args"], repo_list=Path("does-not-exist.list"))
        self.assertEqual(resolve_repositories(inputs), ["https://github.com/from/args"])

    def test_default_repository(self) -> None:
        self.assertEqual(resolve_repositories(CommandInputs()), [DEFAULT_REPOSITORY])


class LoadRubricTests(unittest.TestCase):
    def test_creates_default_rubric_when_absent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            default_path = Path(tmp) / "rubric.txt"
            text = load_rubric(None, default_path)
            self.assertEqual(text, DEFAULT_RUBRIC)
            self.assertEqual(default_path.read_text(encoding="utf-8"), DEFAULT_RUBRIC)

    def test_existing_rubric_is_never_rewritten(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            default_path = Path(tmp) / "rubric.txt"
            original = "Questions:\r\n- Custom?\r\n".encode("utf-8")
            default_path.write_bytes(original)
            before = default_path.stat().st_mtime_ns

            load_rubric(None, default_path)
            load_rubric(Path(tmp) / "missing.md", default_path)

            self.assertEqual(default_path.read_bytes(), original)
            self.assertEqual(default_path.stat().st_mtime_ns, before)

    def test_explicit_rubric_file_takes_precedence(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            custom = Path(tmp) / "backend.md"
            custom.write_text("- Why Postgres?", encoding="utf-8")
            default_path = Path(tmp) / "rubric.txt"
            self.assertEqual(load_rubric(custom, default_path), "- Why Postgres?")
            self.assertFalse(default_path.exists())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
