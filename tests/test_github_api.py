from __future__ import annotations

import unittest
from unittest import mock

import requests

from repoprep import github_api
from repoprep.github_api import fetch_repository_metadata, parse_repository_url, repository_name, repository_slug


class ParseRepositoryUrlTests(unittest.TestCase):
    def test_owner_and_name(self) -> None:
        self.assertEqual(parse_repository_url("https://github.com/octocat/hello-world"), ("octocat", "hello-world"))
        self.assertEqual(parse_repository_url("https://github.com/octocat/hello-world.git/"), ("octocat", "hello-world"))
        self.assertEqual(parse_repository_url("https://github.com/octocat/hello-world/tree/main"), ("octocat", "hello-world"))

    def test_missing_name_raises(self) -> None:
        with self.assertRaises(ValueError):
            parse_repository_url("https://github.com/octocat")

    def test_name_and_slug_fallbacks(self) -> None:
        self.assertEqual(repository_name("https://github.com/octocat/hello-world"), "hello-world")
        self.assertEqual(repository_slug("https://github.com/octocat/hello-world"), "octocat/hello-world")
        self.assertEqual(repository_name("https://example.com/"), "example.com")
        self.assertEqual(repository_slug("https://example.com/"), "example.com")


class FetchMetadataTests(unittest.TestCase):
    def test_metadata_mapped_from_api(self) -> None:
        payload = {
            "full_name": "octocat/hello-world",
            "description": "My first repository",
            "stargazers_count": 80,
            "forks_count": 9,
            "subscribers_count": 4,
            "license": {"spdx_id": "MIT"},
            "pushed_at": "2024-05-01T10:00:00Z",
        }
        with mock.patch.object(github_api, "get_repository", return_value=payload), mock.patch.object(
            github_api, "get_repo_languages", return_value={"Ruby": 120}
        ):
            metadata = fetch_repository_metadata("https://github.com/octocat/hello-world")

        assert metadata is not None
        self.assertEqual(metadata.stars, 80)
        self.assertEqual(metadata.watchers, 4)
        self.assertEqual(metadata.license, "MIT")
        self.assertEqual(metadata.languages, {"Ruby": 120})

    def test_request_failure_returns_none(self) -> None:
        with mock.patch.object(github_api, "get_repository", side_effect=requests.ConnectionError("offline")):
            self.assertIsNone(fetch_repository_metadata("https://github.com/octocat/hello-world"))

    def test_rate_limit_is_reported(self) -> None:
        def limited(session, owner, repo):
            session.rate_limited = True
            raise requests.HTTPError("GitHub API rate limit exceeded")

        with mock.patch.object(github_api, "get_repository", side_effect=limited), self.assertLogs(
            "repoprep.github_api", level="WARNING"
        ) as logs:
            self.assertIsNone(fetch_repository_metadata("https://github.com/octocat/hello-world"))

        self.assertEqual(len(logs.output), 1)
        self.assertIn("set GITHUB_TOKEN", logs.output[0])

    def test_invalid_url_returns_none(self) -> None:
        self.assertIsNone(fetch_repository_metadata("https://github.com/"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
