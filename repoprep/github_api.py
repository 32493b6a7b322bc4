from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import requests
from requests import Response
from tenacity import RetryError, retry, stop_after_attempt, wait_exponential

from . import __version__

logger = logging.getLogger(__name__)

API_ROOT = "https://api.github.com"
_USER_AGENT = f"repoprep/{__version__}"


@dataclass(slots=True)
class GitHubSession:
    http: requests.Session
    rate_limited: bool = False

    @classmethod
    def create(cls) -> "GitHubSession":
        session = requests.Session()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": _USER_AGENT,
        }
        token = os.getenv("GITHUB_TOKEN")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        session.headers.update(headers)
        return cls(http=session)

    def close(self) -> None:
        self.http.close()


@dataclass(slots=True)
class RepoMetadata:
    full_name: str
    description: str
    stars: int
    forks: int
    watchers: int
    license: str
    pushed_at: str
    languages: Dict[str, int] = field(default_factory=dict)


def _raise_for_status(response: Response) -> None:
    try:
        response.raise_for_status()
    except requests.HTTPError as error:
        message = response.json().get("message") if response.headers.get("Content-Type", "").startswith("application/json") else response.text
        raise requests.HTTPError(f"GitHub API request failed: {response.status_code} {message}") from error


@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=8))
def _get(session: GitHubSession, path: str) -> Response:
    response = session.http.get(f"{API_ROOT}{path}", timeout=30)
    if response.status_code == 403 and "rate limit" in response.text.lower():
        session.rate_limited = True
        raise requests.HTTPError("GitHub API rate limit exceeded")
    _raise_for_status(response)
    return response


def get_repository(session: GitHubSession, owner: str, repo: str) -> Dict[str, object]:
    return _get(session, f"/repos/{owner}/{repo}").json()


def get_repo_languages(session: GitHubSession, owner: str, repo: str) -> Dict[str, int]:
    body = _get(session, f"/repos/{owner}/{repo}/languages").json()
    return {str(language): int(bytes_count) for language, bytes_count in body.items()}


def parse_repository_url(url: str) -> Tuple[str, str]:
    sanitized = url.strip().rstrip("/")
    if sanitized.endswith(".git"):
        sanitized = sanitized[: -len(".git")]
    path = sanitized.split("://", 1)[-1]
    parts = [part for part in path.split("/")[1:] if part]
    if len(parts) < 2:
        raise ValueError(f"Repository URL must include an owner and a name, e.g. https://github.com/octocat/hello-world: {url}")
    return parts[0], parts[1]


def repository_name(url: str) -> str:
    try:
        return parse_repository_url(url)[1]
    except ValueError:
        return url.strip().rstrip("/").split("/")[-1] or "repository"


def repository_slug(url: str) -> str:
    try:
        owner, name = parse_repository_url(url)
    except ValueError:
        return repository_name(url)
    return f"{owner}/{name}"


def fetch_repository_metadata(url: str) -> Optional[RepoMetadata]:
    """Look up public metadata for a repository; ``None`` when GitHub cannot be reached."""
    try:
        owner, repo = parse_repository_url(url)
    except ValueError:
        return None

    session = GitHubSession.create()
    try:
        payload = get_repository(session, owner, repo)
        languages = get_repo_languages(session, owner, repo)
    except (RetryError, requests.RequestException) as error:
        if session.rate_limited:
            logger.warning("GitHub API rate limit reached for %s; set GITHUB_TOKEN to raise the limit", url)
        else:
            logger.warning("GitHub metadata unavailable for %s: %s", url, error)
        return None
    finally:
        session.close()

    license_info = payload.get("license") or {}
    return RepoMetadata(
        full_name=str(payload.get("full_name", f"{owner}/{repo}")),
        description=str(payload.get("description") or ""),
        stars=int(payload.get("stargazers_count", 0)),
        forks=int(payload.get("forks_count", 0)),
        watchers=int(payload.get("subscribers_count", payload.get("watchers_count", 0))),
        license=str(license_info.get("spdx_id") or "NOASSERTION"),
        pushed_at=str(payload.get("pushed_at") or ""),
        languages=languages,
    )
