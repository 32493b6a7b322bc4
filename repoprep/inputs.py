from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .rubric import DEFAULT_RUBRIC

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY = "https://github.com/ProgramComputer/friendly-tickets"
_LIST_SUFFIXES = (".list", ".repos")
_RUBRIC_SUFFIXES = (".txt", ".md")


@dataclass(slots=True)
class CommandInputs:
    urls: List[str] = field(default_factory=list)
    repo_list: Optional[Path] = None
    rubric: Optional[Path] = None


def classify_arguments(values: Iterable[str]) -> CommandInputs:
    inputs = CommandInputs()
    for value in values:
        if value.startswith("https://"):
            inputs.urls.append(value)
        elif value.endswith(_LIST_SUFFIXES) and inputs.repo_list is None:
            inputs.repo_list = Path(value)
        elif value.endswith(_RUBRIC_SUFFIXES) and inputs.rubric is None:
            inputs.rubric = Path(value)
        else:
            logger.warning("Ignoring unrecognised argument: %s", value)
    return inputs


def read_repository_list(path: Path) -> List[str]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Error reading repository file %s: %s", path, exc)
        return []

    repos = [line.strip() for line in content.splitlines()]
    repos = [line for line in repos if line.startswith("https://")]
    if not repos:
        logger.error("No valid repository URLs found in %s", path)
        return []
    logger.info("Found %d repositories in %s", len(repos), path)
    return repos


def resolve_repositories(inputs: CommandInputs) -> List[str]:
    repos: List[str] = []
    if inputs.repo_list is not None and inputs.repo_list.exists():
        logger.info("Reading repositories from file: %s", inputs.repo_list)
        repos = read_repository_list(inputs.repo_list)
    else:
        repos = list(inputs.urls)
    if not repos:
        repos = [DEFAULT_REPOSITORY]
    return repos


def load_rubric(rubric_file: Optional[Path], default_path: Path) -> str:
    """Read the rubric, creating ``default_path`` from the built-in rubric when absent.

    An existing default rubric file is only ever read.
    """
    if rubric_file is not None and rubric_file.exists():
        logger.info("Loaded rubric from file: %s", rubric_file)
        return rubric_file.read_text(encoding="utf-8")
    if not default_path.exists():
        default_path.parent.mkdir(parents=True, exist_ok=True)
        default_path.write_text(DEFAULT_RUBRIC, encoding="utf-8")
        logger.info("Created default rubric file: %s", default_path)
        return DEFAULT_RUBRIC
    logger.info("Loaded existing rubric file: %s", default_path)
    return default_path.read_text(encoding="utf-8")
