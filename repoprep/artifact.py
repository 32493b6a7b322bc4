"""Reading and trimming the packed repository artifact produced by repomix."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List

from bs4 import BeautifulSoup, Tag

from .models import PackedFile, RepoAnalysis

logger = logging.getLogger(__name__)

PLACEHOLDER_ARTIFACT = "<repository></repository>"
DEFAULT_TECHNOLOGIES = ["JavaScript", "TypeScript", "React", "Node.js"]
DEFAULT_COMPONENTS = ["Core", "API", "UI", "Utils"]

# Outer elements that may still be open after a cut, innermost first.
_WRAPPERS = ("files", "repository")
_FILE_OPEN = re.compile(r"<file\s+path=")
# File contents are not escaped, so a close tag only ends an element when
# the next thing is another file or an outer closing tag.
_FILE_END = re.compile(r"</file>(?=\s*(?:<file\s+path=|</files>|</directory>|<directory[\s>]|</repository>|\Z))")
# Room left after the cut for the truncation comment and closing tags.
_SUFFIX_RESERVE = 256


def parse_artifact(text: str, url: str, name: str, slug: str) -> RepoAnalysis:
    try:
        soup = BeautifulSoup(text, "html.parser")
        technologies = _unique(tag.get_text(strip=True) for tag in soup.find_all("technology"))
        components = _unique(tag.get_text(strip=True) for tag in soup.find_all("component"))
        if not components:
            components = _unique(tag.get_text(strip=True) for tag in soup.find_all("module"))
        dependencies = _unique(tag.get_text(strip=True) for tag in soup.find_all("dependency"))
        files = [
            PackedFile(path=str(tag["path"]), size=len(tag.get_text()))
            for tag in soup.find_all("file", attrs={"path": True})
            if tag.find_parent("structure") is None
        ]
        tree_tag = soup.find("directory_structure")
        if tree_tag is not None:
            structure = tree_tag.get_text().strip("\n")
        else:
            structure_tag = soup.find("structure")
            structure = _render_structure(structure_tag) if structure_tag is not None else ""
    except Exception as exc:  # pragma: no cover
        logger.error("Error parsing repomix output for %s: %s", url, exc)
        return mock_analysis(url, name, slug, summary="Error parsing repository analysis. Using fallback data.")

    analysis = RepoAnalysis(
        repo=url,
        name=name,
        slug=slug,
        technologies=technologies or list(DEFAULT_TECHNOLOGIES),
        components=components or list(DEFAULT_COMPONENTS),
        dependencies=dependencies,
        files=files,
        structure=structure,
        summary="Repository analysis completed using repomix. Extracted structure, technological stack, and key code samples for evaluation.",
    )
    if files:
        size_kb = analysis.packed_bytes / 1024
        logger.info(
            "Including %d files (%.2fKB, ~%d tokens) in analysis",
            len(files),
            size_kb,
            analysis.packed_bytes // 4,
        )
    return analysis


def mock_analysis(url: str, name: str, slug: str, summary: str) -> RepoAnalysis:
    return RepoAnalysis(
        repo=url,
        name=name,
        slug=slug,
        technologies=list(DEFAULT_TECHNOLOGIES),
        components=["Frontend", "Backend", "API", "Utils", "Configuration"],
        dependencies=["react", "express", "typescript", "webpack", "jest"],
        structure="src/\n  components/\n  hooks/\n  utils/\n  pages/\n  api/\npublic/\nconfig/\ntest/",
        summary=summary,
        error=True,
    )


def truncate_artifact(text: str, max_chars: int) -> str:
    """Cut ``text`` down to roughly ``max_chars`` at a complete ``</file>`` boundary.

    The result carries a comment saying how many files were dropped and
    re-closes any outer wrapper element the cut left open.
    """
    if len(text) <= max_chars:
        return text

    budget = max(0, max_chars - _SUFFIX_RESERVE)
    file_ends = [match.end() for match in _FILE_END.finditer(text)]
    fitting = [end for end in file_ends if end <= budget]
    if fitting:
        end = fitting[-1]
    else:
        first_file = _FILE_OPEN.search(text)
        if first_file is not None and first_file.start() <= budget:
            end = first_file.start()
        else:
            end = text.rfind(">", 0, budget) + 1

    kept = text[:end].rstrip()
    total_files = len(file_ends)
    omitted = total_files - len(fitting)
    marker = f"<!-- Truncated by repoprep: {omitted} of {total_files} files omitted to fit the context window -->"

    closers: List[str] = []
    for wrapper in _WRAPPERS:
        if re.search(rf"<{wrapper}[\s>]", kept) and f"</{wrapper}>" not in kept:
            closers.append(f"</{wrapper}>")

    return "\n".join([kept, marker, *closers]) if kept else "\n".join([marker, *closers])


def _render_structure(structure: Tag) -> str:
    lines: List[str] = []
    for node in structure.find_all(["directory", "file"]):
        indent = "  " * sum(1 for parent in node.parents if parent.name == "directory")
        path = node.get("path", "")
        if node.name == "directory":
            lines.append(f"{indent}{path}/")
            continue
        description = node.get_text(strip=True)
        lines.append(f"{indent}{path}: {description}" if description else f"{indent}{path}")
    return "\n".join(lines)


def _unique(values: Iterable[str]) -> List[str]:
    return [value for value in dict.fromkeys(values) if value]
