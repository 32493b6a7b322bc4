from __future__ import annotations

import re
from typing import List

DEFAULT_RUBRIC = """
# Technical Interview Rubric for Web Development

## Architecture & Design (High importance)
- Frontend-Backend separation
- Data modeling
- API design
- State management

Questions:
- Explain the architecture of this application
- How is data flowing between components?
- How would you improve the current architecture?

## Code Quality (Medium importance)
- Clean code principles
- Error handling
- Performance considerations
- Testing approach

Questions:
- How would you refactor problematic areas?
- What testing strategy would you implement?
- How would you handle errors more effectively?

## Problem Solving (High importance)
- Understanding requirements
- Proposing solutions
- Technical communication
- Debugging approach

Questions:
- How would you implement a new feature X?
- How would you troubleshoot issue Y?
- Explain your approach to solving complex problems
"""

DEFAULT_QUESTIONS = (
    "Explain the architecture of this application",
    "How would you refactor problematic areas?",
    "How would you improve the error handling?",
)

_ENUMERATED = re.compile(r"^\d+\.")
_MARKER = re.compile(r"^[*\-\d.]+\s*")


def extract_questions(rubric: str) -> List[str]:
    """Return the rubric's question lines in order of appearance.

    A ``Questions:`` line opens a region that runs until a blank line, a
    heading or another ``...:`` label. Bullet or numbered lines containing a
    ``?`` are questions, inside a region or not. Lines consumed by a region
    are not scanned a second time.
    """
    questions: List[str] = []
    lines = [line.strip() for line in rubric.splitlines()]
    index = 0
    while index < len(lines):
        line = lines[index]
        if line == "Questions:" or "questions:" in line:
            index += 1
            while index < len(lines):
                candidate = lines[index]
                if not candidate or candidate.startswith("#") or candidate.endswith(":"):
                    break
                if _is_question(candidate):
                    questions.append(_strip_marker(candidate))
                index += 1
            continue
        if _is_question(line):
            questions.append(_strip_marker(line))
        index += 1
    return questions


def _is_question(line: str) -> bool:
    return _is_list_item(line) and "?" in line


def _is_list_item(line: str) -> bool:
    return line.startswith(("-", "*")) or bool(_ENUMERATED.match(line))


def _strip_marker(line: str) -> str:
    return _MARKER.sub("", line, count=1).strip()
