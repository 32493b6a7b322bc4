from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

DEFAULT_EVALUATION_CRITERIA = (
    "Accuracy based on repository content",
    "Technical depth and specificity",
    "Practical recommendations",
)


@dataclass(slots=True)
class Outcome(Generic[T]):
    """A stage result that remembers whether it had to fall back to substitute data."""

    value: T
    fallback: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def degraded(cls, value: T, reason: str) -> "Outcome[T]":
        return cls(value=value, fallback=True, reason=reason)


@dataclass(frozen=True, slots=True)
class InterviewQuestion:
    id: str
    question: str
    expected_answer: str
    type: str = "Repository Analysis"
    difficulty: str = "medium"
    evaluation_criteria: tuple[str, ...] = DEFAULT_EVALUATION_CRITERIA
    repository: Optional[str] = None
    repository_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "type": self.type,
            "difficulty": self.difficulty,
            "expectedAnswer": self.expected_answer,
            "evaluationCriteria": list(self.evaluation_criteria),
            "repository": self.repository,
            "repositoryName": self.repository_name,
        }


@dataclass(slots=True)
class AnswerEvaluation:
    score: int
    feedback: str
    missing_points: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    suggestions: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "feedback": self.feedback,
            "missingPoints": list(self.missing_points),
            "strengths": list(self.strengths),
            "suggestions": self.suggestions,
        }


@dataclass(slots=True)
class PackedFile:
    path: str
    size: int


@dataclass(slots=True)
class RepoAnalysis:
    repo: str
    name: str
    slug: str
    technologies: List[str] = field(default_factory=list)
    components: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    files: List[PackedFile] = field(default_factory=list)
    structure: str = ""
    summary: str = ""
    output_file: Optional[Path] = None
    analysis_date: datetime = field(default_factory=datetime.now)
    error: bool = False

    @property
    def packed_bytes(self) -> int:
        return sum(item.size for item in self.files)


def question_id(slug: str, number: int) -> str:
    return f"{slug}#q{number}"
