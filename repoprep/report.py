from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from .models import AnswerEvaluation, InterviewQuestion

SEPARATOR = "-" * 80


@dataclass(slots=True)
class InterviewSummary:
    overall_score: float
    by_repository: Dict[str, float] = field(default_factory=dict)
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)


def write_questions(questions: Sequence[InterviewQuestion], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [question.to_dict() for question in questions]
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def group_by_repository(questions: Sequence[InterviewQuestion]) -> Dict[str, List[InterviewQuestion]]:
    grouped: Dict[str, List[InterviewQuestion]] = {}
    for question in questions:
        grouped.setdefault(question.repository_name or "unknown", []).append(question)
    return grouped


def render_answers(questions: Sequence[InterviewQuestion]) -> str:
    lines: List[str] = ["--- Repository Question Answers ---", ""]
    for repo_name, repo_questions in group_by_repository(questions).items():
        lines.append(f"## Repository: {repo_name}")
        lines.append("")
        for question in repo_questions:
            lines.append(f"Question: {question.question}")
            lines.append("")
            lines.append(question.expected_answer)
            lines.append("")
            lines.append(SEPARATOR)
            lines.append("")
    return "\n".join(lines)


def write_answers_markdown(questions: Sequence[InterviewQuestion], path: Path) -> Path:
    lines: List[str] = ["# Repository Interview Answers", ""]
    for repo_name, repo_questions in group_by_repository(questions).items():
        repository = repo_questions[0].repository or repo_name
        lines.append(f"## {repo_name}")
        lines.append("")
        lines.append(f"Repository: {repository}")
        lines.append("")
        for question in repo_questions:
            lines.append(f"### {question.question}")
            lines.append(question.expected_answer.strip())
            lines.append("")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def build_report(
    summary: InterviewSummary,
    results: Mapping[str, AnswerEvaluation],
    questions: Sequence[InterviewQuestion],
) -> Dict[str, object]:
    by_id = {question.id: question for question in questions}
    by_repository: Dict[str, Dict[str, object]] = {}
    details: List[Dict[str, object]] = []
    for question_id, evaluation in results.items():
        question = by_id.get(question_id)
        repo_name = question.repository_name if question and question.repository_name else "unknown"
        by_repository.setdefault(repo_name, {})[question_id] = evaluation.to_dict()
        details.append(
            {
                "questionId": question_id,
                "repository": repo_name,
                "question": question.question if question else "",
                "score": evaluation.score,
                "feedback": evaluation.feedback,
            }
        )
    return {
        "overallScore": summary.overall_score,
        "scoresByRepository": summary.by_repository,
        "byRepository": by_repository,
        "strengths": summary.strengths,
        "areasForImprovement": summary.areas_for_improvement,
        "questionDetails": details,
    }


def write_interview_report(
    summary: InterviewSummary,
    results: Mapping[str, AnswerEvaluation],
    questions: Sequence[InterviewQuestion],
    path: Path,
) -> Path:
    path.write_text(json.dumps(build_report(summary, results, questions), indent=2), encoding="utf-8")
    return path
