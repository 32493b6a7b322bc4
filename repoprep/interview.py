"""Interactive mock interview over the generated questions."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from .models import AnswerEvaluation, InterviewQuestion
from .report import InterviewSummary, write_interview_report

logger = logging.getLogger(__name__)

Evaluator = Callable[[InterviewQuestion, str], AnswerEvaluation]

EXIT_COMMAND = "exit"
SKIP_COMMAND = "skip"


class Prompter(Protocol):
    def ask(self, message: str) -> str:
        ...

    def confirm(self, message: str, default: bool = False) -> bool:
        ...

    def choose_many(self, message: str, choices: Sequence[str]) -> List[str]:
        ...


class ConsolePrompter:
    """Reads answers from standard input; end of input behaves like ``exit``."""

    def ask(self, message: str) -> str:
        try:
            return input(f"{message} ").strip()
        except EOFError:
            return EXIT_COMMAND

    def confirm(self, message: str, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        try:
            reply = input(f"{message} ({hint}) ").strip().lower()
        except EOFError:
            return default
        if not reply:
            return default
        return reply in ("y", "yes")

    def choose_many(self, message: str, choices: Sequence[str]) -> List[str]:
        print(message)
        for index, choice in enumerate(choices, start=1):
            print(f"  {index}. {choice}")
        while True:
            try:
                reply = input("Enter numbers separated by commas (blank for all): ").strip()
            except EOFError:
                return list(choices)
            if not reply:
                return list(choices)
            picked = _parse_selection(reply, choices)
            if picked:
                return picked
            print("You must select at least one repository")


def _parse_selection(reply: str, choices: Sequence[str]) -> List[str]:
    picked: List[str] = []
    for token in reply.split(","):
        token = token.strip()
        if not token.isdigit():
            continue
        index = int(token) - 1
        if 0 <= index < len(choices) and choices[index] not in picked:
            picked.append(choices[index])
    return picked


def summarize(results: Mapping[str, AnswerEvaluation], questions: Sequence[InterviewQuestion]) -> InterviewSummary:
    repo_of = {question.id: question.repository_name or "unknown" for question in questions}
    scores_by_repo: Dict[str, List[int]] = {}
    strengths: Dict[str, None] = {}
    missing: Dict[str, None] = {}
    for question_id, evaluation in results.items():
        scores_by_repo.setdefault(repo_of.get(question_id, "unknown"), []).append(evaluation.score)
        strengths.update(dict.fromkeys(evaluation.strengths))
        missing.update(dict.fromkeys(evaluation.missing_points))

    all_scores = [evaluation.score for evaluation in results.values()]
    return InterviewSummary(
        overall_score=_mean(all_scores),
        by_repository={repo: _mean(scores) for repo, scores in scores_by_repo.items()},
        strengths=list(strengths),
        areas_for_improvement=list(missing),
    )


def _mean(scores: Sequence[int]) -> float:
    if not scores:
        return 0.0
    return math.floor(sum(scores) / len(scores) * 10 + 0.5) / 10


def select_questions(questions: Sequence[InterviewQuestion], prompter: Prompter) -> List[InterviewQuestion]:
    repos = list(dict.fromkeys(question.repository or "unknown" for question in questions))
    if len(repos) <= 1:
        return list(questions)

    print(f"Interview will cover {len(repos)} repositories with {len(questions)} questions")
    selected = prompter.choose_many("Which repositories would you like to include in the interview?", repos)
    filtered = [question for question in questions if (question.repository or "unknown") in selected]
    print(f"Selected {len(filtered)} questions from {len(selected)} repositories")
    return filtered


def run_interview(
    questions: Sequence[InterviewQuestion],
    evaluate: Evaluator,
    prompter: Prompter,
    report_path: Path,
) -> Dict[str, AnswerEvaluation]:
    print("\n--- Mock Interview Based on Repository Analysis ---\n")
    selected = select_questions(questions, prompter)
    results: Dict[str, AnswerEvaluation] = {}

    for index, question in enumerate(selected, start=1):
        _present_question(question, index, len(selected))
        answer = prompter.ask('Your answer (or "exit" to quit, "skip" to move to next question):')
        command = answer.strip().lower()
        if command == EXIT_COMMAND:
            print("\nInterview ended.")
            break
        if command == SKIP_COMMAND:
            print("\nQuestion skipped.")
            continue

        print("\nEvaluating your answer...")
        evaluation = evaluate(question, answer)
        results[question.id] = evaluation
        _present_evaluation(evaluation)

        if prompter.confirm("Would you like to see an example of a good answer?", default=False):
            print("\nExample of a good answer:")
            print(question.expected_answer)

    if results:
        summary = summarize(results, selected)
        _present_summary(summary)
        if prompter.confirm("Would you like to generate a detailed report file?", default=False):
            save_report(summary, results, selected, report_path)

    print("\nThank you for completing the mock interview session!")
    return results


def save_report(
    summary: InterviewSummary,
    results: Mapping[str, AnswerEvaluation],
    questions: Sequence[InterviewQuestion],
    path: Path,
) -> Optional[Path]:
    try:
        written = write_interview_report(summary, results, questions, path)
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Failed to generate report %s: %s", path, exc)
        print(f"\nFailed to generate report: {exc}")
        return None
    print(f"\nDetailed report saved to {written}")
    return written


def _present_question(question: InterviewQuestion, index: int, total: int) -> None:
    print(f"\nQuestion {index} of {total}:")
    if question.repository_name:
        print(f"Repository: {question.repository_name}")
    print(f"Type: {question.type} | Difficulty: {question.difficulty}")
    print(f"\n{question.question}")


def _present_evaluation(evaluation: AnswerEvaluation) -> None:
    print(f"\nScore: {evaluation.score}/10")
    print(f"\nFeedback: {evaluation.feedback}")
    if evaluation.strengths:
        print("\nStrengths:")
        for point in evaluation.strengths:
            print(f"  {point}")
    if evaluation.missing_points:
        print("\nPoints to consider:")
        for point in evaluation.missing_points:
            print(f"  {point}")
    if evaluation.suggestions:
        print("\nSuggestion for improvement:")
        print(evaluation.suggestions)


def _present_summary(summary: InterviewSummary) -> None:
    print("\n\nInterview Summary")
    print("-----------------")
    print(f"Overall Score: {summary.overall_score}/10")
    if len(summary.by_repository) > 1:
        print("\nScores by Repository:")
        for repo, score in summary.by_repository.items():
            print(f"- {repo}: {score}/10")
    if summary.strengths:
        print("\nYour key strengths:")
        for strength in summary.strengths:
            print(f"  {strength}")
    if summary.areas_for_improvement:
        print("\nAreas for improvement:")
        for point in summary.areas_for_improvement:
            print(f"  {point}")
