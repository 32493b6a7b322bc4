from __future__ import annotations

import logging
from typing import List, Sequence

from .artifact import mock_analysis, parse_artifact
from .config import AppConfig
from .github_api import repository_name, repository_slug
from .llm import ModelClient, answer_questions
from .models import InterviewQuestion, question_id
from .packager import generate_mock_artifact, output_directory_for, package_repository
from .rubric import DEFAULT_QUESTIONS, extract_questions

logger = logging.getLogger(__name__)


def rubric_questions(rubric_text: str) -> List[str]:
    questions = extract_questions(rubric_text)
    if not questions:
        logger.warning("No questions found in the rubric. Using default questions.")
        questions = list(DEFAULT_QUESTIONS)
    logger.info("Found %d questions in the rubric", len(questions))
    return questions


def analyze_repository(
    repo_url: str,
    questions: Sequence[str],
    config: AppConfig,
    client: ModelClient,
) -> List[InterviewQuestion]:
    name = repository_name(repo_url)
    slug = repository_slug(repo_url)
    output_dir = output_directory_for(repo_url, config)
    logger.info("Analyzing repository using repomix: %s (this may take a few minutes)", repo_url)

    try:
        packaged = package_repository(repo_url, config)
        artifact = packaged.value.read_text(encoding="utf-8")
        analysis = parse_artifact(artifact, repo_url, name, slug)
        analysis.output_file = packaged.value
        if packaged.fallback:
            analysis.summary = f"{analysis.summary} (synthetic repository data: {packaged.reason})"
    except Exception as exc:
        logger.exception("Error analyzing repository %s, falling back to mock repository analysis", repo_url)
        analysis = mock_analysis(
            repo_url,
            name,
            slug,
            summary=f"Repository analysis failed ({exc}). Using mock analysis data for evaluation.",
        )
        artifact = generate_mock_artifact(repo_url, name)

    logger.info("Repository analysis completed, answering rubric questions")
    answers = answer_questions(client, analysis, artifact, questions, debug_dir=output_dir)
    if answers.fallback:
        logger.warning("Answers for %s are mock answers: %s", name, answers.reason)

    return [
        InterviewQuestion(
            id=question_id(slug, number),
            question=question,
            expected_answer=answer,
            repository=repo_url,
            repository_name=name,
        )
        for number, (question, answer) in enumerate(zip(questions, answers.value), start=1)
    ]


def generate_questions(
    repo_urls: Sequence[str],
    rubric_text: str,
    config: AppConfig,
    client: ModelClient,
) -> List[InterviewQuestion]:
    questions = rubric_questions(rubric_text)
    generated: List[InterviewQuestion] = []
    for repo_url in repo_urls:
        generated.extend(analyze_repository(repo_url, questions, config, client))
    return generated
