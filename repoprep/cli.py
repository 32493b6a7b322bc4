from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import AppConfig, ConfigurationError, load_config, resolve_api_key
from .inputs import classify_arguments, load_rubric, resolve_repositories
from .interview import ConsolePrompter, Prompter, run_interview
from .llm import ModelClient, create_backend, evaluate_answer
from .models import InterviewQuestion
from .pipeline import generate_questions
from .report import render_answers, write_answers_markdown, write_questions

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoprep",
        description="Prepare for technical interviews based on repository analysis.",
    )
    parser.add_argument(
        "inputs",
        nargs="*",
        help="Repository URLs (https://...), a repository list file (*.list, *.repos) and/or a rubric file (*.txt, *.md)",
    )
    parser.add_argument("-a", "--analysis", action="store_true", help="Print the generated answers instead of running the interview")
    parser.add_argument("--config", type=Path, help="Path to settings YAML file", default=None)
    return parser


def run(config: AppConfig, inputs: List[str], client: ModelClient, prompter: Optional[Prompter] = None) -> List[InterviewQuestion]:
    arguments = classify_arguments(inputs)
    rubric_text = load_rubric(arguments.rubric, config.rubric.path)
    repo_urls = resolve_repositories(arguments)
    logger.info("Running in %s mode", "Analysis" if config.analysis_mode else "Interview")

    questions = generate_questions(repo_urls, rubric_text, config, client)
    questions_path = write_questions(questions, config.output.questions_path)
    logger.info("Generated %d interview questions and saved to %s", len(questions), questions_path)

    if config.analysis_mode:
        print(render_answers(questions))
        if config.output.answers_markdown:
            markdown_path = write_answers_markdown(questions, config.output.directory / config.output.answers_markdown)
            logger.info("Answers written to %s", markdown_path)
        print(f"All answers have been saved to {questions_path}")
    else:
        run_interview(
            questions,
            evaluate=lambda question, answer: evaluate_answer(client, question, answer),
            prompter=prompter or ConsolePrompter(),
            report_path=config.output.report_path,
        )
    return questions


def app(argv: list[str] | None = None) -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.analysis:
            config.analysis_mode = True
        api_key = resolve_api_key(config)
        client = ModelClient(create_backend(config.llm, api_key), config.llm)
        run(config, args.inputs, client)
    except ConfigurationError as exc:
        logger.error("Error: %s", exc)
        sys.exit(1)
    except Exception as exc:  # pragma: no cover
        logger.exception("Fatal error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    app(sys.argv[1:])
