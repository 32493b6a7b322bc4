from __future__ import annotations

from textwrap import dedent
from typing import List, Sequence

from .models import InterviewQuestion, RepoAnalysis

_MAX_DEPENDENCIES = 10

ANSWER_PROMPT = dedent(
    """\
    You are an expert software developer analyzing a GitHub repository. You have been provided with the packed contents of this repository.

    REPOSITORY OVERVIEW:
    {summary}

    The packed repository below was generated by repomix, a tool that clones a repository and emits its directory structure and file contents as a single XML document. It contains ACTUAL CODE from the repository, not just summaries or metadata.

    <packed_repository>
    {artifact}
    </packed_repository>

    Please answer the following questions about the repository. For each question, provide a detailed and specific response:

    {questions}

    Your answers should:
    1. Be comprehensive and reference the code provided
    2. Quote relevant code snippets with their file paths
    3. Analyze implementation details, patterns, and architectural choices evident in the code
    4. Provide concrete, specific feedback and recommendations based on the actual code
    5. Draw connections between different files and components to explain how they work together

    Format your response as a JSON object where the keys are the question numbers and the values are your answers.
    Example format:
    {{
      "1": "Answer to question 1...",
      "2": "Answer to question 2..."
    }}

    Return ONLY valid JSON - properly formatted with no markdown code blocks or other text.
    """
)

EVALUATION_PROMPT = dedent(
    """\
    You are an expert technical interviewer evaluating a candidate's response.

    Question: {question}

    Expected answer criteria:
    {expected}

    Evaluation criteria:
    {criteria}

    Candidate's answer:
    {answer}

    Evaluate the answer on a scale of 1-10, where:
    1-3: Poor (major concepts missing or incorrect)
    4-6: Average (basic understanding, but lacks depth)
    7-8: Good (solid understanding with minor omissions)
    9-10: Excellent (comprehensive and insightful)

    Provide your evaluation as a JSON object with:
    - score: Numeric score 1-10
    - feedback: Overall assessment
    - missingPoints: Array of important points that were missed
    - strengths: Array of strong points in the answer
    - suggestions: Specific advice for improvement

    Format your response as valid JSON:
    {{
      "score": number,
      "feedback": "string",
      "missingPoints": ["string", "string", ...],
      "strengths": ["string", "string", ...],
      "suggestions": "string"
    }}

    Return ONLY the JSON object, nothing else.
    """
)


def format_question_list(questions: Sequence[str]) -> str:
    return "\n".join(f"{index}. {question}" for index, question in enumerate(questions, start=1))


def summarize_analysis(analysis: RepoAnalysis) -> str:
    lines: List[str] = [
        f"Repository: {analysis.name} ({analysis.repo})",
        f"Analyzed: {analysis.analysis_date:%Y-%m-%d %H:%M}",
    ]
    if analysis.technologies:
        lines.append(f"Technologies: {', '.join(analysis.technologies)}")
    if analysis.components:
        lines.append(f"Components/Modules: {', '.join(analysis.components)}")
    if analysis.dependencies:
        shown = ", ".join(analysis.dependencies[:_MAX_DEPENDENCIES])
        suffix = "..." if len(analysis.dependencies) > _MAX_DEPENDENCIES else ""
        lines.append(f"Dependencies: {shown}{suffix}")
    if analysis.files:
        lines.append(f"Packed files: {len(analysis.files)}")
    if analysis.summary:
        lines.append(f"Summary: {analysis.summary}")
    return "\n".join(lines)


def build_answer_prompt(analysis: RepoAnalysis, artifact: str, questions: Sequence[str]) -> str:
    # str.format does not re-scan substituted values, so braces in the artifact are safe.
    return ANSWER_PROMPT.format(
        summary=summarize_analysis(analysis),
        artifact=artifact,
        questions=format_question_list(questions),
    )


def build_evaluation_prompt(question: InterviewQuestion, answer: str) -> str:
    return EVALUATION_PROMPT.format(
        question=question.question,
        expected=question.expected_answer,
        criteria=", ".join(question.evaluation_criteria),
        answer=answer,
    )
