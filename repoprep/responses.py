"""Salvaging structured data from free-form model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from .models import AnswerEvaluation

logger = logging.getLogger(__name__)

_FENCED_OBJECT = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_DECODER = json.JSONDecoder()


def parse_answers(text: str, question_count: int) -> Dict[str, str]:
    """Map ``"1"``..``"N"`` to answer text, always returning exactly ``question_count`` entries."""
    payload = _load_object(text)
    if payload is not None:
        answers: Dict[str, str] = {}
        for number in range(1, question_count + 1):
            value = payload.get(str(number))
            answers[str(number)] = _as_text(value) if value not in (None, "") else f"No answer provided for question {number}"
        return answers

    logger.warning("No JSON object found in model response, splitting text by question numbers")
    return _split_numbered(text, question_count)


def parse_evaluation(text: str) -> AnswerEvaluation:
    payload = _load_object(text)
    if payload is None:
        raise ValueError("Evaluation response did not contain a JSON object")
    try:
        score = int(round(float(payload["score"])))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Evaluation response has no usable score: {exc}") from exc
    return AnswerEvaluation(
        score=min(10, max(1, score)),
        feedback=_as_text(payload.get("feedback", "")),
        missing_points=_as_list(payload.get("missingPoints")),
        strengths=_as_list(payload.get("strengths")),
        suggestions=_as_text(payload.get("suggestions", "")),
    )


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    stripped = text.strip()
    try:
        payload = json.loads(stripped)
        if isinstance(payload, dict):
            return payload
    except json.JSONDecodeError:
        logger.debug("Response is not plain JSON, looking for an embedded object")

    candidates: List[str] = [match.group(1) for match in _FENCED_OBJECT.finditer(stripped)]
    for candidate in candidates:
        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            return payload

    start = stripped.find("{")
    if start != -1:
        try:
            payload, _ = _DECODER.raw_decode(stripped, start)
        except json.JSONDecodeError:
            return None
        if isinstance(payload, dict):
            logger.info("Extracted embedded JSON object from response")
            return payload
    return None


def _split_numbered(text: str, question_count: int) -> Dict[str, str]:
    answers: Dict[str, str] = {}
    for number in range(1, question_count + 1):
        pattern = re.compile(
            rf"(?:^|\n)[\s*#\"]*{number}[\"*]*[.:][\"*]*\s*(.+?)(?=\n[\s*#\"]*{number + 1}[\"*]*[.:]|\Z)",
            re.DOTALL,
        )
        match = pattern.search(text)
        answers[str(number)] = match.group(1).strip() if match else f"Unable to extract answer for question {number}"
    return answers


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, indent=2)


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [_as_text(item) for item in value]
