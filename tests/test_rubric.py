from __future__ import annotations

import unittest

from repoprep.rubric import DEFAULT_RUBRIC, extract_questions


class ExtractQuestionsTests(unittest.TestCase):
    def test_questions_section(self) -> None:
        rubric = "Questions:\n- What is X?\n- How does Y work?"
        self.assertEqual(extract_questions(rubric), ["What is X?", "How does Y work?"])

    def test_region_ends_at_blank_line_heading_or_label(self) -> None:
        rubric = "\n".join(
            [
                "Questions:",
                "- First?",
                "",
                "Not a question?",
                "Questions:",
                "* Second?",
                "# Heading",
                "Questions:",
                "1. Third?",
                "Notes:",
                "- Fourth?",
            ]
        )
        self.assertEqual(extract_questions(rubric), ["First?", "Second?", "Third?", "Fourth?"])

    def test_bullets_without_header_are_collected(self) -> None:
        rubric = "## Section\n- Why is the cache needed?\n- Plain bullet\n2. What breaks first?\nfree text?"
        self.assertEqual(extract_questions(rubric), ["Why is the cache needed?", "What breaks first?"])

    def test_lines_without_question_mark_are_ignored(self) -> None:
        rubric = "Questions:\n- Explain the architecture\n- How is data flowing between components?"
        self.assertEqual(extract_questions(rubric), ["How is data flowing between components?"])

    def test_no_deduplication_and_order_preserved(self) -> None:
        rubric = "- Same?\nQuestions:\n- Other?\n- Same?"
        self.assertEqual(extract_questions(rubric), ["Same?", "Other?", "Same?"])

    def test_lowercase_marker_inside_line_opens_region(self) -> None:
        rubric = "Follow-up questions:\n- What would you log?"
        self.assertEqual(extract_questions(rubric), ["What would you log?"])

    def test_empty_rubric(self) -> None:
        self.assertEqual(extract_questions(""), [])
        self.assertEqual(extract_questions("# Rubric\n- Clean code\n- Testing"), [])

    def test_default_rubric(self) -> None:
        questions = extract_questions(DEFAULT_RUBRIC)
        self.assertEqual(
            questions,
            [
                "How is data flowing between components?",
                "How would you improve the current architecture?",
                "How would you refactor problematic areas?",
                "What testing strategy would you implement?",
                "How would you handle errors more effectively?",
                "How would you implement a new feature X?",
                "How would you troubleshoot issue Y?",
            ],
        )


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
