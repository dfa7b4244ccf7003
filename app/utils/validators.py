"""Validation utilities for question definitions"""

from typing import Dict, Optional

from app.models.quiz import QuestionType

TRUE_FALSE_OPTIONS = {"true": "True", "false": "False"}


def normalize_options(
    question_type: QuestionType, options: Optional[Dict[str, str]]
) -> Optional[Dict[str, str]]:
    """
    Return the options a question of ``question_type`` should store

    Raises:
        ValueError: if the options do not fit the question type
    """
    if question_type == QuestionType.MCQ:
        if not options or len(options) < 2:
            raise ValueError("Multiple choice questions need at least 2 options")
        return dict(options)

    if question_type == QuestionType.TRUE_FALSE:
        if options and set(options) != set(TRUE_FALSE_OPTIONS):
            raise ValueError("True/false questions take exactly the options 'true' and 'false'")
        return dict(options) if options else dict(TRUE_FALSE_OPTIONS)

    # short_answer has no options
    return None


def validate_correct_answer(
    question_type: QuestionType, options: Optional[Dict[str, str]], correct_answer: str
) -> None:
    """
    Check ``correct_answer`` against the (already normalized) options

    Raises:
        ValueError: if the answer is not one of the allowed keys
    """
    if correct_answer is None or correct_answer == "":
        raise ValueError("A correct answer is required")
    if question_type == QuestionType.MCQ and correct_answer not in (options or {}):
        raise ValueError("Correct answer must be one of the provided option keys")
    if question_type == QuestionType.TRUE_FALSE and correct_answer not in TRUE_FALSE_OPTIONS:
        raise ValueError("Correct answer must be 'true' or 'false'")


def validate_question_definition(
    question_type: QuestionType, options: Optional[Dict[str, str]], correct_answer: str
) -> Optional[Dict[str, str]]:
    """Normalize options and validate the answer key; returns the options to store"""
    normalized = normalize_options(question_type, options)
    validate_correct_answer(question_type, normalized, correct_answer)
    return normalized
