"""
Question importer - loads question bank records from JSON.

Expected record format:
    {"level": 0, "text": "...", "answer1": "...", "answer2": "...",
     "answer3": "...", "answer4": "...", "correct_answer": 1}

correct_answer is optional and defaults to 1.
"""
import json
from pathlib import Path
from typing import Dict, Iterable, List
from sqlalchemy.orm import Session
from database.models import Question
from database.queries import QuestionQueries
from utils.errors import ValidationError
from utils.logging import get_logger

logger = get_logger(__name__)

MAX_LEVEL = 14


def load_questions_file(json_file_path: str) -> List[dict]:
    """Read a JSON array of question records."""
    json_path = Path(json_file_path)
    if not json_path.exists():
        raise FileNotFoundError(f"File not found: {json_file_path}")

    logger.info(f"Reading file: {json_path}")
    with open(json_path, 'r', encoding='utf-8') as f:
        questions_data = json.load(f)

    if not isinstance(questions_data, list):
        raise ValidationError("JSON file must contain an array of questions")
    return questions_data


def validate_record(q_data: dict) -> dict:
    """
    Check a record and normalize it to Question column values.

    Raises:
        ValidationError: Missing or out-of-range fields
    """
    if not isinstance(q_data, dict):
        raise ValidationError("Question record must be an object")

    level = q_data.get("level")
    if not isinstance(level, int) or not 0 <= level <= MAX_LEVEL:
        raise ValidationError(f"Invalid level: {level!r}")

    text = (q_data.get("text") or "").strip()
    if not text:
        raise ValidationError("Question text is empty")

    answers = [(q_data.get(f"answer{slot}") or "").strip() for slot in range(1, 5)]
    if not all(answers):
        raise ValidationError("All four answers are required", {"text": text[:50]})
    if len(set(answers)) != 4:
        raise ValidationError("Answers must be different", {"text": text[:50]})

    correct_answer = q_data.get("correct_answer", 1)
    if correct_answer not in (1, 2, 3, 4):
        raise ValidationError(f"Invalid correct_answer: {correct_answer!r}")

    return {
        "level": level,
        "text": text,
        "answer1": answers[0],
        "answer2": answers[1],
        "answer3": answers[2],
        "answer4": answers[3],
        "correct_answer": correct_answer,
    }


def import_questions(session: Session, questions_data: Iterable[dict]) -> Dict[str, int]:
    """
    Add question records to the bank, skipping invalid ones and exact duplicates.

    Returns:
        Import statistics
    """
    stats = {"total": 0, "imported": 0, "skipped": 0, "errors": 0}

    for idx, q_data in enumerate(questions_data, 1):
        stats["total"] += 1
        try:
            values = validate_record(q_data)
        except ValidationError as e:
            logger.warning(f"Question {idx}: {e.message}, skipping")
            stats["errors"] += 1
            continue

        answers = [values[f"answer{slot}"] for slot in range(1, 5)]
        if QuestionQueries.find_duplicate(session, values["level"], values["text"], answers):
            logger.debug(f"Question {idx}: already in the bank, skipping")
            stats["skipped"] += 1
            continue

        session.add(Question(**values))
        session.flush()
        stats["imported"] += 1

        if stats["imported"] % 50 == 0:
            logger.info(f"Imported {stats['imported']} questions...")

    return stats
