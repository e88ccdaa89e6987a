"""
Questions module for Millionaire Trivia.
Contains the question bank provider and JSON importer.
"""
from questions.manager import QuestionManager, QuestionProvider

__all__ = [
    "QuestionManager",
    "QuestionProvider",
]
