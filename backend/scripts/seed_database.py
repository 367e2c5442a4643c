#!/usr/bin/env python3
"""
Seed the database with sample users and answered questions.

Idempotent: users are matched by email and questions by (user, text), so
running it twice creates nothing new.

Usage:
    python backend/scripts/seed_database.py

Environment Variables:
    DATABASE_URL: Database connection string
"""

import logging
import random
import sys
from pathlib import Path
from typing import Dict

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy.orm import Session  # noqa: E402

from mathtutor.database import SessionLocal, init_db  # noqa: E402
from mathtutor.models.models import Answer, Question, QuestionStatus, User  # noqa: E402

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {"email": "alice@example.com", "name": "Alice Johnson"},
    {"email": "bob@example.com", "name": "Bob Smith"},
    {"email": "charlie@example.com", "name": "Charlie Brown"},
]

SAMPLE_QUESTIONS = [
    {
        "email": "alice@example.com",
        "question_text": "Solve for x: 2x + 5 = 15",
        "question_type": "algebra",
        "answer": {
            "steps": [
                {
                    "step_number": 1,
                    "description": "Subtract 5 from both sides",
                    "mathematical_expression": "2x + 5 - 5 = 15 - 5",
                    "reasoning": "To isolate the term with x, we subtract 5 from both sides of the equation",
                },
                {
                    "step_number": 2,
                    "description": "Simplify",
                    "mathematical_expression": "2x = 10",
                    "reasoning": "The left side becomes 2x and the right side becomes 10",
                },
                {
                    "step_number": 3,
                    "description": "Divide both sides by 2",
                    "mathematical_expression": "x = 10/2",
                    "reasoning": "To solve for x, we divide both sides by the coefficient of x",
                },
                {
                    "step_number": 4,
                    "description": "Final answer",
                    "mathematical_expression": "x = 5",
                    "reasoning": "10 divided by 2 equals 5",
                },
            ],
            "final_answer": "x = 5",
            "explanation": (
                "This is a linear equation. We solve it by isolating x through inverse "
                "operations: subtract 5 from both sides, then divide by 2."
            ),
        },
    },
    {
        "email": "bob@example.com",
        "question_text": "What is the derivative of x²?",
        "question_type": "calculus",
        "answer": {
            "steps": [
                {
                    "step_number": 1,
                    "description": "Apply the power rule",
                    "mathematical_expression": "d/dx(x²) = 2x^(2-1)",
                    "reasoning": "The power rule states that d/dx(x^n) = n·x^(n-1)",
                },
                {
                    "step_number": 2,
                    "description": "Simplify the exponent",
                    "mathematical_expression": "2x^1 = 2x",
                    "reasoning": "x^1 is simply x",
                },
            ],
            "final_answer": "2x",
            "explanation": (
                "Using the power rule for derivatives, we bring down the exponent as a "
                "coefficient and reduce the exponent by 1."
            ),
        },
    },
    {
        "email": "charlie@example.com",
        "question_text": "Calculate the area of a circle with radius 5",
        "question_type": "geometry",
        "answer": {
            "steps": [
                {
                    "step_number": 1,
                    "description": "Apply the area formula for a circle",
                    "mathematical_expression": "A = πr²",
                    "reasoning": "The area of a circle is π times the radius squared",
                },
                {
                    "step_number": 2,
                    "description": "Substitute r = 5",
                    "mathematical_expression": "A = π(5)²",
                    "reasoning": "Replace r with the given radius value",
                },
                {
                    "step_number": 3,
                    "description": "Calculate",
                    "mathematical_expression": "A = π × 25 = 25π",
                    "reasoning": "5² = 25, so the area is 25π square units",
                },
            ],
            "final_answer": "25π square units (≈ 78.54 square units)",
            "explanation": "The area of a circle is calculated using the formula A = πr², where r is the radius.",
        },
    },
]


def seed_database(db: Session) -> Dict[str, int]:
    """Insert missing sample rows. Returns how many users and questions were created."""
    created = {"users": 0, "questions": 0}

    for sample in SAMPLE_USERS:
        if db.query(User).filter(User.email == sample["email"]).first():
            logger.info(f"User already exists: {sample['name']}")
            continue
        db.add(User(email=sample["email"], name=sample["name"]))
        db.commit()
        created["users"] += 1
        logger.info(f"Created user: {sample['name']}")

    for sample in SAMPLE_QUESTIONS:
        user = db.query(User).filter(User.email == sample["email"]).first()
        if user is None:
            continue

        exists = (
            db.query(Question)
            .filter(Question.user_id == user.id, Question.question_text == sample["question_text"])
            .first()
        )
        if exists:
            continue

        question = Question(
            user_id=user.id,
            question_text=sample["question_text"],
            question_type=sample["question_type"],
            status=QuestionStatus.COMPLETED.value,
        )
        db.add(question)
        db.flush()

        answer = sample["answer"]
        db.add(Answer(
            question_id=question.id,
            steps=answer["steps"],
            final_answer=answer["final_answer"],
            explanation=answer["explanation"],
            processing_time_ms=random.randint(1000, 3999),
        ))
        db.commit()
        created["questions"] += 1
        logger.info(f"Created sample question: {sample['question_text'][:50]}")

    return created


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    init_db()

    db = SessionLocal()
    try:
        created = seed_database(db)
        logger.info(
            f"Database seeding completed: {created['users']} users, "
            f"{created['questions']} questions created"
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
