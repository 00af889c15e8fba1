# routetodev/quizzes/grading.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional

from ..extensions import db
from ..models import Question, Quiz, QuizAttempt
from ..progress.service import completion_percent


class EmptyQuizError(ValueError):
    pass


@dataclass
class GradeResult:
    score: int
    total_questions: int
    correct_answers: int
    # question id (as str, JSON-friendly) -> {user_answer, correct, correct_answers}
    graded: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def is_correct(submitted: Optional[str], accepted: Iterable[str]) -> bool:
    if submitted is None or submitted == "":
        return False
    return submitted in set(accepted)


def grade(questions: Iterable[Question], submitted: Mapping[int, Optional[str]]) -> GradeResult:
    """
    Single pass over the quiz's questions. A question counts as correct when
    the submitted value is one of its accepted answers. Unanswered questions
    are wrong. Pure: nothing is written.
    """
    questions = list(questions)
    if not questions:
        raise EmptyQuizError("quiz has no questions")

    graded = {}
    correct = 0
    for q in questions:
        answer = submitted.get(q.id)
        accepted = q.accepted_answers
        ok = is_correct(answer, accepted)
        if ok:
            correct += 1
        graded[str(q.id)] = {
            "user_answer": answer,
            "correct": ok,
            "correct_answers": accepted,
        }

    total = len(questions)
    return GradeResult(
        score=completion_percent(correct, total),
        total_questions=total,
        correct_answers=correct,
        graded=graded,
    )


def submitted_answers(data: Mapping[str, Any], questions: Iterable[Question]) -> Dict[int, Optional[str]]:
    """Accepts ``answer_<id>`` form fields or bare question-id keys."""
    answers = {}
    for q in questions:
        value = data.get(f"answer_{q.id}")
        if value is None:
            value = data.get(str(q.id))
        answers[q.id] = value if isinstance(value, str) else None
    return answers


def submit_attempt(user_id: int, quiz: Quiz, submitted: Mapping[int, Optional[str]]) -> QuizAttempt:
    result = grade(quiz.questions, submitted)

    attempt = QuizAttempt(
        user_id=user_id,
        quiz_id=quiz.id,
        score=result.score,
        total_questions=result.total_questions,
        correct_answers=result.correct_answers,
        answers=result.graded,
        completed_at=datetime.utcnow(),
    )
    db.session.add(attempt)
    db.session.commit()
    return attempt


def recent_attempts(user_id: int, quiz_id: int, limit: int = 5):
    return (
        QuizAttempt.query
        .filter_by(user_id=user_id, quiz_id=quiz_id)
        .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
        .limit(limit)
        .all()
    )
