# routetodev/content/service.py
"""
Idempotent writers for the Path -> Module -> Resource tree and module quizzes.

Safe to re-run with the same input: paths match on slug, modules on
(path, title), resources on (module, title) then (module, url), quizzes on
module. None of these helpers commit; the caller owns the transaction.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from ..extensions import db
from ..models import Module, Path, Question, Quiz, Resource, RESOURCE_TYPES


class InvalidQuestion(ValueError):
    pass


def ensure_path(*, slug: str, title: str, description: Optional[str] = None, is_published: bool = True) -> Path:
    path = Path.query.filter_by(slug=slug).one_or_none()
    if path is None:
        path = Path(slug=slug, title=title, description=description, is_published=is_published)
        db.session.add(path)
    else:
        path.is_published = is_published
    db.session.flush()
    return path


def ensure_module(path_id: int, title: str, order_index: int, description: Optional[str] = None) -> Module:
    module = Module.query.filter_by(path_id=path_id, title=title).first()
    if module is None:
        module = Module(path_id=path_id, title=title, order_index=order_index, description=description)
        db.session.add(module)
    else:
        module.order_index = order_index
        if description is not None:
            module.description = description
    db.session.flush()
    return module


def ensure_resource(
    *,
    module_id: int,
    title: str,
    url: str,
    type: str = "DOC",
    est_minutes: Optional[int] = None,
    is_free: bool = True,
) -> Resource:
    existing = (
        Resource.query.filter_by(module_id=module_id, title=title).first()
        or Resource.query.filter_by(module_id=module_id, url=url).first()
    )
    if existing is not None:
        return existing

    if type not in RESOURCE_TYPES:
        raise ValueError(f"Unknown resource type: {type}")

    res = Resource(
        module_id=module_id,
        title=title,
        url=url,
        type=type,
        est_minutes=est_minutes,
        is_free=is_free,
    )
    db.session.add(res)
    db.session.flush()
    return res


def validate_question(text: str, options: Sequence[str], correct: Iterable[str]) -> List[str]:
    options = list(options)
    correct = list(dict.fromkeys(correct))
    if not options:
        raise InvalidQuestion(f"{text!r}: no options")
    if not correct:
        raise InvalidQuestion(f"{text!r}: no correct answer")
    missing = [c for c in correct if c not in options]
    if missing:
        raise InvalidQuestion(f"{text!r}: correct answers not among options: {missing}")
    return correct


def ensure_quiz(
    module_id: int,
    title: str,
    questions: Sequence[dict],
    description: Optional[str] = None,
    individual_price: Decimal = Decimal("0.50"),
) -> Quiz:
    """
    One quiz per module. Re-running replaces the question set.

    Each question dict: ``question_text``, ``options``, ``correct_answer``
    (list of accepted option strings), optional ``explanation``.
    """
    if not questions:
        raise InvalidQuestion(f"quiz {title!r} has no questions")

    validated = [
        (q, validate_question(q["question_text"], q["options"], q["correct_answer"]))
        for q in questions
    ]

    quiz = Quiz.query.filter_by(module_id=module_id).one_or_none()
    if quiz is None:
        quiz = Quiz(module_id=module_id, title=title, description=description, individual_price=individual_price)
        db.session.add(quiz)
    else:
        quiz.title = title
        quiz.description = description
        quiz.questions.clear()

    for i, (q, correct) in enumerate(validated):
        quiz.questions.append(
            Question(
                question_text=q["question_text"],
                options=json.dumps(list(q["options"])),
                correct_answer=json.dumps(correct),
                explanation=q.get("explanation"),
                order_index=i,
            )
        )
    quiz.question_count = len(validated)
    db.session.flush()
    return quiz


def import_content(doc: dict) -> dict:
    """Load ``{"paths": [...]}`` through the ensure_* helpers. Returns counts."""
    counts = {"paths": 0, "modules": 0, "resources": 0, "quizzes": 0}

    for p in doc.get("paths", []):
        path = ensure_path(
            slug=p["slug"],
            title=p["title"],
            description=p.get("description"),
            is_published=p.get("is_published", True),
        )
        counts["paths"] += 1

        for idx, m in enumerate(p.get("modules", []), start=1):
            module = ensure_module(path.id, m["title"], m.get("order_index", idx), m.get("description"))
            counts["modules"] += 1

            for r in m.get("resources", []):
                ensure_resource(
                    module_id=module.id,
                    title=r["title"],
                    url=r["url"],
                    type=r.get("type", "DOC"),
                    est_minutes=r.get("est_minutes"),
                    is_free=r.get("is_free", True),
                )
                counts["resources"] += 1

            quiz = m.get("quiz")
            if quiz:
                ensure_quiz(module.id, quiz["title"], quiz["questions"], description=quiz.get("description"))
                counts["quizzes"] += 1

    return counts
