# routetodev/quizzes/routes.py
from flask import Blueprint, abort, current_app, flash, jsonify, redirect, render_template, request, url_for
from flask_login import current_user, login_required
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Module, Quiz, QuizAttempt
from ..urls import request_data, wants_json
from .access import QuizAccessDenied, bundle_path_ids, quiz_access_status, require_quiz_access
from .grading import EmptyQuizError, recent_attempts, submitted_answers, submit_attempt

bp = Blueprint("quizzes", __name__)


def _module_with_quiz_or_404(module_id: int) -> Module:
    module = (
        Module.query
        .options(selectinload(Module.quiz).selectinload(Quiz.questions), selectinload(Module.path))
        .filter_by(id=module_id)
        .one_or_none()
    )
    if module is None or module.quiz is None:
        abort(404)
    return module


@bp.get("/quiz/<int:module_id>")
@login_required
def summary(module_id: int):
    module = _module_with_quiz_or_404(module_id)
    access = quiz_access_status(current_user.id, module)

    return render_template(
        "quiz.html",
        module=module,
        quiz=module.quiz,
        has_access=access.allowed,
        is_premium=access.is_premium,
        attempts=recent_attempts(current_user.id, module.quiz.id),
        error=request.args.get("error"),
    )


@bp.get("/quiz/<int:module_id>/take")
@login_required
def take(module_id: int):
    module = _module_with_quiz_or_404(module_id)

    if not quiz_access_status(current_user.id, module).allowed:
        flash("Purchase this path or go premium to take the quiz.", "warning")
        return redirect(url_for("quizzes.summary", module_id=module_id, error="no-access"))

    return render_template("take_quiz.html", module=module, quiz=module.quiz)


@bp.post("/quiz/<int:module_id>/submit")
@login_required
def submit(module_id: int):
    module = _module_with_quiz_or_404(module_id)

    try:
        require_quiz_access(current_user.id, module)
    except QuizAccessDenied as e:
        current_app.logger.warning(
            "Quiz submit denied user_id=%s module_id=%s reason=%s", current_user.id, module_id, e.reason
        )
        abort(403)

    data = request_data(request)
    if data is None:
        abort(400, "Answers must be an object")

    quiz = module.quiz
    try:
        attempt = submit_attempt(current_user.id, quiz, submitted_answers(data, quiz.questions))
    except EmptyQuizError:
        current_app.logger.error("Quiz has no questions quiz_id=%s", quiz.id)
        abort(400)

    current_app.logger.info(
        "Quiz attempt recorded user_id=%s quiz_id=%s score=%s", current_user.id, quiz.id, attempt.score
    )

    if wants_json(request):
        return jsonify(
            score=attempt.score,
            total_questions=attempt.total_questions,
            correct_answers=attempt.correct_answers,
            answers=attempt.answers,
        )

    return render_template(
        "quiz_results.html",
        module=module,
        quiz=quiz,
        attempt=attempt,
        graded=attempt.answers,
    )


@bp.get("/quizzes")
@login_required
def index():
    user_id = current_user.id
    premium = bool(current_user.is_premium)

    q = Quiz.query.join(Module).options(selectinload(Quiz.module).selectinload(Module.path))
    if not premium:
        q = q.filter(Module.path_id.in_(bundle_path_ids(user_id)))
    quizzes = q.order_by(Module.path_id.asc(), Quiz.module_id.asc()).all()

    last_attempt = {}
    if quizzes:
        attempts = (
            db.session.query(QuizAttempt)
            .filter(QuizAttempt.user_id == user_id)
            .filter(QuizAttempt.quiz_id.in_([qz.id for qz in quizzes]))
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
            .all()
        )
        for a in attempts:
            last_attempt.setdefault(a.quiz_id, a)

    rows = [
        {
            "id": qz.id,
            "title": qz.title,
            "module_id": qz.module_id,
            "module_title": qz.module.title,
            "path_title": qz.module.path.title,
            "question_count": qz.question_count,
            "last_attempt": last_attempt.get(qz.id),
        }
        for qz in quizzes
    ]
    return render_template("quizzes.html", quizzes=rows, premium=premium, status=request.args.get("status"))
