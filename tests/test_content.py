import json

import pytest

from routetodev.content.service import (
    InvalidQuestion,
    ensure_module,
    ensure_path,
    ensure_quiz,
    ensure_resource,
    import_content,
    validate_question,
)
from routetodev.extensions import db
from routetodev.models import Module, Path, Question, Quiz, Resource

DOC = {
    "paths": [
        {
            "slug": "backend",
            "title": "Backend Basics",
            "description": "HTTP, databases, APIs",
            "modules": [
                {
                    "title": "HTTP",
                    "resources": [
                        {"title": "HTTP overview", "url": "https://example.com/http", "type": "DOC", "est_minutes": 12},
                        {"title": "HTTP video", "url": "https://example.com/http-video", "type": "VIDEO"},
                    ],
                    "quiz": {
                        "title": "HTTP Quiz",
                        "questions": [
                            {
                                "question_text": "Which method is idempotent?",
                                "options": ["POST", "PUT", "PATCH"],
                                "correct_answer": ["PUT"],
                            },
                        ],
                    },
                },
                {"title": "SQL", "resources": [{"title": "SQL intro", "url": "https://example.com/sql"}]},
            ],
        }
    ]
}


def test_import_is_idempotent(app):
    first = import_content(DOC)
    db.session.commit()
    second = import_content(DOC)
    db.session.commit()

    assert first == second == {"paths": 1, "modules": 2, "resources": 3, "quizzes": 1}
    assert Path.query.count() == 1
    assert Module.query.count() == 2
    assert Resource.query.count() == 3
    assert Quiz.query.count() == 1
    assert Question.query.count() == 1

    http = Module.query.filter_by(title="HTTP").one()
    assert http.order_index == 1
    assert http.quiz.question_count == 1


def test_resource_matches_on_title_or_url(app):
    path = ensure_path(slug="p", title="P")
    module = ensure_module(path.id, "M", 1)

    a = ensure_resource(module_id=module.id, title="Guide", url="https://example.com/guide")
    renamed = ensure_resource(module_id=module.id, title="Guide (new title)", url="https://example.com/guide")
    moved = ensure_resource(module_id=module.id, title="Guide", url="https://example.com/moved")

    assert a.id == renamed.id == moved.id
    assert Resource.query.count() == 1


def test_module_reorder_updates_existing_row(app):
    path = ensure_path(slug="p", title="P")
    m = ensure_module(path.id, "M", 1)
    again = ensure_module(path.id, "M", 5, "now with a description")
    assert m.id == again.id
    assert again.order_index == 5
    assert again.description == "now with a description"


def test_unknown_resource_type_rejected(app):
    path = ensure_path(slug="p", title="P")
    module = ensure_module(path.id, "M", 1)
    with pytest.raises(ValueError):
        ensure_resource(module_id=module.id, title="X", url="https://example.com/x", type="PODCAST")


def test_validate_question():
    assert validate_question("q", ["a", "b"], ["b", "b"]) == ["b"]
    with pytest.raises(InvalidQuestion):
        validate_question("q", ["a", "b"], [])
    with pytest.raises(InvalidQuestion):
        validate_question("q", ["a", "b"], ["c"])
    with pytest.raises(InvalidQuestion):
        validate_question("q", [], ["a"])


def test_ensure_quiz_replaces_questions(app):
    path = ensure_path(slug="p", title="P")
    module = ensure_module(path.id, "M", 1)

    ensure_quiz(module.id, "Quiz", [
        {"question_text": "one", "options": ["a", "b"], "correct_answer": ["a"]},
        {"question_text": "two", "options": ["a", "b"], "correct_answer": ["a", "b"]},
    ])
    db.session.commit()

    quiz = ensure_quiz(module.id, "Quiz v2", [
        {"question_text": "only", "options": ["x", "y"], "correct_answer": ["y"]},
    ])
    db.session.commit()

    assert Quiz.query.count() == 1
    assert quiz.title == "Quiz v2"
    assert quiz.question_count == 1
    assert [q.question_text for q in Question.query.all()] == ["only"]
    assert json.loads(quiz.questions[0].correct_answer) == ["y"]


def test_ensure_quiz_refuses_empty(app):
    path = ensure_path(slug="p", title="P")
    module = ensure_module(path.id, "M", 1)
    with pytest.raises(InvalidQuestion):
        ensure_quiz(module.id, "Empty", [])


def test_import_content_cli(app, tmp_path):
    source = tmp_path / "content.json"
    source.write_text(json.dumps(DOC), encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["import-content", str(source)])

    assert result.exit_code == 0, result.output
    assert "OK: 1 paths, 2 modules, 3 resources, 1 quizzes" in result.output
    assert Path.query.filter_by(slug="backend").one().is_published


def test_import_content_cli_reports_bad_question(app, tmp_path):
    bad = json.loads(json.dumps(DOC))
    bad["paths"][0]["modules"][0]["quiz"]["questions"][0]["correct_answer"] = ["DELETE"]
    source = tmp_path / "bad.json"
    source.write_text(json.dumps(bad), encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["import-content", str(source)])

    assert result.exit_code != 0
    assert "Import failed" in result.output
    assert Path.query.count() == 0
