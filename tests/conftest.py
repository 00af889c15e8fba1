import json

import pytest
from werkzeug.security import generate_password_hash

from routetodev import create_app
from routetodev.config import TestConfig
from routetodev.extensions import db
from routetodev.models import Module, Path, Question, Quiz, Resource, User


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email="learner@example.com", password="correct horse", verified=True, premium=False):
        user = User(
            email=email,
            name="Learner",
            password_hash=generate_password_hash(password),
            email_verified=verified,
            is_premium=premium,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def login(client):
    def _login(u):
        with client.session_transaction() as sess:
            sess["_user_id"] = str(u.id)
            sess["_fresh"] = True
    return _login


@pytest.fixture
def path_tree(app):
    """
    Path "frontend" with two modules:
      m1 (order 1): html-a, html-b   + quiz with 4 questions
      m2 (order 2): css-a
    """
    path = Path(title="Frontend Foundations", slug="frontend", description="HTML/CSS", is_published=True)
    db.session.add(path)
    db.session.flush()

    # inserted out of order on purpose: order_index wins over insertion
    m2 = Module(path_id=path.id, title="CSS", order_index=2)
    m1 = Module(path_id=path.id, title="HTML", order_index=1)
    db.session.add_all([m2, m1])
    db.session.flush()

    html_a = Resource(module_id=m1.id, title="HTML A", url="https://example.com/html-a", est_minutes=10)
    html_b = Resource(module_id=m1.id, title="HTML B", url="https://example.com/html-b", est_minutes=20)
    css_a = Resource(module_id=m2.id, title="CSS A", url="https://example.com/css-a", est_minutes=15)
    db.session.add_all([html_a, html_b, css_a])
    db.session.flush()

    quiz = Quiz(module_id=m1.id, title="HTML Quiz", question_count=4)
    db.session.add(quiz)
    db.session.flush()

    rows = [
        ("Main content element?", ["<div>", "<main>", "<section>"], ["<main>"]),
        ("Navigation element?", ["<nav>", "<menu>"], ["<nav>"]),
        ("Self-contained content?", ["<article>", "<aside>", "<section>"], ["<article>", "<section>"]),
        ("Tangential content?", ["<aside>", "<footer>"], ["<aside>"]),
    ]
    questions = []
    for i, (text, options, correct) in enumerate(rows):
        q = Question(
            quiz_id=quiz.id,
            question_text=text,
            options=json.dumps(options),
            correct_answer=json.dumps(correct),
            order_index=i,
        )
        db.session.add(q)
        questions.append(q)
    db.session.commit()

    return {
        "path": path,
        "m1": m1,
        "m2": m2,
        "html_a": html_a,
        "html_b": html_b,
        "css_a": css_a,
        "quiz": quiz,
        "questions": questions,
    }
