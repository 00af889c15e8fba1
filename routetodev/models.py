import json
from datetime import datetime

from flask_login import UserMixin

from .extensions import db

PROGRESS_NOT_STARTED = "NOT_STARTED"
PROGRESS_DONE = "DONE"

PURCHASE_PATH_BUNDLE = "PATH_BUNDLE"
PURCHASE_PREMIUM = "PREMIUM_MEMBERSHIP"

RESOURCE_TYPES = ("DOC", "VIDEO", "COURSE", "INTERACTIVE")


class User(UserMixin, db.Model):
    __tablename__ = "user"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String, unique=True, nullable=False)
    password_hash = db.Column(db.String)  # NULL for Google sign-in accounts
    name = db.Column(db.String)
    role = db.Column(db.String, default="USER", nullable=False)

    is_premium = db.Column(db.Boolean, default=False, nullable=False)
    premium_purchased_at = db.Column(db.DateTime)

    email_verified = db.Column(db.Boolean, default=False, nullable=False)
    email_verification_token = db.Column(db.String, index=True)
    email_verification_expires = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class Path(db.Model):
    __tablename__ = "path"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String, nullable=False)
    slug = db.Column(db.String, unique=True, nullable=False)
    description = db.Column(db.Text)
    is_published = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    modules = db.relationship(
        "Module",
        back_populates="path",
        order_by="Module.order_index",
        cascade="all, delete-orphan",
    )


class Module(db.Model):
    __tablename__ = "module"
    id = db.Column(db.Integer, primary_key=True)
    path_id = db.Column(db.Integer, db.ForeignKey("path.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String, nullable=False)
    description = db.Column(db.Text)
    order_index = db.Column(db.Integer, nullable=False)

    path = db.relationship("Path", back_populates="modules")
    # Insertion order: resources are listed by id.
    resources = db.relationship(
        "Resource",
        back_populates="module",
        order_by="Resource.id",
        cascade="all, delete-orphan",
    )
    quiz = db.relationship("Quiz", back_populates="module", uselist=False, cascade="all, delete-orphan")


class Resource(db.Model):
    __tablename__ = "resource"
    id = db.Column(db.Integer, primary_key=True)
    module_id = db.Column(db.Integer, db.ForeignKey("module.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String, nullable=False)
    url = db.Column(db.String, nullable=False)
    type = db.Column(db.String, default="DOC", nullable=False)
    est_minutes = db.Column(db.Integer)
    is_free = db.Column(db.Boolean, default=True, nullable=False)

    module = db.relationship("Module", back_populates="resources")


class Progress(db.Model):
    __tablename__ = "progress"
    __table_args__ = (
        db.UniqueConstraint("user_id", "resource_id", name="uq_progress_user_resource"),
    )
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_id = db.Column(db.Integer, db.ForeignKey("resource.id", ondelete="CASCADE"), nullable=False)
    status = db.Column(db.String, default=PROGRESS_NOT_STARTED, nullable=False)
    # local server time: the weekly goal buckets by local ISO week
    last_seen_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    resource = db.relationship("Resource")


class Quiz(db.Model):
    __tablename__ = "quiz"
    id = db.Column(db.Integer, primary_key=True)
    module_id = db.Column(db.Integer, db.ForeignKey("module.id", ondelete="CASCADE"), unique=True, nullable=False)
    title = db.Column(db.String, nullable=False)
    description = db.Column(db.Text)
    question_count = db.Column(db.Integer, default=0, nullable=False)
    individual_price = db.Column(db.Numeric(10, 2), default=0, nullable=False)

    module = db.relationship("Module", back_populates="quiz")
    questions = db.relationship(
        "Question",
        back_populates="quiz",
        order_by="Question.order_index",
        cascade="all, delete-orphan",
    )


class Question(db.Model):
    __tablename__ = "question"
    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quiz.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = db.Column(db.Text, nullable=False)
    # JSON-encoded lists of strings
    options = db.Column(db.Text, nullable=False)
    correct_answer = db.Column(db.Text, nullable=False)
    explanation = db.Column(db.Text)
    order_index = db.Column(db.Integer, nullable=False)

    quiz = db.relationship("Quiz", back_populates="questions")

    @property
    def option_list(self) -> list:
        return json.loads(self.options or "[]")

    @property
    def accepted_answers(self) -> list:
        return json.loads(self.correct_answer or "[]")


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempt"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quiz.id", ondelete="CASCADE"), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False)
    total_questions = db.Column(db.Integer, nullable=False)
    correct_answers = db.Column(db.Integer, nullable=False)
    answers = db.Column(db.JSON)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class QuizPurchase(db.Model):
    __tablename__ = "quiz_purchase"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    path_id = db.Column(db.Integer, db.ForeignKey("path.id", ondelete="CASCADE"))
    purchase_type = db.Column(db.String, nullable=False)  # PATH_BUNDLE / PREMIUM_MEMBERSHIP
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    # idempotency key for webhook deliveries
    stripe_payment_id = db.Column(db.String, unique=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
