# routetodev/quizzes/access.py
"""
Centralized, DB-only quiz entitlement.

- Answers: "May this user open this module's quiz right now?"
- Premium membership OR an active PATH_BUNDLE purchase for the module's path.
- MUST NOT call Stripe. Purchases only enter the DB via the webhook.
- Nothing is cached; every quiz route asks again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..extensions import db
from ..models import Module, QuizPurchase, User, PURCHASE_PATH_BUNDLE


class QuizAccessDenied(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class AccessResult:
    allowed: bool
    reason: str
    is_premium: bool = False


def has_path_bundle(user_id: int, path_id: int) -> bool:
    return (
        db.session.query(QuizPurchase.id)
        .filter_by(user_id=user_id, path_id=path_id, purchase_type=PURCHASE_PATH_BUNDLE, is_active=True)
        .first()
        is not None
    )


def quiz_access_status(user_id: Optional[int], module: Module) -> AccessResult:
    if not user_id:
        return AccessResult(False, "no_user_id")

    # Re-read the row: the webhook may have flipped is_premium since login.
    user = db.session.get(User, user_id)
    if user is None:
        return AccessResult(False, "no_user")

    if user.is_premium:
        return AccessResult(True, "premium", is_premium=True)

    if has_path_bundle(user_id, module.path_id):
        return AccessResult(True, "path_bundle")

    return AccessResult(False, "no_purchase")


def has_quiz_access(user_id: Optional[int], module: Module) -> bool:
    return quiz_access_status(user_id, module).allowed


def require_quiz_access(user_id: Optional[int], module: Module) -> AccessResult:
    status = quiz_access_status(user_id, module)
    if not status.allowed:
        raise QuizAccessDenied(status.reason)
    return status


def bundle_path_ids(user_id: int) -> List[int]:
    rows = (
        db.session.query(QuizPurchase.path_id)
        .filter_by(user_id=user_id, purchase_type=PURCHASE_PATH_BUNDLE, is_active=True)
        .filter(QuizPurchase.path_id.isnot(None))
        .distinct()
        .all()
    )
    return [pid for (pid,) in rows]
