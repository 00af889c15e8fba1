# routetodev/billing/payments.py
"""
Applies ``checkout.session.completed`` events to purchase / premium state.

Idempotency key: the Stripe payment id (``payment_intent``, or the session id
for sessions without one). Every applied event writes exactly one
QuizPurchase row carrying that id, and ``quiz_purchase.stripe_payment_id`` is
UNIQUE. Two checks use it:

1. look the id up before doing anything (redelivery),
2. an IntegrityError on commit means a concurrent delivery won the race.

Both are reported as ``duplicate``; neither is an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from ..models import (
    Path,
    QuizPurchase,
    User,
    PURCHASE_PATH_BUNDLE,
    PURCHASE_PREMIUM,
)


@dataclass(frozen=True)
class CheckoutCompleted:
    payment_id: Optional[str]
    user_id: Optional[int]
    purchase_type: str
    path_id: Optional[int]
    amount_cents: Optional[int] = None


@dataclass(frozen=True)
class ApplyResult:
    applied: bool
    reason: str
    payment_id: Optional[str] = None

    @property
    def duplicate(self) -> bool:
        return self.reason == "duplicate"


def _int_or_none(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_checkout_session(session: Mapping[str, Any]) -> CheckoutCompleted:
    metadata = session.get("metadata") or {}
    payment_id = session.get("payment_intent") or session.get("id")
    return CheckoutCompleted(
        payment_id=str(payment_id) if payment_id else None,
        user_id=_int_or_none(metadata.get("userId")),
        purchase_type=str(metadata.get("purchaseType") or ""),
        path_id=_int_or_none(metadata.get("pathId")),
        amount_cents=_int_or_none(session.get("amount_total")),
    )


class PaymentEventApplier:
    """Built per webhook delivery with the request's DB session and logger."""

    def __init__(self, session, logger, *, path_bundle_price: Decimal, premium_price: Decimal):
        self.session = session
        self.logger = logger
        self.prices = {
            PURCHASE_PATH_BUNDLE: Decimal(path_bundle_price),
            PURCHASE_PREMIUM: Decimal(premium_price),
        }

    def _amount(self, event: CheckoutCompleted) -> Decimal:
        if event.amount_cents is not None:
            return (Decimal(event.amount_cents) / 100).quantize(Decimal("0.01"))
        return self.prices[event.purchase_type]

    def _invalid(self, event: CheckoutCompleted, why: str) -> ApplyResult:
        self.logger.warning(
            "Discarding checkout event (%s) payment_id=%s user_id=%s purchase_type=%r path_id=%s",
            why, event.payment_id, event.user_id, event.purchase_type, event.path_id,
        )
        return ApplyResult(False, "invalid", event.payment_id)

    def already_applied(self, payment_id: str) -> bool:
        return (
            self.session.query(QuizPurchase.id)
            .filter_by(stripe_payment_id=payment_id)
            .first()
            is not None
        )

    def apply(self, event: CheckoutCompleted) -> ApplyResult:
        self.logger.info(
            "Processing checkout event payment_id=%s user_id=%s purchase_type=%s path_id=%s",
            event.payment_id, event.user_id, event.purchase_type, event.path_id,
        )

        if not event.payment_id:
            return self._invalid(event, "no payment id")

        if self.already_applied(event.payment_id):
            self.logger.info("Payment already processed payment_id=%s", event.payment_id)
            return ApplyResult(False, "duplicate", event.payment_id)

        if not event.user_id:
            return self._invalid(event, "no user id")

        user = self.session.get(User, event.user_id)
        if user is None:
            return self._invalid(event, "unknown user")

        if event.purchase_type == PURCHASE_PATH_BUNDLE:
            if not event.path_id:
                return self._invalid(event, "bundle without path id")
            if self.session.get(Path, event.path_id) is None:
                return self._invalid(event, "unknown path")
            reason = "path_bundle"
        elif event.purchase_type == PURCHASE_PREMIUM:
            reason = "premium"
        else:
            return self._invalid(event, "unrecognized purchase type")

        self.session.add(
            QuizPurchase(
                user_id=user.id,
                path_id=event.path_id if reason == "path_bundle" else None,
                purchase_type=event.purchase_type,
                amount=self._amount(event),
                stripe_payment_id=event.payment_id,
                is_active=True,
            )
        )

        # is_premium only ever goes False -> True here
        if reason == "premium" and not user.is_premium:
            user.is_premium = True
            user.premium_purchased_at = datetime.utcnow()

        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            self.logger.info("Payment applied concurrently payment_id=%s", event.payment_id)
            return ApplyResult(False, "duplicate", event.payment_id)

        self.logger.info(
            "Checkout applied payment_id=%s user_id=%s kind=%s", event.payment_id, user.id, reason
        )
        return ApplyResult(True, reason, event.payment_id)
