# routetodev/billing/routes.py
import stripe
from flask import Blueprint, abort, current_app, jsonify, redirect, request, url_for
from flask_login import current_user, login_required

from ..extensions import db
from ..models import Path, PURCHASE_PATH_BUNDLE, PURCHASE_PREMIUM
from .payments import PaymentEventApplier, parse_checkout_session
from .stripe_client import construct_webhook_event, create_payment_checkout

bp = Blueprint("billing", __name__, url_prefix="/billing")


def _success_url():
    return url_for("quizzes.index", status="success", _external=True)


@bp.post("/checkout/path")
@login_required
def checkout_path():
    try:
        path_id = int(request.form.get("path_id", ""))
    except ValueError:
        current_app.logger.warning("Invalid path_id in checkout: %r", request.form.get("path_id"))
        return ("Bad path_id", 400)

    path = db.session.get(Path, path_id)
    if path is None:
        abort(404)

    price_id = current_app.config.get("STRIPE_PRICE_PATH_USD")
    if not current_app.config.get("STRIPE_SECRET_KEY") or not price_id:
        current_app.logger.error("Stripe not configured for path checkout")
        return ("Stripe not configured", 500)

    current_app.logger.info("Path checkout attempt user_id=%s path_id=%s", current_user.id, path_id)

    try:
        session = create_payment_checkout(
            price_id=price_id,
            metadata={
                "purchaseType": PURCHASE_PATH_BUNDLE,
                "userId": str(current_user.id),
                "pathId": str(path_id),
            },
            success_url=_success_url(),
            cancel_url=url_for("main.path_page", slug=path.slug, status="canceled", _external=True),
            customer_email=current_user.email,
        )
    except stripe.StripeError:
        current_app.logger.exception("Path checkout error user_id=%s path_id=%s", current_user.id, path_id)
        return ("Checkout error", 500)

    current_app.logger.info("Stripe session created for path checkout session_id=%s", session.id)
    return redirect(session.url, code=303)


@bp.post("/checkout/premium")
@login_required
def checkout_premium():
    price_id = current_app.config.get("STRIPE_PRICE_PREMIUM_USD")
    if not current_app.config.get("STRIPE_SECRET_KEY") or not price_id:
        current_app.logger.error("Stripe not configured for premium checkout")
        return ("Stripe not configured", 500)

    if current_user.is_premium:
        return redirect(url_for("quizzes.index"))

    current_app.logger.info("Premium checkout attempt user_id=%s", current_user.id)

    try:
        session = create_payment_checkout(
            price_id=price_id,
            metadata={
                "purchaseType": PURCHASE_PREMIUM,
                "userId": str(current_user.id),
            },
            success_url=_success_url(),
            cancel_url=url_for("billing.checkout_cancel", _external=True),
            customer_email=current_user.email,
        )
    except stripe.StripeError:
        current_app.logger.exception("Premium checkout error user_id=%s", current_user.id)
        return ("Checkout error", 500)

    current_app.logger.info("Stripe session created for premium checkout session_id=%s", session.id)
    return redirect(session.url, code=303)


@bp.get("/success")
@login_required
def checkout_success():
    # Don't update DB here. Webhook is the source of truth.
    return redirect(url_for("quizzes.index", status="success"))


@bp.get("/cancel")
@login_required
def checkout_cancel():
    return redirect(url_for("main.pricing"))


@bp.post("/webhook")
def stripe_webhook():
    payload = request.get_data(as_text=False)
    sig_header = request.headers.get("Stripe-Signature")

    if not current_app.config.get("STRIPE_WEBHOOK_SECRET"):
        return ("STRIPE_WEBHOOK_SECRET is not set", 500)
    if not sig_header:
        return ("Missing signature", 400)

    try:
        event = construct_webhook_event(payload, sig_header)
    except ValueError:
        return ("Invalid payload", 400)
    except stripe.SignatureVerificationError:
        current_app.logger.warning("Stripe webhook signature verification failed")
        return ("Invalid signature", 400)

    if event["type"] != "checkout.session.completed":
        return jsonify(received=True)

    # Past this point the provider always gets a 2xx; failures are logged only.
    result = None
    try:
        checkout = parse_checkout_session(event["data"]["object"])
        applier = PaymentEventApplier(
            db.session,
            current_app.logger,
            path_bundle_price=current_app.config["PATH_BUNDLE_PRICE"],
            premium_price=current_app.config["PREMIUM_PRICE"],
        )
        result = applier.apply(checkout)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Webhook processing error event_id=%s", event.get("id"))

    if result is not None and result.duplicate:
        return jsonify(received=True, duplicate=True)
    return jsonify(received=True)
