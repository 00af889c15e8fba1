# routetodev/billing/stripe_client.py
import stripe
from flask import current_app


def _api_key() -> str:
    key = current_app.config.get("STRIPE_SECRET_KEY")
    if not key:
        raise RuntimeError("STRIPE_SECRET_KEY is not set")
    return key


def create_payment_checkout(*, price_id: str, metadata: dict, success_url: str, cancel_url: str, customer_email=None):
    """
    One-off ``payment`` mode Checkout session. The key is passed per call so
    no process-wide ``stripe.api_key`` is ever set.
    """
    params = dict(
        mode="payment",
        payment_method_types=["card"],
        line_items=[{"price": price_id, "quantity": 1}],
        metadata=metadata,
        success_url=success_url,
        cancel_url=cancel_url,
    )
    if customer_email:
        params["customer_email"] = customer_email
    return stripe.checkout.Session.create(api_key=_api_key(), **params)


def construct_webhook_event(payload: bytes, sig_header):
    """
    Raises ValueError for an unparsable payload and
    stripe.SignatureVerificationError for a bad signature.
    """
    whsec = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not whsec:
        raise RuntimeError("STRIPE_WEBHOOK_SECRET is not set")
    return stripe.Webhook.construct_event(payload, sig_header, whsec)
