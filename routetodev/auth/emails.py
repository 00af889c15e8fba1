# routetodev/auth/emails.py
from flask import current_app, render_template, url_for
from flask_mail import Message

from ..extensions import mail


def verification_url(token: str) -> str:
    base = (current_app.config.get("BASE_URL") or "").rstrip("/")
    return f"{base}{url_for('auth.verify_email', token=token)}"


def send_verification_email(email: str, token: str, name: str) -> bool:
    """Returns False instead of raising so registration still completes."""
    link = verification_url(token)
    hours = current_app.config.get("EMAIL_VERIFICATION_HOURS", 24)

    msg = Message(
        subject="Verify your RouteToDev account",
        recipients=[email],
        body=render_template("email/verify.txt", name=name or email, link=link, hours=hours),
        html=render_template("email/verify.html", name=name or email, link=link, hours=hours),
    )
    try:
        mail.send(msg)
    except Exception:
        current_app.logger.exception("Failed to send verification email to %s", email)
        return False

    current_app.logger.info("Verification email sent to %s", email)
    return True
