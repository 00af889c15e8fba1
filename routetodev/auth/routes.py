# routetodev/auth/routes.py
import secrets
from datetime import datetime, timedelta

from flask import Blueprint, abort, current_app, redirect, render_template, request, url_for
from flask_login import login_required, login_user, logout_user
from werkzeug.security import check_password_hash, generate_password_hash

from ..extensions import db, oauth
from ..models import User
from ..urls import is_local_url
from .emails import send_verification_email

bp = Blueprint("auth", __name__, url_prefix="/auth")

MIN_PASSWORD_LENGTH = 8

LOGIN_MESSAGES = {
    "check-email": "Registration successful! Please check your email to verify your account.",
}
LOGIN_ERRORS = {
    "email-failed": "Registration successful, but we couldn't send the verification email. Please contact support.",
}


def _safe_next(target) -> str:
    return target if is_local_url(target) else url_for("main.index")


@bp.get("/register")
def register_form():
    return render_template("register.html", error="")


@bp.post("/register")
def register():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    confirm = request.form.get("confirm_password") or ""
    name = (request.form.get("name") or "").strip()

    error = None
    if not email or not password or not confirm:
        error = "All fields are required."
    elif password != confirm:
        error = "Passwords do not match."
    elif len(password) < MIN_PASSWORD_LENGTH:
        error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
    elif User.query.filter_by(email=email).first():
        error = "Email already in use."
    if error:
        return render_template("register.html", error=error), 400

    token = secrets.token_hex(32)
    hours = current_app.config.get("EMAIL_VERIFICATION_HOURS", 24)
    user = User(
        email=email,
        name=name or None,
        password_hash=generate_password_hash(password),
        email_verification_token=token,
        email_verification_expires=datetime.utcnow() + timedelta(hours=hours),
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("User registered user_id=%s", user.id)

    if send_verification_email(email, token, name):
        return redirect(url_for("auth.login", message="check-email"))
    return redirect(url_for("auth.login", error="email-failed"))


@bp.get("/verify-email")
def verify_email():
    token = request.args.get("token")
    if not token:
        return render_template("verify_email.html", error="Invalid verification link.", success=None), 400

    user = (
        User.query
        .filter_by(email_verification_token=token, email_verified=False)
        .filter(User.email_verification_expires > datetime.utcnow())
        .first()
    )
    if user is None:
        return render_template(
            "verify_email.html",
            error="Invalid or expired verification link. Please try registering again or contact support.",
            success=None,
        ), 400

    user.email_verified = True
    user.email_verification_token = None
    user.email_verification_expires = None
    db.session.commit()
    current_app.logger.info("Email verified user_id=%s", user.id)

    return render_template(
        "verify_email.html",
        error=None,
        success="Email verified successfully! You can now log in to your account.",
    )


@bp.get("/login")
def login():
    return render_template(
        "login.html",
        error=LOGIN_ERRORS.get(request.args.get("error"), ""),
        message=LOGIN_MESSAGES.get(request.args.get("message"), ""),
        next=_safe_next(request.args.get("next")),
        google_enabled=oauth.create_client("google") is not None,
    )


@bp.post("/login")
def login_submit():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    next_url = _safe_next(request.form.get("next"))

    user = User.query.filter_by(email=email).first()
    if not user or not user.password_hash or not check_password_hash(user.password_hash, password):
        return render_template("login.html", error="Invalid credentials.", message="", next=next_url), 401

    if not user.email_verified:
        return render_template(
            "login.html",
            error="Please verify your email address before logging in. Check your email for a verification link.",
            message="",
            next=next_url,
        ), 401

    login_user(user)
    return redirect(next_url)


@bp.post("/logout")
@login_required
def logout():
    logout_user()
    return redirect(url_for("main.index"))


@bp.get("/google/login")
def google_login():
    client = oauth.create_client("google")
    if client is None:
        abort(404)
    redirect_uri = url_for("auth.google_callback", _external=True)
    return client.authorize_redirect(redirect_uri)


@bp.get("/google/callback")
def google_callback():
    client = oauth.create_client("google")
    if client is None:
        abort(404)

    token = client.authorize_access_token()
    userinfo = token.get("userinfo") or client.userinfo()

    email = (userinfo.get("email") or "").strip().lower()
    if not email:
        abort(400)

    user = User.query.filter_by(email=email).first()
    if not user:
        user = User(email=email, name=userinfo.get("name"), email_verified=True)
        db.session.add(user)
    else:
        # Google has verified the address for us.
        user.email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
    db.session.commit()

    login_user(user)
    return redirect(url_for("main.index"))
