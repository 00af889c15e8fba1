# routetodev/progress/routes.py
from urllib.parse import urlparse

from flask import Blueprint, abort, current_app, jsonify, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ..main.queries import published_paths
from ..urls import is_local_url, request_data, wants_json
from .service import (
    UnknownResource,
    done_map,
    next_resource,
    path_resources,
    recent_done,
    set_resource_status,
    summarize,
    weekly_goal,
)

bp = Blueprint("progress", __name__)


@bp.post("/progress")
@login_required
def toggle():
    data = request_data(request)
    if data is None:
        abort(400, "Body must be an object")

    try:
        resource_id = int(data.get("resource_id", ""))
    except (TypeError, ValueError):
        abort(400, "Bad resource_id")

    action = str(data.get("action") or "done").strip().lower()

    try:
        status = set_resource_status(current_user.id, resource_id, action)
    except UnknownResource:
        abort(404)

    current_app.logger.info(
        "Progress updated user_id=%s resource_id=%s status=%s", current_user.id, resource_id, status
    )

    if wants_json(request):
        return jsonify(success=True, status=status)

    for target in (data.get("redirect_to"), _referrer_path()):
        if is_local_url(target):
            return redirect(target)
    return redirect(url_for("main.index"))


def _referrer_path():
    """Referrer reduced to a path when it points back at this host."""
    ref = request.referrer
    if not ref:
        return None
    parsed = urlparse(ref)
    if parsed.netloc and parsed.netloc != request.host:
        return None
    path = parsed.path or "/"
    return f"{path}?{parsed.query}" if parsed.query else path


@bp.get("/me")
@login_required
def dashboard():
    user_id = current_user.id
    paths = published_paths(newest_first=True)

    doneness = done_map(user_id, [r.id for p in paths for r in path_resources(p)])

    rows = []
    for p in paths:
        summary = summarize(path_resources(p), doneness)
        if summary.done == 0:
            continue
        nxt = next_resource(p, doneness)
        rows.append({
            "title": p.title,
            "slug": p.slug,
            "progress": summary,
            "next_url": nxt.url if nxt else None,
        })

    goal = weekly_goal(user_id, paths, target=current_app.config.get("WEEKLY_GOAL_TARGET", 1))

    return render_template(
        "me.html",
        done=recent_done(user_id),
        paths=rows,
        weekly_goal=goal,
    )
