# routetodev/main/routes.py
from flask import Blueprint, abort, current_app, jsonify, render_template
from flask_login import current_user

from ..progress.service import done_map, module_summaries, next_resource, path_resources, summarize
from .queries import path_by_slug, published_paths

bp = Blueprint("main", __name__)


def _current_user_id():
    return current_user.id if current_user.is_authenticated else None


@bp.get("/")
def index():
    paths = published_paths()
    doneness = done_map(_current_user_id(), [r.id for p in paths for r in path_resources(p)])

    cards = []
    for p in paths:
        nxt = next_resource(p, doneness)
        cards.append({
            "title": p.title,
            "slug": p.slug,
            "description": p.description,
            "modules_count": len(p.modules),
            "progress": summarize(path_resources(p), doneness),
            "next_url": nxt.url if nxt else None,
        })

    return render_template("index.html", paths=cards)


@bp.get("/p/<slug>")
def path_page(slug: str):
    p = path_by_slug(slug)
    if p is None:
        abort(404)

    resources = path_resources(p)
    doneness = done_map(_current_user_id(), [r.id for r in resources])

    return render_template(
        "path.html",
        p=p,
        done_map=doneness,
        overall=summarize(resources, doneness),
        module_progress=module_summaries(p, doneness),
        next_resource=next_resource(p, doneness),
    )


@bp.get("/pricing")
def pricing():
    return render_template(
        "pricing.html",
        path_price=current_app.config.get("PATH_BUNDLE_PRICE"),
        premium_price=current_app.config.get("PREMIUM_PRICE"),
    )


@bp.get("/health")
def health():
    return jsonify(ok=True)
