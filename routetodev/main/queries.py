# routetodev/main/queries.py
from sqlalchemy.orm import selectinload

from ..models import Module, Path


def _with_tree(query):
    return query.options(selectinload(Path.modules).selectinload(Module.resources))


def published_paths(newest_first: bool = False):
    order = Path.created_at.desc() if newest_first else Path.created_at.asc()
    return _with_tree(Path.query.filter_by(is_published=True)).order_by(order, Path.id).all()


def path_by_slug(slug: str):
    return _with_tree(Path.query.filter_by(slug=slug)).one_or_none()
