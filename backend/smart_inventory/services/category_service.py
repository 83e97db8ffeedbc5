# Overview: Product categories.

from __future__ import annotations

from sqlalchemy import and_, func

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError
from .concurrency import rollback_on_error


def list_categories_with_counts() -> list[tuple[Category, int]]:
    """Each category with the number of its active products."""
    rows = (
        db.session.query(Category, func.count(Product.id))
        .outerjoin(Product, and_(Product.category_id == Category.id, Product.is_active.is_(True)))
        .group_by(Category.id)
        .order_by(Category.name.asc())
        .all()
    )
    return [(category, int(count)) for category, count in rows]


@rollback_on_error
def create_category(patch: dict) -> Category:
    name = patch["name"]
    if db.session.query(Category.id).filter(Category.name == name).first():
        raise ConflictError(f"Category '{name}' already exists")
    category = Category(name=name, description=patch.get("description"))
    db.session.add(category)
    db.session.commit()
    return category
