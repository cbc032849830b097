import logging

from core.errors import BadRequest, NotFound
from core.extensions import db
from core.imports import func
from models.productModels import Category

logger = logging.getLogger(__name__)


def list_categories():
    return Category.query.order_by(Category.name.asc()).all()


def get_category(category_id):
    category = db.session.get(Category, category_id)
    if not category:
        raise NotFound(f"Category with id {category_id} not found")
    return category


def _clean_name(name):
    if not isinstance(name, str) or not name.strip():
        raise BadRequest("Category name is required")
    name = name.strip()
    if len(name) > 120:
        raise BadRequest("Category name must be at most 120 characters")
    return name


def _ensure_unique(name, exclude_id=None):
    query = Category.query.filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise BadRequest(f'Category with name "{name}" already exists')


def create_category(name):
    name = _clean_name(name)
    _ensure_unique(name)
    category = Category(name=name)
    db.session.add(category)
    db.session.commit()
    logger.info("Created category %s", name)
    return category


def update_category(category_id, name):
    category = get_category(category_id)
    name = _clean_name(name)
    _ensure_unique(name, exclude_id=category.id)
    category.name = name
    db.session.commit()
    return category


def delete_category(category_id):
    category = get_category(category_id)
    if category.products:
        raise BadRequest(
            f'Cannot delete category "{category.name}": it is used by {len(category.products)} product(s)'
        )
    db.session.delete(category)
    db.session.commit()
    logger.info("Deleted category %s", category.name)


def find_or_create_by_names(names):
    """Resolve category names to rows, creating the missing ones. Does not commit."""
    result = []
    seen = set()
    for raw in names or []:
        if not isinstance(raw, str) or not raw.strip():
            continue
        name = raw.strip()
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        category = Category.query.filter(func.lower(Category.name) == name.lower()).first()
        if not category:
            category = Category(name=name)
            db.session.add(category)
        result.append(category)
    return result
