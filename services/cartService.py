import logging

from core.errors import BadRequest, NotFound
from core.extensions import db
from models.cartModels import Cart, CartItem
from models.productModels import Product
from models.userModel import User

logger = logging.getLogger(__name__)


def get_cart(cart_id):
    cart = db.session.get(Cart, cart_id)
    if not cart:
        raise NotFound(f"Cart {cart_id} not found")
    return cart


def get_cart_by_user(user_id):
    cart = Cart.query.filter_by(user_id=user_id).first()
    if not cart:
        raise NotFound(f"Cart for user {user_id} not found")
    return cart


def create_cart(user_id):
    """Return ``(cart, created)``; an existing cart is returned as-is."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound(f"User {user_id} not found")
    if user.cart:
        return user.cart, False

    cart = Cart(user_id=user.id)
    db.session.add(cart)
    db.session.commit()
    logger.info("Created cart %s for user %s", cart.id, user_id)
    return cart, True


def resolve_presentation(product, presentation):
    """Match ``presentation`` against the product's list; returns the canonical value or None."""
    if presentation is None or not str(presentation).strip():
        return None
    wanted = str(presentation).strip().lower()
    for option in product.presentations():
        if option.lower() == wanted:
            return option
    raise BadRequest(
        f'Invalid presentation "{presentation}" for product {product.id}. '
        f"Available: {', '.join(product.presentations()) or 'none'}"
    )


def _item_filter(cart_id, product_id, presentation):
    query = CartItem.query.filter(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
    if presentation is None:
        return query.filter(CartItem.presentation.is_(None))
    return query.filter(CartItem.presentation == presentation)


def _refresh(cart):
    db.session.expire(cart)
    return cart


def add_item(cart_id, product_id, quantity=1, presentation=None):
    if quantity < 1:
        raise BadRequest("quantity must be a positive integer")
    cart = get_cart(cart_id)
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFound(f"Product {product_id} not found")
    presentation = resolve_presentation(product, presentation)

    # single UPDATE so concurrent adds never lose increments
    affected = _item_filter(cart.id, product.id, presentation).update(
        {CartItem.quantity: CartItem.quantity + quantity}, synchronize_session=False
    )
    if affected == 0:
        db.session.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity, presentation=presentation))
    db.session.commit()
    return _refresh(cart)


def remove_item(cart_id, product_id, quantity=1, presentation=None):
    if quantity < 1:
        raise BadRequest("quantity must be a positive integer")
    cart = get_cart(cart_id)
    product = db.session.get(Product, product_id)
    if not product:
        raise BadRequest(f"Cart {cart_id} does not contain item {product_id}")
    presentation = resolve_presentation(product, presentation)

    # no presentation means the NULL-presentation line, as in add_item
    affected = _item_filter(cart.id, product.id, presentation).update(
        {CartItem.quantity: CartItem.quantity - quantity}, synchronize_session=False
    )
    if affected == 0:
        db.session.rollback()
        raise BadRequest(f"Cart {cart_id} does not contain item {product_id}")

    CartItem.query.filter(CartItem.cart_id == cart.id, CartItem.quantity <= 0).delete(synchronize_session=False)
    db.session.commit()
    return _refresh(cart)


def empty_cart(cart_id):
    cart = get_cart(cart_id)
    CartItem.query.filter_by(cart_id=cart.id).delete(synchronize_session=False)
    db.session.commit()
    return _refresh(cart)
