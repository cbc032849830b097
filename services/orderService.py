import logging
import math

from core.dates import now
from core.errors import BadRequest, Forbidden, NotFound
from core.extensions import db
from models.orderModels import Order, ORDER_STATUSES, CUSTOMER_TYPES

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("fullName", "email", "phone", "address")


def validate_contact_info(contact):
    if not isinstance(contact, dict):
        raise BadRequest("contactInfo is required")
    missing = [f for f in CONTACT_FIELDS if not str(contact.get(f) or "").strip()]
    if missing:
        raise BadRequest(f"contactInfo is missing: {', '.join(missing)}")
    return {f: str(contact[f]).strip() for f in CONTACT_FIELDS}


def validate_business_info(business, customer_type):
    if business in (None, {}):
        if customer_type == "CLIENTE_MAYORISTA":
            raise BadRequest("businessInfo is required for CLIENTE_MAYORISTA orders")
        return None
    if not isinstance(business, dict):
        raise BadRequest("businessInfo must be an object")
    if not business.get("cuit") or not business.get("situacionAfip"):
        raise BadRequest("businessInfo requires cuit and situacionAfip")
    return {
        "cuit": business["cuit"],
        "razonSocial": business.get("razonSocial"),
        "situacionAfip": business["situacionAfip"],
        "codigoPostal": business.get("codigoPostal"),
    }


def validate_items(items):
    if not isinstance(items, list) or not items:
        raise BadRequest("The order has no items")
    cleaned = []
    for item in items:
        if not isinstance(item, dict) or item.get("productId") is None or not item.get("productName"):
            raise BadRequest("Each item requires productId and productName")
        quantity = item.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise BadRequest("Each item requires a positive integer quantity")
        unit_price = item.get("unitPrice")
        if unit_price is not None:
            try:
                unit_price = float(unit_price)
            except (TypeError, ValueError):
                raise BadRequest("unitPrice must be a number")
        cleaned.append({
            "productId": item["productId"],
            "productName": item["productName"],
            "quantity": quantity,
            "unitPrice": unit_price,
            "presentation": item.get("presentation"),
        })
    return cleaned


def compute_total(items):
    priced = [i for i in items if i.get("unitPrice") is not None]
    if not priced:
        return None
    return round(sum(i["quantity"] * i["unitPrice"] for i in priced), 2)


def create_order(user_id, data):
    customer_type = data.get("customerType")
    if customer_type not in CUSTOMER_TYPES:
        raise BadRequest(f"customerType must be one of: {', '.join(CUSTOMER_TYPES)}")

    items = validate_items(data.get("items"))
    order = Order(
        user_id=user_id,
        customer_type=customer_type,
        contact_info=validate_contact_info(data.get("contactInfo")),
        business_info=validate_business_info(data.get("businessInfo"), customer_type),
        items=items,
        total_amount=compute_total(items),
        notes=data.get("notes"),
    )
    db.session.add(order)
    db.session.commit()
    logger.info("Orden creada con ID: %s", order.id)
    return order


def list_orders():
    return Order.query.order_by(Order.created_at.desc()).all()


def list_user_orders(user_id):
    return Order.query.filter_by(user_id=user_id).order_by(Order.created_at.desc()).all()


def _paginate(query, page, limit):
    total = query.order_by(None).count()
    orders = query.order_by(Order.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "data": orders,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def paginate_user_orders(user_id, page=1, limit=10):
    page = max(1, page)
    limit = max(1, min(100, limit))
    return _paginate(Order.query.filter_by(user_id=user_id), page, limit)


def paginate_all_orders(page=1, limit=20, status=None):
    page = max(1, page)
    limit = max(20, min(100, limit))
    query = Order.query
    if status:
        if status not in ORDER_STATUSES:
            raise BadRequest(f"status must be one of: {', '.join(ORDER_STATUSES)}")
        query = query.filter_by(status=status)
    return _paginate(query, page, limit)


def get_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFound(f"Order {order_id} not found")
    return order


def get_order_for(order_id, user_id, is_staff):
    order = get_order(order_id)
    if not is_staff and order.user_id != user_id:
        raise Forbidden("You do not have access to this order")
    return order


def update_status(order_id, status):
    if status not in ORDER_STATUSES:
        raise BadRequest(f"status must be one of: {', '.join(ORDER_STATUSES)}")
    order = get_order(order_id)
    order.status = status
    db.session.commit()
    logger.info("Order %s status -> %s", order_id, status)
    return order


def update_order(order_id, data):
    order = get_order(order_id)
    if "contactInfo" in data:
        order.contact_info = validate_contact_info(data["contactInfo"])
    if "businessInfo" in data:
        order.business_info = validate_business_info(data["businessInfo"], order.customer_type)
    if "items" in data:
        order.items = validate_items(data["items"])
        order.total_amount = compute_total(order.items)
    if "notes" in data:
        order.notes = data["notes"]
    db.session.commit()
    return order


def delete_order(order_id):
    order = get_order(order_id)
    db.session.delete(order)
    db.session.commit()
    logger.info("Deleted order %s", order_id)


def presupuesto_number(order_id, year=None):
    year = year or now().year
    short_id = (order_id.split("-")[-1][:3] or "001").upper()
    return f"{year}-{short_id}"


def order_payload(order):
    """Order data in the shape the PDF and email renderers expect."""
    return {
        "customerType": order.customer_type,
        "contactInfo": order.contact_info,
        "businessInfo": order.business_info,
        "items": order.items,
        "notes": order.notes,
        "createdAt": order.created_at,
    }
