from core.imports import Blueprint, jsonify, jwt_required, request, send_file, BytesIO
from core.auth import roles_required, current_role, current_user_id, ADMIN, STAFF
from services import orderService, pdfService
from services.productService import parse_int

orders_bp = Blueprint("orders", __name__)


def _page_args(default_limit):
    page = parse_int(request.args.get("page", 1), "page")
    limit = parse_int(request.args.get("limit", default_limit), "limit")
    return page, limit


def _serialize_page(result):
    result["data"] = [o.to_dict() for o in result["data"]]
    return result


@orders_bp.route("/api/order", methods=["GET"])
@roles_required(*STAFF)
def list_orders():
    """
    List every order, newest first (ADMIN, ASISTENTE)
    ---
    tags:
      - Order
    security:
      - Bearer: []
    responses:
      200:
        description: Orders
        schema:
          type: object
          properties:
            status: { type: string, example: success }
            data: { type: array, items: { type: object } }
    """
    orders = orderService.list_orders()
    return jsonify({"status": "success", "data": [o.to_dict() for o in orders]}), 200


@orders_bp.route("/api/order/my-orders", methods=["GET"])
@jwt_required()
def my_orders():
    """
    Orders placed by the logged-in user
    ---
    tags:
      - Order
    security:
      - Bearer: []
    responses:
      200:
        description: Orders
    """
    orders = orderService.list_user_orders(current_user_id())
    return jsonify({"status": "success", "data": [o.to_dict() for o in orders]}), 200


@orders_bp.route("/api/order/my-orders/paginated", methods=["GET"])
@jwt_required()
def my_orders_paginated():
    """
    Paginated orders of the logged-in user
    ---
    tags:
      - Order
    security:
      - Bearer: []
    parameters:
      - { name: page, in: query, type: integer, default: 1 }
      - { name: limit, in: query, type: integer, default: 10, description: "Clamped to 1..100" }
    responses:
      200:
        description: Page of orders
    """
    page, limit = _page_args(10)
    result = orderService.paginate_user_orders(current_user_id(), page, limit)
    return jsonify(_serialize_page(result)), 200


@orders_bp.route("/api/order/all/paginated", methods=["GET"])
@roles_required(*STAFF)
def all_orders_paginated():
    """
    Paginated listing of every order (ADMIN, ASISTENTE)
    ---
    tags:
      - Order
    security:
      - Bearer: []
    parameters:
      - { name: page, in: query, type: integer, default: 1 }
      - { name: limit, in: query, type: integer, default: 20, description: "Clamped to 20..100" }
      - name: status
        in: query
        type: string
        enum: [PENDIENTE, PROCESANDO, ENVIADO, COMPLETADO, CANCELADO]
    responses:
      200:
        description: Page of orders
    """
    page, limit = _page_args(20)
    result = orderService.paginate_all_orders(page, limit, request.args.get("status") or None)
    return jsonify(_serialize_page(result)), 200


@orders_bp.route("/api/order/<string:order_id>/pdf", methods=["GET"])
@roles_required(*STAFF)
def order_pdf(order_id):
    """
    Download the presupuesto PDF of an order (ADMIN, ASISTENTE)
    ---
    tags:
      - Order
    security:
      - Bearer: []
    produces:
      - application/pdf
    parameters:
      - { name: order_id, in: path, type: string, required: true }
    responses:
      200:
        description: PDF attachment
      404:
        description: Order not found
    """
    order = orderService.get_order(order_id)
    number = orderService.presupuesto_number(order.id)
    pdf = pdfService.generate_presupuesto_pdf(orderService.order_payload(order), number, order.created_at)
    full_name = order.contact_info.get("fullName", "").replace(" ", "_")
    return send_file(
        BytesIO(pdf),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"Presupuesto_{number}_{full_name}.pdf",
    )


@orders_bp.route("/api/order/<string:order_id>", methods=["GET"])
@jwt_required()
def get_order(order_id):
    """
    Get an order (owner, ADMIN or ASISTENTE)
    ---
    tags:
      - Order
    security:
      - Bearer: []
    parameters:
      - { name: order_id, in: path, type: string, required: true }
    responses:
      200:
        description: Order
      403:
        description: Not the owner
      404:
        description: Order not found
    """
    order = orderService.get_order_for(order_id, current_user_id(), current_role() in STAFF)
    return jsonify(order.to_dict()), 200


@orders_bp.route("/api/order/<string:order_id>/status", methods=["PATCH"])
@roles_required(*STAFF)
def update_order_status(order_id):
    """
    Change an order's status (ADMIN, ASISTENTE)
    ---
    tags:
      - Order
    security:
      - Bearer: []
    parameters:
      - { name: order_id, in: path, type: string, required: true }
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            status:
              type: string
              enum: [PENDIENTE, PROCESANDO, ENVIADO, COMPLETADO, CANCELADO]
    responses:
      200:
        description: Updated order
      400:
        description: Invalid status
      404:
        description: Order not found
    """
    data = request.get_json(silent=True) or {}
    order = orderService.update_status(order_id, data.get("status"))
    return jsonify(order.to_dict()), 200


@orders_bp.route("/api/order/<string:order_id>", methods=["PUT"])
@roles_required(*STAFF)
def update_order(order_id):
    """
    Edit an order's contact, business info, items or notes (ADMIN, ASISTENTE)
    ---
    tags:
      - Order
    security:
      - Bearer: []
    parameters:
      - { name: order_id, in: path, type: string, required: true }
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            contactInfo: { type: object }
            businessInfo: { type: object }
            items: { type: array, items: { type: object } }
            notes: { type: string }
    responses:
      200:
        description: Updated order
      400:
        description: Invalid data
      404:
        description: Order not found
    """
    data = request.get_json(silent=True) or {}
    order = orderService.update_order(order_id, data)
    return jsonify(order.to_dict()), 200


@orders_bp.route("/api/order/<string:order_id>", methods=["DELETE"])
@roles_required(ADMIN)
def delete_order(order_id):
    """
    Delete an order (ADMIN)
    ---
    tags:
      - Order
    security:
      - Bearer: []
    parameters:
      - { name: order_id, in: path, type: string, required: true }
    responses:
      200:
        description: Order deleted successfully
      404:
        description: Order not found
    """
    orderService.delete_order(order_id)
    return jsonify({"message": "Order deleted successfully"}), 200
