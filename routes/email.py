from core.imports import Blueprint, jsonify, jwt_required, request, get_jwt, current_app, base64
from core.auth import current_user_id
from core.rabbitmq import publish
from services import cartService, emailService, orderService, pdfService

email_bp = Blueprint("email", __name__)


def merge_cart_items(cart, frontend_items):
    """Cart items win for presentation; the frontend may override name, quantity and price."""
    by_product = {}
    for item in frontend_items or []:
        if isinstance(item, dict) and item.get("productId") is not None:
            by_product.setdefault(item["productId"], item)

    items = []
    for cart_item in cart.cart_items:
        sent = by_product.get(cart_item.product_id, {})
        product = cart_item.product
        items.append({
            "productId": cart_item.product_id,
            "productName": sent.get("productName") or (product.name if product else None) or "Producto sin nombre",
            "quantity": sent.get("quantity") or cart_item.quantity,
            "unitPrice": sent.get("unitPrice") or (product.price if product else None),
            "presentation": cart_item.presentation,
        })
    return items


@email_bp.route("/api/email/send-order", methods=["POST"])
@jwt_required()
def send_order():
    """
    Place an order from the cart and notify sales
    ---
    tags:
      - Email
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required: [customerType, contactInfo]
          properties:
            customerType:
              type: string
              enum: [CLIENTE_MINORISTA, CLIENTE_MAYORISTA]
            contactInfo:
              type: object
              properties:
                fullName: { type: string, example: "Juan Perez" }
                email: { type: string, example: "juan@example.com" }
                phone: { type: string, example: "1145678900" }
                address: { type: string, example: "Calle 123" }
            businessInfo:
              type: object
              properties:
                cuit: { type: string, example: "20-12345678-9" }
                razonSocial: { type: string }
                situacionAfip: { type: string, example: "Responsable Inscripto" }
                codigoPostal: { type: string }
            items:
              type: array
              items:
                type: object
                properties:
                  productId: { type: integer }
                  productName: { type: string }
                  quantity: { type: integer }
                  unitPrice: { type: number }
            notes: { type: string }
    responses:
      200:
        description: Order stored and notification queued
        schema:
          type: object
          properties:
            message: { type: string, example: "Pedido enviado correctamente" }
            orderId: { type: string }
            presupuestoNumber: { type: string, example: "2026-A1B" }
            pdfBase64: { type: string }
      400:
        description: Invalid data or empty cart
      404:
        description: Cart not found
    """
    data = request.get_json(silent=True) or {}
    user_id = current_user_id()
    full_name = (data.get("contactInfo") or {}).get("fullName")
    current_app.logger.info("Recibido pedido de %s", full_name)

    cart = cartService.get_cart_by_user(user_id)
    order_data = dict(data, items=merge_cart_items(cart, data.get("items")))
    order = orderService.create_order(user_id, order_data)
    order_data = orderService.order_payload(order)

    number = orderService.presupuesto_number(order.id)
    pdf = pdfService.generate_presupuesto_pdf(order_data, number)
    pdf_base64 = base64.b64encode(pdf).decode("ascii")

    try:
        contact = order_data["contactInfo"]
        message = {
            "to": [
                {"email": current_app.config["EMAIL_TO"], "name": "Asistente de Ventas Kansaco"},
                {"email": get_jwt().get("email") or contact["email"], "name": contact["fullName"]},
            ],
            "subject": emailService.order_subject(order_data),
            "htmlContent": emailService.build_order_email_html(order_data),
            "textContent": emailService.build_order_email_text(order_data),
            "attachments": [{
                "name": f"Presupuesto_{number}_{contact['fullName'].replace(' ', '_')}.pdf",
                "content": pdf_base64,
                "contentType": "application/pdf",
            }],
        }
        if publish("send-email", message):
            current_app.logger.info("Mensaje send-email publicado para orden %s", order.id)
        else:
            current_app.logger.warning("No se pudo publicar send-email para orden %s", order.id)
    except Exception as e:
        current_app.logger.error("Error al enviar mensaje a RabbitMQ: %s", e)

    return jsonify({
        "message": "Pedido enviado correctamente",
        "orderId": order.id,
        "presupuestoNumber": number,
        "pdfBase64": pdf_base64,
    }), 200
