from core.imports import Blueprint, jsonify, jwt_required, request
from services import cartService
from services.productService import parse_int

cart_bp = Blueprint("cart", __name__)


def _quantity_arg():
    return parse_int(request.args.get("quantity", 1), "quantity", minimum=1)


@cart_bp.route("/api/cart/user/<string:user_id>", methods=["GET"])
@jwt_required()
def get_cart_by_user(user_id):
    """
    Get a user's cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - { name: user_id, in: path, type: string, required: true }
    responses:
      200:
        description: Cart with items and products
        schema:
          type: object
          properties:
            id: { type: integer, example: 1 }
            userId: { type: string }
            createdAt: { type: string }
            updatedAt: { type: string }
            items:
              type: array
              items:
                type: object
                properties:
                  id: { type: integer }
                  cartId: { type: integer }
                  productId: { type: integer }
                  quantity: { type: integer, example: 2 }
                  presentation: { type: string, example: "Balde 20 Litros" }
                  product: { type: object }
      404:
        description: Cart not found
    """
    return jsonify(cartService.get_cart_by_user(user_id).to_dict()), 200


@cart_bp.route("/api/cart/<int:cart_id>", methods=["GET"])
@jwt_required()
def get_cart(cart_id):
    """
    Get a cart by id
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - { name: cart_id, in: path, type: integer, required: true }
    responses:
      200:
        description: Cart with items and products
      404:
        description: Cart not found
    """
    return jsonify(cartService.get_cart(cart_id).to_dict()), 200


@cart_bp.route("/api/cart/create", methods=["POST"])
@jwt_required()
def create_cart():
    """
    Create a cart for a user; returns the existing one when the user already has it
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required: [userId]
          properties:
            userId: { type: string }
    responses:
      201:
        description: Cart created
      200:
        description: User already had a cart, returned unchanged
      400:
        description: userId missing
      404:
        description: User not found
    """
    data = request.get_json(silent=True) or {}
    user_id = data.get("userId")
    if not user_id:
        return jsonify({"error": "userId is required", "statusCode": 400}), 400

    cart, created = cartService.create_cart(str(user_id))
    return jsonify(cart.to_dict()), 201 if created else 200


@cart_bp.route("/api/cart/<int:cart_id>/add/product/<int:product_id>", methods=["PUT"])
@jwt_required()
def add_item(cart_id, product_id):
    """
    Add a product to the cart, merging with the same presentation
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - { name: cart_id, in: path, type: integer, required: true }
      - { name: product_id, in: path, type: integer, required: true }
      - { name: quantity, in: query, type: integer, default: 1 }
      - { name: presentation, in: query, type: string, description: "One of the product's presentations" }
    responses:
      200:
        description: Updated cart
      400:
        description: Invalid quantity or presentation
      404:
        description: Cart or product not found
    """
    cart = cartService.add_item(cart_id, product_id, _quantity_arg(), request.args.get("presentation"))
    return jsonify(cart.to_dict()), 200


@cart_bp.route("/api/cart/<int:cart_id>/delete/product/<int:product_id>", methods=["PATCH"])
@jwt_required()
def remove_item(cart_id, product_id):
    """
    Decrease the quantity of a product in the cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - { name: cart_id, in: path, type: integer, required: true }
      - { name: product_id, in: path, type: integer, required: true }
      - { name: quantity, in: query, type: integer, default: 1 }
      - { name: presentation, in: query, type: string }
    responses:
      200:
        description: Updated cart; items that reach zero are removed
      400:
        description: Cart does not contain the product
      404:
        description: Cart not found
    """
    cart = cartService.remove_item(cart_id, product_id, _quantity_arg(), request.args.get("presentation"))
    return jsonify(cart.to_dict()), 200


@cart_bp.route("/api/cart/<int:cart_id>/empty", methods=["PATCH"])
@jwt_required()
def empty_cart(cart_id):
    """
    Remove every item from the cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - { name: cart_id, in: path, type: integer, required: true }
    responses:
      200:
        description: Empty cart
      404:
        description: Cart not found
    """
    return jsonify(cartService.empty_cart(cart_id).to_dict()), 200
