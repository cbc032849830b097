from core.imports import Blueprint, request, jsonify
from core.auth import roles_required, STAFF
from services import categoryService

categories_bp = Blueprint("categories", __name__)


@categories_bp.route("/api/category", methods=["GET"])
def list_categories():
    """
    List categories ordered by name
    ---
    tags:
      - Category
    responses:
      200:
        description: Categories
        schema:
          type: array
          items:
            type: object
            properties:
              id: { type: integer, example: 1 }
              name: { type: string, example: "Lubricantes" }
              createdAt: { type: string }
              updatedAt: { type: string }
    """
    return jsonify([c.to_dict() for c in categoryService.list_categories()]), 200


@categories_bp.route("/api/category/<int:category_id>", methods=["GET"])
def get_category(category_id):
    """
    Get a category
    ---
    tags:
      - Category
    parameters:
      - name: category_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Category
      404:
        description: Category not found
    """
    return jsonify(categoryService.get_category(category_id).to_dict()), 200


@categories_bp.route("/api/category", methods=["POST"])
@roles_required(*STAFF)
def create_category():
    """
    Create a category (ADMIN, ASISTENTE)
    ---
    tags:
      - Category
    security:
      - Bearer: []
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required: [name]
          properties:
            name: { type: string, example: "Lubricantes" }
    responses:
      201:
        description: Category created
      400:
        description: Empty or duplicated name
      403:
        description: Forbidden
    """
    data = request.get_json(silent=True) or {}
    category = categoryService.create_category(data.get("name"))
    return jsonify(category.to_dict()), 201


@categories_bp.route("/api/category/<int:category_id>", methods=["PUT"])
@roles_required(*STAFF)
def update_category(category_id):
    """
    Rename a category (ADMIN, ASISTENTE)
    ---
    tags:
      - Category
    security:
      - Bearer: []
    parameters:
      - name: category_id
        in: path
        type: integer
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string }
    responses:
      200:
        description: Category updated
      400:
        description: Empty or duplicated name
      404:
        description: Category not found
    """
    data = request.get_json(silent=True) or {}
    category = categoryService.update_category(category_id, data.get("name"))
    return jsonify(category.to_dict()), 200


@categories_bp.route("/api/category/<int:category_id>", methods=["DELETE"])
@roles_required(*STAFF)
def delete_category(category_id):
    """
    Delete a category that no product uses (ADMIN, ASISTENTE)
    ---
    tags:
      - Category
    security:
      - Bearer: []
    parameters:
      - name: category_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Category deleted
      400:
        description: Category still has products
      404:
        description: Category not found
    """
    categoryService.delete_category(category_id)
    return jsonify({"message": "Category deleted successfully"}), 200
