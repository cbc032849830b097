from core.imports import Blueprint, jsonify, jwt_required, request
from core.auth import roles_required, STAFF
from services import imageService
from services.productService import parse_int

images_bp = Blueprint("images", __name__)


@images_bp.route("/api/image/upload", methods=["POST"])
@roles_required(*STAFF)
def upload_image():
    """
    Upload one image to the bucket (ADMIN, ASISTENTE)
    ---
    tags:
      - Image
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { name: file, in: formData, type: file, required: true }
      - { name: folder, in: query, type: string, description: "Optional folder, e.g. products" }
    responses:
      201:
        description: Uploaded image
        schema:
          type: object
          properties:
            key: { type: string, example: "products/aceite-68.jpg" }
            url: { type: string }
            size: { type: integer }
            contentType: { type: string, example: "image/jpeg" }
      400:
        description: Missing file or invalid type
    """
    result = imageService.upload_image(request.files.get("file"), request.args.get("folder"))
    return jsonify(result), 201


@images_bp.route("/api/image/upload-multiple", methods=["POST"])
@roles_required(*STAFF)
def upload_images():
    """
    Upload up to 10 images (ADMIN, ASISTENTE)
    ---
    tags:
      - Image
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { name: files, in: formData, type: file, required: true }
      - { name: folder, in: query, type: string }
    responses:
      201:
        description: Uploaded images
      400:
        description: No files, too many files or invalid type
    """
    results = imageService.upload_images(request.files.getlist("files"), request.args.get("folder"))
    return jsonify(results), 201


@images_bp.route("/api/image/list", methods=["GET"])
@jwt_required()
def list_images():
    """
    List images in the bucket
    ---
    tags:
      - Image
    security:
      - Bearer: []
    parameters:
      - { name: page, in: query, type: integer, default: 1 }
      - { name: limit, in: query, type: integer, default: 20, description: "Max 1000" }
      - { name: prefix, in: query, type: string }
      - { name: continuationToken, in: query, type: string }
    responses:
      200:
        description: Page of images
        schema:
          type: object
          properties:
            images: { type: array, items: { type: object } }
            total: { type: integer }
            page: { type: integer }
            limit: { type: integer }
            hasMore: { type: boolean }
            nextToken: { type: string }
    """
    page = parse_int(request.args.get("page", 1), "page")
    limit = parse_int(request.args.get("limit", 20), "limit")
    result = imageService.list_images(
        page=page,
        limit=limit,
        prefix=request.args.get("prefix") or None,
        continuation_token=request.args.get("continuationToken") or None,
    )
    return jsonify(result), 200


@images_bp.route("/api/image/<path:key>", methods=["GET"])
@jwt_required()
def get_image_url(key):
    """
    Public URL of an image
    ---
    tags:
      - Image
    security:
      - Bearer: []
    parameters:
      - { name: key, in: path, type: string, required: true }
    responses:
      200:
        description: URL
        schema:
          type: object
          properties:
            url: { type: string }
    """
    return jsonify({"url": imageService.image_url(key)}), 200


@images_bp.route("/api/image/<path:key>", methods=["DELETE"])
@roles_required(*STAFF)
def delete_image(key):
    """
    Delete an image from the bucket (ADMIN, ASISTENTE)
    ---
    tags:
      - Image
    security:
      - Bearer: []
    parameters:
      - { name: key, in: path, type: string, required: true }
    responses:
      200:
        description: Image deleted
      404:
        description: Image not found
    """
    imageService.delete_image(key)
    return jsonify({"message": "Image deleted successfully"}), 200
