from core.imports import Blueprint, request, jsonify, jwt_required, current_app, send_file, BytesIO
from core.auth import roles_required, ADMIN, STAFF
from core.errors import BadRequest
from core import storage
from services import productService, imageService
from services.productService import parse_bool, parse_int

products_bp = Blueprint("products", __name__)

MAX_PRICE_FILE = 6 * 1024 * 1024


def _is_primary_arg():
    return request.args.get("isPrimary", "").lower() in ("true", "1")


@products_bp.route("/api/product", methods=["GET"])
def list_products():
    """
    Paginated product listing
    ---
    tags:
      - Product
    parameters:
      - { name: page, in: query, type: integer, default: 1, description: "Page number (starts at 1)" }
      - { name: limit, in: query, type: integer, default: 20, description: "Products per page (max 100)" }
      - { name: name, in: query, type: string }
      - { name: slug, in: query, type: string }
      - name: category
        in: query
        type: array
        items: { type: string }
        collectionFormat: multi
        description: "Repeatable: ?category=a&category=b"
      - { name: sku, in: query, type: string }
      - { name: stock, in: query, type: integer }
      - { name: wholeSaler, in: query, type: string }
      - { name: isVisible, in: query, type: boolean }
      - { name: isFeatured, in: query, type: boolean }
    responses:
      200:
        description: Page of products
        schema:
          type: object
          properties:
            data: { type: array, items: { type: object } }
            total: { type: integer, example: 57 }
            page: { type: integer, example: 1 }
            limit: { type: integer, example: 20 }
            totalPages: { type: integer, example: 3 }
            hasNext: { type: boolean, example: true }
            hasPrev: { type: boolean, example: false }
      400:
        description: Invalid pagination or filter value
    """
    args = request.args
    page = parse_int(args.get("page", 1), "page", minimum=1)
    limit = parse_int(args.get("limit", productService.DEFAULT_LIMIT), "limit", minimum=1, maximum=productService.MAX_LIMIT)

    filters = {
        "name": args.get("name"),
        "slug": args.get("slug"),
        "sku": args.get("sku"),
        "wholeSaler": args.get("wholeSaler"),
        "category": [c for c in args.getlist("category") if c.strip()],
    }
    if args.get("stock", "") != "":
        filters["stock"] = parse_int(args["stock"], "stock")
    for field in ("isVisible", "isFeatured"):
        if args.get(field, "") != "":
            filters[field] = parse_bool(args[field], field)

    result = productService.list_products(page, limit, filters)
    result["data"] = [p.to_dict() for p in result["data"]]
    return jsonify(result), 200


@products_bp.route("/api/product/filter", methods=["GET"])
def filter_products():
    """
    Filter products by any column
    ---
    tags:
      - Product
    parameters:
      - { name: name, in: query, type: string }
      - name: category
        in: query
        type: array
        items: { type: string }
        collectionFormat: multi
      - { name: sku, in: query, type: string }
      - { name: stock, in: query, type: integer }
      - { name: wholeSaler, in: query, type: string }
      - { name: isVisible, in: query, type: boolean }
      - { name: slug, in: query, type: string }
    responses:
      200:
        description: Matching products
      400:
        description: Unknown column
    """
    filters = {key: request.args.get(key) for key in request.args if key != "category"}
    filters["category"] = request.args.getlist("category")
    products = productService.filter_products(filters)
    return jsonify([p.to_dict() for p in products]), 200


@products_bp.route("/api/product/<int:product_id>", methods=["GET"])
@jwt_required()
def get_product(product_id):
    """
    Get a product with its images
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
    responses:
      200:
        description: Product
      404:
        description: Product not found
    """
    product = productService.get_product(product_id)
    return jsonify(product.to_dict(with_images=True)), 200


@products_bp.route("/api/product/create", methods=["POST"])
@roles_required(*STAFF)
def create_product():
    """
    Create a product (ADMIN, ASISTENTE)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required: [name, category, stock, isVisible, isFeatured, description, presentation, aplication, price]
          properties:
            name: { type: string, example: "Aceite Hidráulico 68" }
            category: { type: array, items: { type: string }, example: ["Lubricantes"] }
            stock: { type: integer, example: 10 }
            isVisible: { type: boolean, example: true }
            isFeatured: { type: boolean, example: false }
            description: { type: string }
            presentation: { type: string, example: "Balde 20 Litros, Tambor 200 Litros" }
            aplication: { type: string, example: "Industrial" }
            price: { type: number, example: 15000.5 }
            sku: { type: string }
            wholeSaler: { type: string }
            imageUrl: { type: string }
    responses:
      201:
        description: Product created
      400:
        description: Missing or invalid fields
      403:
        description: Forbidden
    """
    data = request.get_json(silent=True) or {}
    product = productService.create_product(data)
    return jsonify(product.to_dict()), 201


@products_bp.route("/api/product/<int:product_id>/edit", methods=["PUT"])
@roles_required(*STAFF)
def edit_product(product_id):
    """
    Edit a product (ADMIN, ASISTENTE)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
      - name: body
        in: body
        required: true
        schema:
          type: object
          description: Any subset of the create fields; the slug follows the name.
    responses:
      200:
        description: Product updated
      400:
        description: Product not found or invalid data
    """
    data = request.get_json(silent=True) or {}
    product = productService.edit_product(product_id, data)
    return jsonify(product.to_dict()), 200


@products_bp.route("/api/product/<int:product_id>", methods=["DELETE"])
@roles_required(ADMIN)
def delete_product(product_id):
    """
    Delete a product (ADMIN)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
    responses:
      200:
        description: Deleted product
      400:
        description: Product not found
    """
    return jsonify(productService.delete_product(product_id)), 200


@products_bp.route("/api/product/file/listUpdatePrices", methods=["GET"])
@roles_required(ADMIN)
def list_update_prices():
    """
    Download the price list (ADMIN)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    produces:
      - text/csv
      - application/xml
      - application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
    parameters:
      - name: format
        in: query
        type: string
        enum: [csv, xml, xlsx]
        required: true
    responses:
      200:
        description: File with id, name and price columns
      400:
        description: Format Unnacepted
    """
    current_app.logger.debug("Started file generation")
    file = productService.export_prices(request.args.get("format", ""))
    return send_file(
        BytesIO(file["content"]),
        mimetype=file["contentType"],
        as_attachment=True,
        download_name=f"{file['fileName']}.{file['extension']}",
    )


@products_bp.route("/api/product/file/updatePrices", methods=["PATCH"])
@roles_required(ADMIN)
def update_prices():
    """
    Bulk update prices from a CSV, XML or XLSX file (ADMIN)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - name: file
        in: formData
        type: file
        required: true
        description: CSV, XML or XLSX with id and price columns
    responses:
      200:
        description: Updated products
      400:
        description: No file, unsupported format, no rows, no valid rows or no changes
    """
    file = request.files.get("file")
    if not file or not file.filename:
        raise BadRequest("No file uploaded")
    data = file.read()
    if len(data) > MAX_PRICE_FILE:
        raise BadRequest("File exceeds the 6MB limit")

    products = productService.update_prices(file.filename, data)
    return jsonify([p.to_dict(with_images=True) for p in products]), 200


@products_bp.route("/api/product/<int:product_id>/image", methods=["POST"])
@roles_required(*STAFF)
def upload_product_image(product_id):
    """
    Upload an image and attach it to a product (ADMIN, ASISTENTE)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
      - { name: image, in: formData, type: file, required: true }
      - { name: isPrimary, in: query, type: boolean, required: false }
    responses:
      201:
        description: Product image
      400:
        description: Missing or invalid image
      404:
        description: Product not found
    """
    productService.get_product(product_id)
    uploaded = imageService.upload_image(request.files.get("image"), "products")
    image = productService.add_image_to_product(product_id, uploaded["url"], uploaded["key"], _is_primary_arg())
    return jsonify(image.to_dict()), 201


@products_bp.route("/api/product/<int:product_id>/images", methods=["GET"])
def get_product_images(product_id):
    """
    List a product's images, primary first
    ---
    tags:
      - Product
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
    responses:
      200:
        description: Product images
      404:
        description: Product not found
    """
    images = productService.get_product_images(product_id)
    return jsonify([img.to_dict() for img in images]), 200


@products_bp.route("/api/product/<int:product_id>/image/associate", methods=["POST"])
@roles_required(*STAFF)
def associate_image(product_id):
    """
    Attach an image that already exists in the bucket (ADMIN, ASISTENTE)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
      - { name: isPrimary, in: query, type: boolean, required: false }
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            imageKey: { type: string, example: "products/aceite-68.webp" }
    responses:
      201:
        description: Product image
      400:
        description: Image not found in the bucket
    """
    productService.get_product(product_id)
    data = request.get_json(silent=True) or {}
    key = imageService.resolve_existing_key(data.get("imageKey"))
    image = productService.add_image_to_product(product_id, imageService.image_url(key), key, _is_primary_arg())
    current_app.logger.debug("Associated image %s to product %s", key, product_id)
    return jsonify(image.to_dict()), 201


@products_bp.route("/api/product/<int:product_id>/image/<int:image_id>", methods=["DELETE"])
@roles_required(*STAFF)
def delete_product_image(product_id, image_id):
    """
    Remove an image from a product (ADMIN, ASISTENTE)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
      - { name: image_id, in: path, type: integer, required: true }
    responses:
      200:
        description: Image deleted successfully
      404:
        description: Product or image not found
    """
    productService.delete_product_image(product_id, image_id, delete_from_storage=storage.delete_file)
    return jsonify({"message": "Image deleted successfully"}), 200


@products_bp.route("/api/product/<int:product_id>/image/<int:image_id>/primary", methods=["PATCH"])
@roles_required(*STAFF)
def set_primary_image(product_id, image_id):
    """
    Mark an image as the product's primary image (ADMIN, ASISTENTE)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
      - { name: image_id, in: path, type: integer, required: true }
    responses:
      200:
        description: Updated image
      404:
        description: Product or image not found
    """
    image = productService.set_primary_image(product_id, image_id)
    return jsonify(image.to_dict()), 200


@products_bp.route("/api/product/<int:product_id>/images/reorder", methods=["PATCH"])
@roles_required(*STAFF)
def reorder_images(product_id):
    """
    Reorder a product's images (ADMIN, ASISTENTE)
    ---
    tags:
      - Product
    security:
      - Bearer: []
    parameters:
      - { name: product_id, in: path, type: integer, required: true }
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            imageIds: { type: array, items: { type: integer }, example: [3, 1, 2] }
    responses:
      200:
        description: Images reordered successfully
      400:
        description: imageIds missing, empty, non numeric or foreign
    """
    data = request.get_json(silent=True) or {}
    productService.reorder_images(product_id, data.get("imageIds"))
    return jsonify({"message": "Images reordered successfully"}), 200
