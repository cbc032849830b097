import csv
import io
import logging
import math
import re
import unicodedata
import xml.etree.ElementTree as ET
import zipfile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils.exceptions import InvalidFileException

from core.dates import now, format_spanish
from core.errors import BadRequest, NotFound
from core.extensions import db
from core.imports import func, String, cast
from models.cartModels import CartItem
from models.productModels import Category, Product, ProductImage
from services import categoryService

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

# public field name -> model column
COLUMNS = {
    "id": Product.id,
    "name": Product.name,
    "slug": Product.slug,
    "sku": Product.sku,
    "description": Product.description,
    "presentation": Product.presentation,
    "aplication": Product.aplication,
    "imageUrl": Product.image_url,
    "wholeSaler": Product.whole_saler,
    "stock": Product.stock,
    "isVisible": Product.is_visible,
    "isFeatured": Product.is_featured,
    "price": Product.price,
}
BOOLEAN_FIELDS = {"isVisible": "is_visible", "isFeatured": "is_featured"}
TEXT_FIELDS = {
    "name": "name",
    "description": "description",
    "presentation": "presentation",
    "aplication": "aplication",
    "sku": "sku",
    "wholeSaler": "whole_saler",
    "imageUrl": "image_url",
}
REQUIRED_TEXT_FIELDS = ("name", "description", "presentation", "aplication")
MAX_LENGTHS = {"name": 120, "sku": 120, "aplication": 90, "imageUrl": 500}
REQUIRED_FIELDS = (
    "name", "category", "stock", "isVisible", "isFeatured",
    "description", "presentation", "aplication", "price",
)

EXPORT_FORMATS = {
    "csv": "text/csv",
    "xml": "application/xml",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
PRICE_FONT = Font(color="FFFF0000")


def slugify(name):
    slug = unicodedata.normalize("NFD", name)
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = re.sub(r"[\s/•',]", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.lower().strip("-")


def parse_bool(value, field):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise BadRequest(f"{field} must be a boolean")


def parse_int(value, field, minimum=None, maximum=None):
    if isinstance(value, bool):
        raise BadRequest(f"{field} must be an integer")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise BadRequest(f"{field} must be an integer")
    if minimum is not None and number < minimum:
        raise BadRequest(f"{field} must not be less than {minimum}")
    if maximum is not None and number > maximum:
        raise BadRequest(f"{field} must not be greater than {maximum}")
    return number


def parse_price(value):
    if isinstance(value, bool):
        raise BadRequest("price must be a number")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise BadRequest("price must be a number")
    if math.isnan(price) or price < 0:
        raise BadRequest("price must be a positive number")
    return round(price, 2)


def _category_names(value):
    if value is None:
        return []
    names = value if isinstance(value, list) else [value]
    return [n.strip() for n in names if isinstance(n, str) and n.strip()]


def list_products(page=1, limit=DEFAULT_LIMIT, filters=None):
    query = Product.query
    filters = filters or {}

    for field in ("name", "slug", "sku", "wholeSaler"):
        value = filters.get(field)
        if value:
            query = query.filter(COLUMNS[field].ilike(f"%{value}%"))

    categories = filters.get("category")
    if categories:
        query = query.filter(Product.categories.any(Category.name.in_(categories)))

    if filters.get("stock") is not None:
        query = query.filter(Product.stock == filters["stock"])
    for field, attr in BOOLEAN_FIELDS.items():
        if filters.get(field) is not None:
            query = query.filter(getattr(Product, attr) == filters[field])

    total = query.order_by(None).count()
    products = query.order_by(Product.id.asc()).offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if total else 0

    return {
        "data": products,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def filter_products(filters):
    """Substring match on any product column; ``category`` matches any of the given names."""
    query = Product.query
    for key, value in filters.items():
        if value in (None, "", []):
            continue
        if key == "category":
            names = _category_names(value)
            if names:
                query = query.filter(Product.categories.any(Category.name.in_(names)))
            continue
        if key not in COLUMNS:
            raise BadRequest(f"El nombre de la columna no existe: {key}")
        if key in BOOLEAN_FIELDS:
            query = query.filter(COLUMNS[key] == parse_bool(value, key))
        else:
            query = query.filter(cast(COLUMNS[key], String).ilike(f"%{value}%"))
    return query.order_by(Product.id.asc()).all()


def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFound(f"Product with id: {product_id} not found")
    return product


def _apply_fields(product, data):
    for field, attr in TEXT_FIELDS.items():
        if field in data:
            value = data[field]
            if value is not None and not isinstance(value, str):
                raise BadRequest(f"{field} must be a string")
            if field in REQUIRED_TEXT_FIELDS:
                if value is None or not value.strip():
                    raise BadRequest(f"{field} should not be empty")
                value = value.strip()
            if value is not None and len(value) > MAX_LENGTHS.get(field, len(value)):
                raise BadRequest(f"{field} must be shorter than or equal to {MAX_LENGTHS[field]} characters")
            setattr(product, attr, value)
    if "name" in data:
        product.slug = slugify(product.name)
    if "stock" in data:
        product.stock = parse_int(data["stock"], "stock", minimum=0)
    for field, attr in BOOLEAN_FIELDS.items():
        if field in data:
            setattr(product, attr, parse_bool(data[field], field))
    if "price" in data:
        product.price = parse_price(data["price"])
    if "category" in data:
        names = _category_names(data["category"])
        if not names:
            raise BadRequest("category must contain at least one category name")
        product.categories = categoryService.find_or_create_by_names(names)


def create_product(data):
    missing = [f for f in REQUIRED_FIELDS if data.get(f) is None or data.get(f) == ""]
    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")

    product = Product()
    _apply_fields(product, data)
    db.session.add(product)
    db.session.commit()
    logger.info("Created product %s (%s)", product.id, product.slug)
    return product


def edit_product(product_id, data):
    product = db.session.get(Product, product_id)
    if not product:
        raise BadRequest(f"Product with id: {product_id} not found")
    _apply_fields(product, data)
    db.session.commit()
    return product


def delete_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise BadRequest(f"Product with id: {product_id} not found")
    snapshot = product.to_dict()
    CartItem.query.filter_by(product_id=product.id).delete(synchronize_session=False)
    db.session.delete(product)
    db.session.commit()
    logger.info("Deleted product %s", product_id)
    return snapshot


# --- price lists ---

def export_prices(fmt):
    if fmt not in EXPORT_FORMATS:
        raise BadRequest("Format Unnacepted")

    rows = db.session.query(Product.id, Product.name, Product.price).order_by(Product.id).all()
    logger.info("Cantidad de productos: %d", len(rows))

    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["id", "name", "price"])
        for row in rows:
            writer.writerow([row.id, row.name, row.price])
        content = buffer.getvalue().encode("utf-8")
    elif fmt == "xlsx":
        content = _prices_xlsx(rows)
    else:
        root = ET.Element("products")
        for row in rows:
            node = ET.SubElement(root, "product")
            ET.SubElement(node, "id").text = str(row.id)
            ET.SubElement(node, "name").text = row.name
            ET.SubElement(node, "price").text = str(row.price)
        content = ET.tostring(root, encoding="utf-8", xml_declaration=True)

    return {
        "content": content,
        "contentType": EXPORT_FORMATS[fmt],
        "extension": fmt,
        "fileName": f"productos-al-{format_spanish(now())}",
    }


def _prices_xlsx(rows):
    wb = Workbook()
    ws = wb.active
    ws.title = f"Productos al {format_spanish(now())}"[:31]
    ws.append(["Id", "Name", "Price"])
    for row in rows:
        ws.append([row.id, row.name, row.price])
        ws.cell(row=ws.max_row, column=3).font = PRICE_FONT
    ws.cell(row=1, column=3).font = PRICE_FONT
    for column in ("A", "B", "C"):
        ws.column_dimensions[column].width = 20

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _to_number(value, kind):
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return kind(value)
        return kind(str(value).strip())
    except (TypeError, ValueError, OverflowError):
        return None


def parse_price_csv(text):
    reader = csv.DictReader(io.StringIO(text))
    rows = []
    for record in reader:
        normalized = {(k or "").strip().lower(): v for k, v in record.items()}
        rows.append({
            "id": _to_number(normalized.get("id"), int),
            "price": _to_number(normalized.get("price"), float),
        })
    return rows


def parse_price_xml(data):
    try:
        root = ET.fromstring(data)
    except ET.ParseError:
        raise BadRequest("Invalid XML file")
    return [
        {"id": _to_number(node.findtext("id"), int), "price": _to_number(node.findtext("price"), float)}
        for node in root.iter("product")
    ]


def parse_price_xlsx(data):
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError):
        raise BadRequest("Invalid XLSX file")

    rows = wb.worksheets[0].iter_rows(values_only=True)
    headers = [str(h).strip().lower() if h is not None else "" for h in next(rows, ())]
    if "id" not in headers or "price" not in headers:
        raise BadRequest("Excel is missing id or price column")
    id_col, price_col = headers.index("id"), headers.index("price")

    updates = []
    for row in rows:
        if not row or all(cell is None for cell in row):
            continue
        cells = list(row) + [None] * (len(headers) - len(row))
        updates.append({
            "id": _to_number(cells[id_col], int),
            "price": _to_number(cells[price_col], float),
        })
    wb.close()
    return updates


def update_prices(filename, data):
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    logger.debug("Detected file extension: %s", ext)
    if ext == "csv":
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise BadRequest("Invalid CSV encoding")
        updates = parse_price_csv(text)
    elif ext == "xml":
        updates = parse_price_xml(data)
    elif ext == "xlsx":
        updates = parse_price_xlsx(data)
    else:
        raise BadRequest("Unsupported file format")

    if not updates:
        raise BadRequest("File contains no rows")

    valid = [u for u in updates if u["id"] is not None and u["price"] is not None and not math.isnan(u["price"])]
    if not valid:
        raise BadRequest("No valid id/price rows found")

    ids = [u["id"] for u in valid]
    current = dict(db.session.query(Product.id, Product.price).filter(Product.id.in_(ids)).all())
    changed = [
        u for u in valid
        if u["id"] in current and round(current[u["id"]] or 0, 2) != round(u["price"], 2)
    ]
    if not changed:
        raise BadRequest("No changes to apply")

    for u in changed:
        Product.query.filter_by(id=u["id"]).update({Product.price: round(u["price"], 2)})
    db.session.commit()
    logger.info("Updated prices for %d products", len(changed))

    return Product.query.filter(Product.id.in_([u["id"] for u in changed])).order_by(Product.id).all()


# --- product images ---

def get_product_images(product_id):
    get_product(product_id)
    return (
        ProductImage.query.filter_by(product_id=product_id)
        .order_by(ProductImage.is_primary.desc(), ProductImage.order.asc(), ProductImage.id.asc())
        .all()
    )


def _sync_primary_url(product):
    primary = next((img for img in product.images if img.is_primary), None)
    product.image_url = primary.image_url if primary else None


def add_image_to_product(product_id, image_url, image_key, is_primary=False):
    product = get_product(product_id)
    existing = ProductImage.query.filter_by(product_id=product.id).count()
    max_order = db.session.query(func.max(ProductImage.order)).filter_by(product_id=product.id).scalar()

    if is_primary or existing == 0:
        ProductImage.query.filter_by(product_id=product.id).update({ProductImage.is_primary: False})
        is_primary = True

    image = ProductImage(
        product_id=product.id,
        image_url=image_url,
        image_key=image_key,
        order=(max_order + 1) if max_order is not None else 0,
        is_primary=is_primary,
    )
    db.session.add(image)
    db.session.flush()
    db.session.expire(product, ["images"])
    _sync_primary_url(product)
    db.session.commit()
    return image


def _get_product_image(product_id, image_id):
    image = ProductImage.query.filter_by(id=image_id, product_id=product_id).first()
    if not image:
        raise NotFound(f"Image {image_id} not found for product {product_id}")
    return image


def delete_product_image(product_id, image_id, delete_from_storage=None):
    """Remove the image row; ``delete_from_storage(key)`` failures are only logged."""
    product = get_product(product_id)
    image = _get_product_image(product_id, image_id)
    key = image.image_key
    was_primary = image.is_primary

    db.session.delete(image)
    db.session.flush()
    db.session.expire(product, ["images"])
    if was_primary and product.images:
        product.images[0].is_primary = True
    _sync_primary_url(product)
    db.session.commit()

    if delete_from_storage and key:
        try:
            delete_from_storage(key)
        except Exception as e:
            logger.warning("Could not delete %s from storage: %s", key, e)


def set_primary_image(product_id, image_id):
    product = get_product(product_id)
    image = _get_product_image(product_id, image_id)
    ProductImage.query.filter_by(product_id=product.id).update({ProductImage.is_primary: False})
    image.is_primary = True
    db.session.flush()
    db.session.expire(product, ["images"])
    _sync_primary_url(product)
    db.session.commit()
    return image


def reorder_images(product_id, image_ids):
    get_product(product_id)
    if not isinstance(image_ids, list) or not image_ids:
        raise BadRequest("imageIds must be a non-empty array")
    if any(isinstance(i, bool) or not isinstance(i, int) for i in image_ids):
        raise BadRequest("imageIds must contain only numbers")

    images = {img.id: img for img in ProductImage.query.filter_by(product_id=product_id).all()}
    unknown = [i for i in image_ids if i not in images]
    if unknown:
        raise BadRequest(f"Images {unknown} do not belong to product {product_id}")

    for position, image_id in enumerate(image_ids):
        images[image_id].order = position
    db.session.commit()
