from core.extensions import db
from core.dates import utcnow, format_iso


product_category = db.Table(
    "product_category",
    db.Column("product_id", db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    db.Column("category_id", db.Integer, db.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

product_discount = db.Table(
    "product_discount",
    db.Column("product_id", db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    db.Column("discount_id", db.Integer, db.ForeignKey("discounts.id", ondelete="CASCADE"), primary_key=True),
)


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    products = db.relationship("Product", secondary=product_category, back_populates="categories")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": format_iso(self.created_at),
            "updatedAt": format_iso(self.updated_at),
        }


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(255), nullable=False, index=True)
    sku = db.Column(db.String(120), nullable=True)
    description = db.Column(db.Text, nullable=False)
    presentation = db.Column(db.Text, nullable=False)   # comma separated, e.g. "Balde 20 Litros, Tambor 200 Litros"
    aplication = db.Column(db.String(90), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    whole_saler = db.Column(db.Text, nullable=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    is_visible = db.Column(db.Boolean, nullable=False, default=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    price = db.Column(db.Numeric(15, 2, asdecimal=False), nullable=False)

    categories = db.relationship(
        "Category", secondary=product_category, back_populates="products", order_by="Category.name"
    )
    discounts = db.relationship("Discount", secondary=product_discount, back_populates="productos")
    images = db.relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by=lambda: [ProductImage.is_primary.desc(), ProductImage.order, ProductImage.id],
    )

    def presentations(self):
        return [p.strip() for p in (self.presentation or "").split(",") if p.strip()]

    def to_dict(self, with_images=False):
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "sku": self.sku,
            "category": [c.name for c in self.categories],
            "description": self.description,
            "presentation": self.presentation,
            "aplication": self.aplication,
            "imageUrl": self.image_url,
            "wholeSaler": self.whole_saler,
            "stock": self.stock,
            "isVisible": self.is_visible,
            "isFeatured": self.is_featured,
            "price": self.price,
        }
        if with_images:
            data["images"] = [img.to_dict() for img in self.images]
        return data


class ProductImage(db.Model):
    __tablename__ = "product_images"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    image_url = db.Column(db.String(500), nullable=False)
    image_key = db.Column(db.String(500), nullable=False)
    order = db.Column(db.Integer, nullable=False, default=0)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    product = db.relationship("Product", back_populates="images")

    def to_dict(self):
        return {
            "id": self.id,
            "productId": self.product_id,
            "imageUrl": self.image_url,
            "imageKey": self.image_key,
            "order": self.order,
            "isPrimary": self.is_primary,
            "createdAt": format_iso(self.created_at),
        }
