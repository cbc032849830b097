from core.extensions import db
from core.dates import utcnow, format_iso

class Cart(db.Model):
    __tablename__ = "carts"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="cart")
    cart_items = db.relationship(
        "CartItem", backref="cart", cascade="all, delete-orphan", order_by="CartItem.id"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "createdAt": format_iso(self.created_at),
            "updatedAt": format_iso(self.updated_at),
            "items": [item.to_dict() for item in self.cart_items],
        }


class CartItem(db.Model):
    __tablename__ = "cart_items"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    product = db.relationship("Product", lazy="joined")

    quantity = db.Column(db.Integer, default=1, nullable=False)
    presentation = db.Column(db.String(255), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "cartId": self.cart_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "presentation": self.presentation,
            "product": self.product.to_dict() if self.product else None,
        }
