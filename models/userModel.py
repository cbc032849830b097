from core.extensions import db
from core.imports import uuid
from core.dates import utcnow, format_iso


user_discount = db.Table(
    "user_discount",
    db.Column("user_id", db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    db.Column("discount_id", db.Integer, db.ForeignKey("discounts.id", ondelete="CASCADE"), primary_key=True),
)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    nombre = db.Column(db.String(120), nullable=False)
    apellido = db.Column(db.String(120), nullable=False)
    direccion = db.Column(db.String(255), nullable=True)
    telefono = db.Column(db.String(20), nullable=True)
    password = db.Column(db.String(200), nullable=False)
    rol = db.Column(db.String(50), nullable=False, default="CLIENTE_MINORISTA")

    discounts = db.relationship("Discount", secondary=user_discount, back_populates="clientes")
    cart = db.relationship("Cart", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "nombre": self.nombre,
            "apellido": self.apellido,
            "direccion": self.direccion,
            "telefono": self.telefono,
            "rol": self.rol,
            "cartId": self.cart.id if self.cart else None,
        }


class Discount(db.Model):
    __tablename__ = "discounts"

    id = db.Column(db.Integer, primary_key=True)
    porcentaje = db.Column(db.Numeric(5, 2, asdecimal=False), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    clientes = db.relationship("User", secondary=user_discount, back_populates="discounts")
    productos = db.relationship("Product", secondary="product_discount", back_populates="discounts")

    def to_dict(self):
        return {
            "id": self.id,
            "porcentaje": self.porcentaje,
            "createdAt": format_iso(self.created_at),
        }
