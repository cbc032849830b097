from core.extensions import db
from core.imports import uuid
from core.dates import utcnow, format_iso

ORDER_STATUSES = ("PENDIENTE", "PROCESANDO", "ENVIADO", "COMPLETADO", "CANCELADO")
CUSTOMER_TYPES = ("CLIENTE_MINORISTA", "CLIENTE_MAYORISTA")


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_type = db.Column(db.String(30), nullable=False)
    status = db.Column(db.String(30), nullable=False, default="PENDIENTE")
    contact_info = db.Column(db.JSON, nullable=False)   # {fullName, email, phone, address}
    business_info = db.Column(db.JSON, nullable=True)   # {cuit, razonSocial, situacionAfip, codigoPostal}
    items = db.Column(db.JSON, nullable=False)          # [{productId, productName, quantity, unitPrice, presentation}]
    total_amount = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref="orders")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "customerType": self.customer_type,
            "status": self.status,
            "contactInfo": self.contact_info,
            "businessInfo": self.business_info,
            "items": self.items,
            "totalAmount": self.total_amount,
            "notes": self.notes,
            "createdAt": format_iso(self.created_at),
            "updatedAt": format_iso(self.updated_at),
        }
