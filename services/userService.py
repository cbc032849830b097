import logging
import re

from core.auth import ROLES, CLIENTE_MINORISTA
from core.errors import BadRequest, Conflict, Forbidden, NotFound
from core.extensions import db, bcrypt
from core.imports import func
from models.userModel import User
from models.cartModels import Cart

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_user(email, password, nombre, apellido):
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise BadRequest("Email is not valid")
    if not isinstance(password, str) or len(password) < 8:
        raise BadRequest("Password is too short")
    if not isinstance(nombre, str) or len(nombre.strip()) < 2:
        raise BadRequest("Nombre is too short")
    if not isinstance(apellido, str) or len(apellido.strip()) < 2:
        raise BadRequest("Apellido is too short")


def hash_password(password):
    return bcrypt.generate_password_hash(password).decode("utf-8")


def find_by_email(email):
    return User.query.filter(func.lower(User.email) == email.strip().lower()).first()


def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound(f"User {user_id} not found")
    return user


def list_users():
    return User.query.order_by(User.apellido, User.nombre).all()


def create_user(data):
    email = data.get("email")
    password = data.get("password")
    validate_user(email, password, data.get("nombre"), data.get("apellido"))

    if find_by_email(email):
        raise Conflict("Email already registered")

    rol = data.get("rol") or CLIENTE_MINORISTA
    if rol not in ROLES:
        raise BadRequest(f"Invalid rol: {rol}")

    user = User(
        email=email.strip().lower(),
        nombre=data["nombre"].strip(),
        apellido=data["apellido"].strip(),
        direccion=data.get("direccion"),
        telefono=data.get("telefono"),
        password=hash_password(password),
        rol=rol,
    )
    user.cart = Cart()
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s", user.id)
    return user


def authenticate(email, password):
    if not email or not password:
        return None
    user = find_by_email(email)
    if not user or not bcrypt.check_password_hash(user.password, password):
        return None
    return user


def update_user(user_id, data, allow_role_change=False):
    user = get_user(user_id)

    if "email" in data and data["email"]:
        email = data["email"].strip().lower()
        if not EMAIL_RE.match(email):
            raise BadRequest("Email is not valid")
        existing = find_by_email(email)
        if existing and existing.id != user.id:
            raise Conflict("Email already in use")
        user.email = email

    for field in ("nombre", "apellido"):
        if field in data:
            value = (data[field] or "").strip()
            if len(value) < 2:
                raise BadRequest(f"{field.capitalize()} is too short")
            setattr(user, field, value)

    for field in ("direccion", "telefono"):
        if field in data:
            setattr(user, field, data[field])

    if data.get("password"):
        if len(data["password"]) < 8:
            raise BadRequest("Password should be at least 8 characters long")
        user.password = hash_password(data["password"])

    if "rol" in data and data["rol"] != user.rol:
        if not allow_role_change:
            raise Forbidden("Only an ADMIN can change roles")
        if data["rol"] not in ROLES:
            raise BadRequest(f"Invalid rol: {data['rol']}")
        user.rol = data["rol"]

    db.session.commit()
    return user


def delete_user(user_id):
    user = get_user(user_id)
    snapshot = user.to_dict()
    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user %s", user_id)
    return snapshot
