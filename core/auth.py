from functools import wraps

from core.errors import Forbidden
from core.imports import get_jwt, get_jwt_identity, jwt_required

ADMIN = "ADMIN"
ASISTENTE = "ASISTENTE"
CLIENTE_MINORISTA = "CLIENTE_MINORISTA"
CLIENTE_MAYORISTA = "CLIENTE_MAYORISTA"
ROLES = (ADMIN, ASISTENTE, CLIENTE_MINORISTA, CLIENTE_MAYORISTA)
STAFF = (ADMIN, ASISTENTE)


def current_role():
    return get_jwt().get("rol")


def current_user_id():
    return get_jwt_identity()


def roles_required(*roles):
    """Require a valid JWT whose ``rol`` claim is one of ``roles``."""
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if current_role() not in roles:
                raise Forbidden("Forbidden resource")
            return fn(*args, **kwargs)
        return wrapper
    return decorator
