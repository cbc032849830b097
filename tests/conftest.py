import itertools
import sys
from pathlib import Path

import pytest

# Make the project root importable when running from the tests folder.
ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

from flask_jwt_extended import create_access_token  # noqa: E402

from core.auth import ADMIN, ASISTENTE, CLIENTE_MINORISTA  # noqa: E402
from core.config import Config  # noqa: E402
from core.extensions import db  # noqa: E402
from main import create_app  # noqa: E402
from services import productService, userService  # noqa: E402


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
    BCRYPT_LOG_ROUNDS = 4
    LOG_LEVEL = "WARNING"
    RABBITMQ_URL = None
    MAIL_USERNAME = None
    MAIL_PASSWORD = None
    EMAIL_TO = "ventas@kansaco.com"
    DO_BASE_URL = None
    DO_CDN_URL = None
    DO_BUCKET = "kansaco-images"
    DO_REGION = "nyc3"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make(rol=CLIENTE_MINORISTA, **overrides):
        n = next(counter)
        data = {
            "email": f"user{n}@kansaco.com",
            "password": "password123",
            "nombre": "Juan",
            "apellido": "Perez",
            "rol": rol,
        }
        data.update(overrides)
        return userService.create_user(data)

    return _make


@pytest.fixture
def headers_for(app):
    def _headers(user):
        token = create_access_token(
            identity=str(user.id),
            additional_claims={"email": user.email, "rol": user.rol},
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(make_user, headers_for):
    return headers_for(make_user(ADMIN))


@pytest.fixture
def asistente_headers(make_user, headers_for):
    return headers_for(make_user(ASISTENTE))


@pytest.fixture
def client_user(make_user):
    return make_user(CLIENTE_MINORISTA)


@pytest.fixture
def client_headers(client_user, headers_for):
    return headers_for(client_user)


@pytest.fixture
def make_product(app):
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        data = {
            "name": f"Aceite Hidráulico {n}",
            "category": ["Lubricantes"],
            "stock": 10,
            "isVisible": True,
            "isFeatured": False,
            "description": "Aceite para sistemas hidráulicos",
            "presentation": "Balde 20 Litros, Tambor 200 Litros",
            "aplication": "Industrial",
            "price": 1000.0,
        }
        data.update(overrides)
        return productService.create_product(data)

    return _make
