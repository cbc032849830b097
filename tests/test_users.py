from core.auth import ADMIN
from models.cartModels import Cart
from models.userModel import User


def register(client, **overrides):
    payload = {
        "email": "nuevo@kansaco.com",
        "password": "password123",
        "nombre": "Ana",
        "apellido": "Gomez",
    }
    payload.update(overrides)
    return client.post("/api/user/register", json=payload)


def test_register_creates_user_with_cart(client):
    res = register(client)
    assert res.status_code == 201
    body = res.get_json()
    assert body["email"] == "nuevo@kansaco.com"
    assert body["rol"] == "CLIENTE_MINORISTA"
    assert "password" not in body
    assert body["cartId"] is not None
    assert Cart.query.filter_by(user_id=body["id"]).count() == 1


def test_register_ignores_requested_role(client):
    res = register(client, rol=ADMIN)
    assert res.status_code == 201
    assert res.get_json()["rol"] == "CLIENTE_MINORISTA"


def test_register_duplicate_email_is_case_insensitive(client):
    assert register(client).status_code == 201
    res = register(client, email="NUEVO@kansaco.com")
    assert res.status_code == 409


def test_register_validation(client):
    assert register(client, email="no-es-email").status_code == 400
    assert register(client, password="corta").status_code == 400
    assert register(client, nombre=" A ").status_code == 400
    assert register(client, apellido="").status_code == 400


def test_password_is_hashed(client):
    register(client)
    user = User.query.filter_by(email="nuevo@kansaco.com").first()
    assert user.password != "password123"
    assert user.password.startswith("$2")


def test_login_returns_token_and_user(client):
    register(client)
    res = client.post("/api/user/login", json={"email": "nuevo@kansaco.com", "password": "password123"})
    assert res.status_code == 200
    body = res.get_json()
    assert body["token"]
    assert body["user"]["email"] == "nuevo@kansaco.com"

    profile = client.get("/api/user/profile", headers={"Authorization": f"Bearer {body['token']}"})
    assert profile.status_code == 200
    assert profile.get_json()["nombre"] == "Ana"


def test_login_with_wrong_password(client):
    register(client)
    res = client.post("/api/user/login", json={"email": "nuevo@kansaco.com", "password": "incorrecta"})
    assert res.status_code == 401
    assert res.get_json()["error"] == "Credenciales inválidas"


def test_user_routes_require_token(client):
    assert client.get("/api/user").status_code == 401
    assert client.get("/api/user/profile").status_code == 401


def test_update_profile_email_conflict(client, make_user, headers_for):
    taken = make_user()
    user = make_user()
    res = client.put("/api/user/profile", json={"email": taken.email}, headers=headers_for(user))
    assert res.status_code == 409
    assert res.get_json()["error"] == "Email already in use"


def test_update_profile_changes_password(client, make_user, headers_for):
    user = make_user()
    res = client.put("/api/user/profile", json={"password": "otraclave99"}, headers=headers_for(user))
    assert res.status_code == 200
    login = client.post("/api/user/login", json={"email": user.email, "password": "otraclave99"})
    assert login.status_code == 200


def test_only_admin_changes_roles(client, make_user, headers_for):
    target = make_user()
    client_user = make_user()
    admin = make_user(ADMIN)

    res = client.put(f"/api/user/{target.id}", json={"rol": "ASISTENTE"}, headers=headers_for(client_user))
    assert res.status_code == 403

    res = client.put(f"/api/user/{target.id}", json={"rol": "ASISTENTE"}, headers=headers_for(admin))
    assert res.status_code == 200
    assert res.get_json()["rol"] == "ASISTENTE"


def test_get_and_delete_user(client, make_user, headers_for, admin_headers):
    user = make_user()
    user_id = user.id
    assert client.get(f"/api/user/{user_id}", headers=admin_headers).status_code == 200

    res = client.delete(f"/api/user/{user_id}", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["id"] == user_id
    assert client.get(f"/api/user/{user_id}", headers=admin_headers).status_code == 404
    assert Cart.query.filter_by(user_id=user_id).count() == 0
