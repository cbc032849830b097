from models.cartModels import CartItem


def add(client, headers, cart_id, product_id, quantity=None, presentation=None):
    params = {}
    if quantity is not None:
        params["quantity"] = quantity
    if presentation is not None:
        params["presentation"] = presentation
    return client.put(f"/api/cart/{cart_id}/add/product/{product_id}", query_string=params, headers=headers)


def test_creating_cart_twice_returns_existing(client, client_user, client_headers):
    user_id = client_user.id
    existing_id = client_user.cart.id

    res = client.post("/api/cart/create", json={"userId": user_id}, headers=client_headers)
    assert res.status_code == 200
    assert res.get_json()["id"] == existing_id

    again = client.post("/api/cart/create", json={"userId": user_id}, headers=client_headers)
    assert again.get_json()["id"] == existing_id


def test_create_cart_for_user_without_one(client, client_user, client_headers, app):
    from core.extensions import db

    user_id = client_user.id
    db.session.delete(client_user.cart)
    db.session.commit()

    res = client.post("/api/cart/create", json={"userId": user_id}, headers=client_headers)
    assert res.status_code == 201
    assert res.get_json()["userId"] == user_id
    assert res.get_json()["items"] == []


def test_create_cart_unknown_user(client, client_headers):
    res = client.post("/api/cart/create", json={"userId": "no-existe"}, headers=client_headers)
    assert res.status_code == 404


def test_get_cart_by_id_and_user(client, client_user, client_headers):
    cart_id = client_user.cart.id
    assert client.get(f"/api/cart/{cart_id}", headers=client_headers).get_json()["id"] == cart_id
    assert client.get(f"/api/cart/user/{client_user.id}", headers=client_headers).get_json()["id"] == cart_id
    assert client.get("/api/cart/999", headers=client_headers).status_code == 404
    assert client.get(f"/api/cart/{cart_id}").status_code == 401


def test_add_item_merges_same_presentation(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    product_id = make_product().id

    add(client, client_headers, cart_id, product_id, 2, "Balde 20 Litros")
    res = add(client, client_headers, cart_id, product_id, 3, "balde 20 litros ")
    assert res.status_code == 200
    items = res.get_json()["items"]
    assert len(items) == 1
    assert items[0]["quantity"] == 5
    assert items[0]["presentation"] == "Balde 20 Litros"
    assert items[0]["product"]["id"] == product_id


def test_different_presentations_are_separate_items(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    product_id = make_product().id

    add(client, client_headers, cart_id, product_id, 1, "Balde 20 Litros")
    add(client, client_headers, cart_id, product_id, 1, "Tambor 200 Litros")
    res = add(client, client_headers, cart_id, product_id)
    items = res.get_json()["items"]
    assert sorted((i["presentation"] or "") for i in items) == ["", "Balde 20 Litros", "Tambor 200 Litros"]


def test_add_item_with_invalid_presentation(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    product_id = make_product().id

    res = add(client, client_headers, cart_id, product_id, 1, "Bidon 5 Litros")
    assert res.status_code == 400
    assert CartItem.query.count() == 0


def test_add_item_validation(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    product_id = make_product().id

    assert add(client, client_headers, cart_id, product_id, 0).status_code == 400
    assert add(client, client_headers, cart_id, product_id, "dos").status_code == 400
    assert add(client, client_headers, 999, product_id).status_code == 404
    assert add(client, client_headers, cart_id, 999).status_code == 404


def test_remove_item_decrements_and_deletes(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    product_id = make_product().id
    add(client, client_headers, cart_id, product_id, 3)

    res = client.patch(f"/api/cart/{cart_id}/delete/product/{product_id}?quantity=2", headers=client_headers)
    assert res.status_code == 200
    assert res.get_json()["items"][0]["quantity"] == 1

    res = client.patch(f"/api/cart/{cart_id}/delete/product/{product_id}", headers=client_headers)
    assert res.status_code == 200
    assert res.get_json()["items"] == []


def test_remove_missing_item(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    product_id = make_product().id
    res = client.patch(f"/api/cart/{cart_id}/delete/product/{product_id}", headers=client_headers)
    assert res.status_code == 400
    assert res.get_json()["error"] == f"Cart {cart_id} does not contain item {product_id}"


def test_empty_cart(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    add(client, client_headers, cart_id, make_product().id, 2)
    add(client, client_headers, cart_id, make_product().id, 1)

    res = client.patch(f"/api/cart/{cart_id}/empty", headers=client_headers)
    assert res.status_code == 200
    assert res.get_json()["items"] == []
    assert CartItem.query.filter_by(cart_id=cart_id).count() == 0


def test_remove_item_only_touches_matching_presentation(client, client_user, client_headers, make_product):
    cart_id = client_user.cart.id
    product_id = make_product().id
    add(client, client_headers, cart_id, product_id, 3, "Balde 20 Litros")
    add(client, client_headers, cart_id, product_id, 1, "Tambor 200 Litros")

    res = client.patch(f"/api/cart/{cart_id}/delete/product/{product_id}?quantity=1", headers=client_headers)
    assert res.status_code == 400
    assert CartItem.query.filter_by(cart_id=cart_id).count() == 2

    res = client.patch(
        f"/api/cart/{cart_id}/delete/product/{product_id}",
        query_string={"quantity": 1, "presentation": "balde 20 litros"},
        headers=client_headers,
    )
    assert res.status_code == 200
    items = {i["presentation"]: i["quantity"] for i in res.get_json()["items"]}
    assert items == {"Balde 20 Litros": 2, "Tambor 200 Litros": 1}

    add(client, client_headers, cart_id, product_id, 2)
    res = client.patch(f"/api/cart/{cart_id}/delete/product/{product_id}?quantity=1", headers=client_headers)
    items = {i["presentation"]: i["quantity"] for i in res.get_json()["items"]}
    assert items == {None: 1, "Balde 20 Litros": 2, "Tambor 200 Litros": 1}
