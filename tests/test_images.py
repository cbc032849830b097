import io
from unittest import mock

import pytest
from PIL import Image

from core.extensions import db
from models.productModels import Product, ProductImage
from services import imageService


@pytest.fixture
def fake_storage():
    with mock.patch("core.storage.upload_file") as upload, \
            mock.patch("core.storage.file_exists") as exists, \
            mock.patch("core.storage.delete_file") as delete:
        upload.side_effect = lambda key, data, content_type=None: f"https://cdn.test/{key}"
        exists.return_value = True
        yield {"upload": upload, "exists": exists, "delete": delete}


def png(name="Foto Producto.PNG"):
    buffer = io.BytesIO()
    Image.new("RGBA", (8, 8), (200, 30, 30, 255)).save(buffer, format="PNG")
    buffer.seek(0)
    return (buffer, name, "image/png")


def test_sanitize_filename():
    assert imageService.sanitize_filename("Foto  Producto (1).PNG") == "foto_producto_1_.png"
    assert imageService.build_key("a b.jpg", "/products/") == "products/a_b.webp"
    assert imageService.build_key("a.jpg") == "a.webp"


def test_upload_image(client, admin_headers, fake_storage):
    res = client.post(
        "/api/image/upload?folder=products",
        data={"file": png()},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert res.status_code == 201
    body = res.get_json()
    assert body["key"] == "products/foto_producto.webp"
    assert body["url"] == "https://cdn.test/products/foto_producto.webp"
    fake_storage["upload"].assert_called_once()


def test_upload_rejects_other_types_and_roles(client, admin_headers, client_headers, fake_storage):
    res = client.post(
        "/api/image/upload",
        data={"file": (io.BytesIO(b"%PDF"), "doc.pdf", "application/pdf")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert res.status_code == 400

    res = client.post(
        "/api/image/upload",
        data={"file": png()},
        headers=client_headers,
        content_type="multipart/form-data",
    )
    assert res.status_code == 403
    fake_storage["upload"].assert_not_called()


def test_upload_multiple_limit(client, admin_headers, fake_storage):
    files = [png(f"img{i}.png") for i in range(11)]
    res = client.post(
        "/api/image/upload-multiple",
        data={"files": files},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert res.status_code == 400

    res = client.post(
        "/api/image/upload-multiple",
        data={"files": [png("a.png"), png("b.png")]},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert res.status_code == 201
    assert [r["key"] for r in res.get_json()] == ["a.webp", "b.webp"]


def test_list_and_url(client, client_headers):
    page = {"images": [], "total": 0, "page": 1, "limit": 20, "hasMore": False, "nextToken": None}
    with mock.patch("core.storage.list_objects", return_value=page) as listing:
        res = client.get("/api/image/list?prefix=products/", headers=client_headers)
    assert res.status_code == 200
    listing.assert_called_once_with(prefix="products/", page=1, limit=20, continuation_token=None)

    assert client.get("/api/image/list?limit=1001", headers=client_headers).status_code == 400

    res = client.get("/api/image/products/a.png", headers=client_headers)
    assert res.get_json()["url"] == "https://kansaco-images.nyc3.digitaloceanspaces.com/products/a.png"


def test_delete_image(client, admin_headers, fake_storage):
    assert client.delete("/api/image/products/a.png", headers=admin_headers).status_code == 200
    fake_storage["delete"].assert_called_once_with("products/a.png")

    fake_storage["exists"].return_value = False
    assert client.delete("/api/image/products/b.png", headers=admin_headers).status_code == 404


def upload_to_product(client, headers, product_id, primary=False, name="foto.png"):
    return client.post(
        f"/api/product/{product_id}/image" + ("?isPrimary=true" if primary else ""),
        data={"image": png(name)},
        headers=headers,
        content_type="multipart/form-data",
    )


def test_product_images_primary_and_order(client, admin_headers, make_product, fake_storage):
    product_id = make_product().id

    first = upload_to_product(client, admin_headers, product_id, name="uno.png").get_json()
    second = upload_to_product(client, admin_headers, product_id, name="dos.png").get_json()
    assert first["isPrimary"] is True
    assert second["isPrimary"] is False
    assert second["order"] == first["order"] + 1
    assert db.session.get(Product, product_id).image_url.endswith("products/uno.webp")

    third = upload_to_product(client, admin_headers, product_id, primary=True, name="tres.png").get_json()
    images = client.get(f"/api/product/{product_id}/images").get_json()
    assert images[0]["id"] == third["id"]
    assert [i["isPrimary"] for i in images] == [True, False, False]

    res = client.patch(f"/api/product/{product_id}/image/{first['id']}/primary", headers=admin_headers)
    assert res.status_code == 200
    assert db.session.get(Product, product_id).image_url.endswith("products/uno.webp")


def test_reorder_images(client, admin_headers, make_product, fake_storage):
    product_id = make_product().id
    ids = [upload_to_product(client, admin_headers, product_id, name=f"{n}.png").get_json()["id"] for n in "abc"]

    res = client.patch(
        f"/api/product/{product_id}/images/reorder",
        json={"imageIds": list(reversed(ids))},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.get_json()["message"] == "Images reordered successfully"
    orders = {img.id: img.order for img in ProductImage.query.all()}
    assert orders == {ids[2]: 0, ids[1]: 1, ids[0]: 2}

    for bad in ([], ["x"], [999]):
        res = client.patch(f"/api/product/{product_id}/images/reorder", json={"imageIds": bad}, headers=admin_headers)
        assert res.status_code == 400


def test_delete_product_image_tolerates_storage_errors(client, admin_headers, make_product, fake_storage):
    product_id = make_product().id
    first = upload_to_product(client, admin_headers, product_id, name="uno.png").get_json()
    second = upload_to_product(client, admin_headers, product_id, name="dos.png").get_json()
    fake_storage["delete"].side_effect = RuntimeError("spaces unavailable")

    res = client.delete(f"/api/product/{product_id}/image/{first['id']}", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json() == {"message": "Image deleted successfully"}

    remaining = db.session.get(ProductImage, second["id"])
    assert remaining.is_primary is True
    assert db.session.get(ProductImage, first["id"]) is None


def test_associate_existing_image_tries_products_prefix(client, admin_headers, make_product, fake_storage):
    product_id = make_product().id
    fake_storage["exists"].side_effect = lambda key: key == "products/aceite.webp"

    res = client.post(
        f"/api/product/{product_id}/image/associate",
        json={"imageKey": "/aceite.webp"},
        headers=admin_headers,
    )
    assert res.status_code == 201
    assert res.get_json()["imageKey"] == "products/aceite.webp"

    fake_storage["exists"].side_effect = lambda key: False
    res = client.post(
        f"/api/product/{product_id}/image/associate",
        json={"imageKey": "nada.webp"},
        headers=admin_headers,
    )
    assert res.status_code == 400


def test_uploads_are_converted_to_webp(client, admin_headers, fake_storage):
    res = client.post(
        "/api/image/upload",
        data={"file": png("logo.png")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert res.status_code == 201
    assert res.get_json()["contentType"] == "image/webp"

    key, data, content_type = fake_storage["upload"].call_args[0]
    assert key == "logo.webp"
    assert content_type == "image/webp"
    assert data[:4] == b"RIFF" and data[8:12] == b"WEBP"
    assert res.get_json()["size"] == len(data)


def test_upload_rejects_unreadable_image(client, admin_headers, fake_storage):
    res = client.post(
        "/api/image/upload",
        data={"file": (io.BytesIO(b"\x89PNG\r\n\x1a\nroto"), "roto.png", "image/png")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert res.status_code == 400
    assert res.get_json()["error"] == "Failed to upload image"
    fake_storage["upload"].assert_not_called()
