import json
from unittest import mock

import pytest

from core import rabbitmq
from core.errors import BadRequest
from core.extensions import db
from models.productModels import Category
from services import presupuestoService
from services.productService import add_image_to_product

MESSAGE = {
    "orderId": "abc",
    "customerType": "CLIENTE_MINORISTA",
    "contactInfo": {
        "fullName": "Juan Perez",
        "email": "juan@test.com",
        "phone": "1122334455",
        "address": "Calle 123",
    },
    "items": [
        {"productId": 1, "productName": "Aceite", "quantity": 2, "unitPrice": 1500, "presentation": "Balde 20 Litros"},
    ],
}


def test_publish_without_broker(app):
    assert rabbitmq.publish("send-email", {"to": []}) is False


def test_dispatch_routes_by_pattern(app):
    handler = mock.Mock(return_value="ok")
    body = json.dumps({"pattern": "generate-presupuesto", "data": {"a": 1}}).encode()

    assert rabbitmq.dispatch(body, {"generate-presupuesto": handler}) == "ok"
    handler.assert_called_once_with({"a": 1})


def test_dispatch_survives_bad_messages(app):
    failing = mock.Mock(side_effect=BadRequest("boom"))
    handlers = {"generate-presupuesto": failing}

    assert rabbitmq.dispatch(b"not json", handlers) is None
    assert rabbitmq.dispatch(json.dumps({"pattern": "other"}), handlers) is None
    assert rabbitmq.dispatch(json.dumps({"pattern": "generate-presupuesto", "data": {}}), handlers) is None
    failing.assert_called_once_with({})


def test_generate_presupuesto_sends_pdf(app):
    with mock.patch("services.emailService.send_email", return_value=True) as send:
        result = presupuestoService.generate_presupuesto(dict(MESSAGE, presupuestoNumber="2026-001"))

    assert result == {"success": True, "presupuestoNumber": "2026-001", "emailSent": True}
    recipients, subject = send.call_args[0][:2]
    assert recipients == ["ventas@kansaco.com"]
    assert subject == "Nuevo Presupuesto #2026-001 - Juan Perez"
    filename, content_type, data = send.call_args[1]["attachments"][0]
    assert filename == "presupuesto-2026-001.pdf"
    assert content_type == "application/pdf"
    assert data.startswith(b"%PDF")


def test_generate_presupuesto_recipient_and_number(app):
    with mock.patch("services.emailService.send_email", return_value=False) as send:
        result = presupuestoService.generate_presupuesto(dict(MESSAGE, recipientEmail="otro@kansaco.com"))

    assert send.call_args[0][0] == ["otro@kansaco.com"]
    assert result["emailSent"] is False
    year, seq = result["presupuestoNumber"].split("-")
    assert len(year) == 4 and len(seq) == 3


def test_generate_presupuesto_rejects_invalid_data(app):
    with pytest.raises(BadRequest):
        presupuestoService.generate_presupuesto({"items": MESSAGE["items"]})
    with pytest.raises(BadRequest):
        presupuestoService.generate_presupuesto(dict(MESSAGE, items=[]))


def test_collect_image_urls(app, make_product):
    product = make_product()
    add_image_to_product(product.id, "https://cdn/a.png", "a.png")
    add_image_to_product(product.id, "https://cdn/b.png", "b.png")
    add_image_to_product(product.id, "https://cdn/c.png", "c.png", is_primary=True)

    urls = presupuestoService.collect_image_urls([{"productId": product.id}, {"productId": 999}])
    assert urls == {product.id: ["https://cdn/c.png", "https://cdn/a.png", "https://cdn/b.png"]}
    assert presupuestoService.collect_image_urls([]) == {}


def test_dispatch_recovers_session_after_database_error(app):
    def broken(data):
        db.session.add(Category(name=None))
        db.session.flush()

    def counting(data):
        return Category.query.count()

    handlers = {"broken": broken, "count": counting}
    assert rabbitmq.dispatch(json.dumps({"pattern": "broken", "data": {}}), handlers) is None
    assert rabbitmq.dispatch(json.dumps({"pattern": "count", "data": {}}), handlers) == 0
