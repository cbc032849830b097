from core.auth import ADMIN
from core.extensions import db
from models.cartModels import Cart
from models.productModels import Product, ProductImage
from services.productService import add_image_to_product
from models.userModel import User


def test_seed_carts(app, make_user):
    user = make_user()
    db.session.delete(user.cart)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["seed-carts"])
    assert "Created 1 carts" in result.output
    assert Cart.query.filter_by(user_id=user.id).count() == 1

    result = app.test_cli_runner().invoke(args=["seed-carts"])
    assert "Created 0 carts" in result.output


def test_set_products_visible(app, make_product):
    make_product(isVisible=False)
    make_product(isVisible=True)

    result = app.test_cli_runner().invoke(args=["set-products-visible"])
    assert "1 products made visible" in result.output
    assert Product.query.filter_by(is_visible=False).count() == 0


def test_seed_admin(app):
    runner = app.test_cli_runner()
    app.config.update(SEED_ADMIN_EMAIL=None, SEED_ADMIN_PASSWORD=None)
    assert runner.invoke(args=["seed-admin"]).exit_code != 0

    app.config.update(SEED_ADMIN_EMAIL="admin@kansaco.com", SEED_ADMIN_PASSWORD="secret123")
    result = runner.invoke(args=["seed-admin"])
    assert "Admin created: admin@kansaco.com" in result.output
    assert User.query.filter_by(rol=ADMIN).count() == 1

    result = runner.invoke(args=["seed-admin"])
    assert "An ADMIN already exists" in result.output


def test_update_urls_to_cdn(app, make_product):
    spaces = "https://kansaco-images.nyc3.digitaloceanspaces.com/products/a.webp"
    cdn = "https://kansaco-images.nyc3.cdn.digitaloceanspaces.com/products/b.webp"
    first = make_product()
    second = make_product(imageUrl="https://otro.host/c.webp")
    add_image_to_product(first.id, spaces, "products/a.webp")
    add_image_to_product(second.id, cdn, "products/b.webp", is_primary=False)

    result = app.test_cli_runner().invoke(args=["update-urls-to-cdn"])
    assert "Product.imageUrl: 1 updated" in result.output
    assert "ProductImage.imageUrl: 1 updated" in result.output
    assert ProductImage.query.filter_by(image_key="products/a.webp").one().image_url == (
        "https://kansaco-images.nyc3.cdn.digitaloceanspaces.com/products/a.webp"
    )
    assert ProductImage.query.filter_by(image_key="products/b.webp").one().image_url == cdn
    assert Product.query.filter_by(image_url=cdn).count() == 1
