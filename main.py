import logging

import click

from core.imports import Flask
from core.config import Config
from core.extensions import db, jwt, swagger, cors, bcrypt, migrate, mail
from core.errors import register_error_handlers
from routes.users import users_bp
from routes.categories import categories_bp
from routes.products import products_bp
from routes.cart import cart_bp
from routes.orders import orders_bp
from routes.images import images_bp
from routes.email import email_bp


SPACES_HOST = ".digitaloceanspaces.com"
CDN_HOST = ".cdn.digitaloceanspaces.com"


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    db.init_app(app)
    jwt.init_app(app)
    swagger.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    bcrypt.init_app(app)
    mail.init_app(app)
    migrate.init_app(app, db)

    register_error_handlers(app)

    app.register_blueprint(users_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(images_bp)
    app.register_blueprint(email_bp)

    @app.route('/ping')
    def ping():
        return "Ping received", 200

    register_commands(app)
    return app


def seed_carts():
    """Create an empty cart for every user that has none."""
    from models.userModel import User
    from models.cartModels import Cart

    users = User.query.outerjoin(Cart).filter(Cart.id.is_(None)).all()
    for user in users:
        db.session.add(Cart(user_id=user.id))
    db.session.commit()
    return len(users)


def set_all_products_visible():
    from models.productModels import Product

    count = Product.query.filter(Product.is_visible.is_(False)).update({Product.is_visible: True})
    db.session.commit()
    return count


def update_urls_to_cdn():
    """Point Spaces image URLs at the CDN host; returns ``(products, images)`` updated."""
    from models.productModels import Product, ProductImage

    counts = []
    for model in (Product, ProductImage):
        updated = 0
        for row in model.query.filter(model.image_url.contains(SPACES_HOST)).all():
            if CDN_HOST in row.image_url:
                continue
            row.image_url = row.image_url.replace(SPACES_HOST, CDN_HOST, 1)
            updated += 1
        counts.append(updated)
    db.session.commit()
    return tuple(counts)


def seed_admin(email, password):
    from core.auth import ADMIN
    from models.userModel import User
    from services import userService

    if User.query.filter_by(rol=ADMIN).first():
        return None
    return userService.create_user({
        "email": email,
        "password": password,
        "nombre": "Admin",
        "apellido": "Kansaco",
        "rol": ADMIN,
    })


def register_commands(app):
    @app.cli.command("seed-carts")
    def seed_carts_command():
        """Create carts for users without one."""
        click.echo(f"Created {seed_carts()} carts")

    @app.cli.command("set-products-visible")
    def set_products_visible_command():
        """Mark every product as visible."""
        click.echo(f"{set_all_products_visible()} products made visible")

    @app.cli.command("update-urls-to-cdn")
    def update_urls_to_cdn_command():
        """Rewrite stored image URLs to the Spaces CDN host."""
        products, images = update_urls_to_cdn()
        click.echo(f"Product.imageUrl: {products} updated")
        click.echo(f"ProductImage.imageUrl: {images} updated")

    @app.cli.command("seed-admin")
    def seed_admin_command():
        """Create the first ADMIN from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD."""
        email = app.config.get("SEED_ADMIN_EMAIL")
        password = app.config.get("SEED_ADMIN_PASSWORD")
        if not email or not password:
            raise click.ClickException("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set")
        user = seed_admin(email, password)
        click.echo(f"Admin created: {user.email}" if user else "An ADMIN already exists")

    @app.cli.command("consume-presupuestos")
    def consume_presupuestos_command():
        """Listen for generate-presupuesto messages on RabbitMQ."""
        from core.rabbitmq import consume
        from services.presupuestoService import HANDLERS

        consume(HANDLERS)


app = create_app()


if __name__ == "__main__":
    with app.app_context():
        db.create_all()

    app.run(debug=True)
