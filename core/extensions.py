from core.imports import Bcrypt, Swagger, JWTManager, SQLAlchemy, CORS, Migrate, Mail

swagger_template = {
    "info": {
        "title": "Kansaco API",
        "description": "Catalogo, carrito, pedidos y presupuestos de Kansaco",
        "version": "1.0.0",
    },
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "JWT token as: Bearer <your_token>",
        }
    },
}

jwt = JWTManager()
db = SQLAlchemy()
migrate = Migrate()
swagger = Swagger(template=swagger_template)
cors = CORS()
mail = Mail()
bcrypt = Bcrypt()
