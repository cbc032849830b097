from core.imports import Blueprint, request, jsonify, jwt_required, create_access_token
from core.auth import ADMIN, current_role, current_user_id
from services import userService

users_bp = Blueprint("users", __name__)


@users_bp.route("/api/user/register", methods=["POST"])
def register():
    """
    Register a new user
    ---
    tags:
      - User
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required: [email, password, nombre, apellido]
          properties:
            email: { type: string, example: "cliente@kansaco.com" }
            password: { type: string, example: "secreto123" }
            nombre: { type: string, example: "Juan" }
            apellido: { type: string, example: "Perez" }
            direccion: { type: string, example: "Av. Siempre Viva 742" }
            telefono: { type: string, example: "1145678900" }
    responses:
      201:
        description: User created, together with an empty cart
      400:
        description: Invalid email, short password or short name
      409:
        description: Email already registered
    """
    data = request.get_json(silent=True) or {}
    # self-registration never grants staff roles
    data.pop("rol", None)
    user = userService.create_user(data)
    return jsonify(user.to_dict()), 201


@users_bp.route("/api/user/login", methods=["POST"])
def login():
    """
    Login and obtain a JWT
    ---
    tags:
      - User
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            email: { type: string, example: "cliente@kansaco.com" }
            password: { type: string, example: "secreto123" }
    responses:
      200:
        description: Token and user
        schema:
          type: object
          properties:
            token: { type: string }
            user: { type: object }
      401:
        description: Invalid credentials
    """
    data = request.get_json(silent=True) or {}
    user = userService.authenticate(data.get("email"), data.get("password"))
    if not user:
        return jsonify({"error": "Credenciales inválidas", "statusCode": 401}), 401

    token = create_access_token(
        identity=str(user.id),
        additional_claims={"email": user.email, "rol": user.rol},
    )
    return jsonify({"token": token, "user": user.to_dict()}), 200


@users_bp.route("/api/user", methods=["GET"])
@jwt_required()
def list_users():
    """
    List users
    ---
    tags:
      - User
    security:
      - Bearer: []
    responses:
      200:
        description: All users, without passwords
    """
    return jsonify([u.to_dict() for u in userService.list_users()]), 200


@users_bp.route("/api/user/profile", methods=["GET"])
@jwt_required()
def get_profile():
    """
    Get the logged-in user's profile
    ---
    tags:
      - User
    security:
      - Bearer: []
    responses:
      200:
        description: Current user
      404:
        description: User not found
    """
    return jsonify(userService.get_user(current_user_id()).to_dict()), 200


@users_bp.route("/api/user/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    """
    Update the logged-in user's profile
    ---
    tags:
      - User
    security:
      - Bearer: []
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            email: { type: string }
            nombre: { type: string }
            apellido: { type: string }
            direccion: { type: string }
            telefono: { type: string }
            password: { type: string }
    responses:
      200:
        description: Updated user
      409:
        description: Email already in use
    """
    data = request.get_json(silent=True) or {}
    user = userService.update_user(current_user_id(), data, allow_role_change=current_role() == ADMIN)
    return jsonify(user.to_dict()), 200


@users_bp.route("/api/user/<string:user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id):
    """
    Get a user by id
    ---
    tags:
      - User
    security:
      - Bearer: []
    parameters:
      - name: user_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: User
      404:
        description: User not found
    """
    return jsonify(userService.get_user(user_id).to_dict()), 200


@users_bp.route("/api/user/<string:user_id>", methods=["PUT"])
@jwt_required()
def update_user(user_id):
    """
    Update a user
    ---
    tags:
      - User
    security:
      - Bearer: []
    parameters:
      - name: user_id
        in: path
        type: string
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            email: { type: string }
            nombre: { type: string }
            apellido: { type: string }
            rol:
              type: string
              enum: [ADMIN, ASISTENTE, CLIENTE_MINORISTA, CLIENTE_MAYORISTA]
    responses:
      200:
        description: Updated user
      403:
        description: Only an ADMIN can change roles
      404:
        description: User not found
      409:
        description: Email already in use
    """
    data = request.get_json(silent=True) or {}
    user = userService.update_user(user_id, data, allow_role_change=current_role() == ADMIN)
    return jsonify(user.to_dict()), 200


@users_bp.route("/api/user/<string:user_id>", methods=["DELETE"])
@jwt_required()
def delete_user(user_id):
    """
    Delete a user
    ---
    tags:
      - User
    security:
      - Bearer: []
    parameters:
      - name: user_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Deleted user
      404:
        description: User not found
    """
    return jsonify(userService.delete_user(user_id)), 200
