import re
from flask import Blueprint, request, jsonify
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)
from league.extensions import db, limiter
from league.models.user import User
from league.schemas.user import UserSchema, RegisterSchema
from league.auth.decorators import auth_required

auth_bp = Blueprint("auth", __name__)
user_schema = UserSchema()
register_schema = RegisterSchema()

PASSWORD_RE = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#]).{8,}$"
)


def validate_password(password):
    """Require 8+ chars with uppercase, lowercase, digit, and special char."""
    if not PASSWORD_RE.match(password):
        return (
            "Password must be at least 8 characters with uppercase, "
            "lowercase, digit, and special character"
        )
    return None


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    data = request.get_json(silent=True)

    if not data or not data.get("email") or not data.get("password"):
        return jsonify({"error": "Email and password are required"}), 400

    user = User.query.filter_by(email=data["email"]).first()

    if not user or not user.check_password(data["password"]):
        return jsonify({"error": "Invalid email or password"}), 401

    if not user.is_active:
        return jsonify({"error": "Account is deactivated"}), 403

    access_token = create_access_token(identity=str(user.id))
    refresh_token = create_refresh_token(identity=str(user.id))

    return jsonify(
        {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": user_schema.dump(user),
        }
    ), 200


@auth_bp.route("/register", methods=["POST"])
@auth_required
def register():
    data = register_schema.load(request.get_json())

    if User.query.filter_by(email=data["email"]).first():
        return jsonify({"error": "Email already registered"}), 409

    pw_error = validate_password(data["password"])
    if pw_error:
        return jsonify({"error": pw_error}), 400

    user = User(email=data["email"], name=data["name"])
    user.set_password(data["password"])

    db.session.add(user)
    db.session.commit()

    return jsonify({"user": user_schema.dump(user)}), 201


@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
@limiter.limit("30 per minute")
def refresh():
    user_id = int(get_jwt_identity())
    user = db.session.get(User, user_id)

    if not user or not user.is_active:
        return jsonify({"error": "Account is deactivated"}), 403

    access_token = create_access_token(identity=str(user_id))
    return jsonify({"access_token": access_token}), 200


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    user_id = int(get_jwt_identity())
    user = db.session.get(User, user_id)

    if not user:
        return jsonify({"error": "User not found"}), 404

    return jsonify({"user": user_schema.dump(user)}), 200
