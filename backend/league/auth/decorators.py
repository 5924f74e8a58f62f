from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from league.extensions import db
from league.models.user import User


def current_user():
    """The active user behind the request's token, or None."""
    verify_jwt_in_request()
    user = db.session.get(User, int(get_jwt_identity()))
    if not user or not user.is_active:
        return None
    return user


def auth_required(fn):
    """Decorator gating writes behind an authenticated, active account."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            return jsonify({"error": "Access denied"}), 403
        return fn(*args, **kwargs)

    return wrapper
