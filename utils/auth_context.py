from functools import wraps
from flask import g, jsonify

from models import db
from models.user import User
from security.session import authenticate, bearer_token_from_request
from services.errors import Unauthenticated


def load_current_user():
    g.user = None
    g.user_id = None
    g.auth_error = None

    token = bearer_token_from_request()
    if token is None:
        return
    try:
        user_id = authenticate(token)
    except Unauthenticated as exc:
        g.auth_error = exc.message
        return

    user = db.session.get(User, user_id)
    if user is None:
        g.auth_error = "Invalid token"
        return
    g.user = user
    g.user_id = user.id


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            message = getattr(g, "auth_error", None) or "Authentication required"
            return jsonify(error=message, code=Unauthenticated.code), 401
        return fn(*args, **kwargs)
    return wrapper
