from flask import Blueprint, request, jsonify, g
from sqlalchemy import or_

from models import db
from models.user import User
from security.password import hash_password, verify_password
from security.password_policy import validate_password
from security.session import bearer_token_from_request, create_session, revoke_session
from utils.audit import log_event
from utils.auth_context import login_required


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

SIGNUP_REQUIRED_FIELDS = ("username", "email", "password", "first_name", "last_name")


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _field(data, name, *aliases) -> str:
    for key in (name,) + aliases:
        value = data.get(key)
        if isinstance(value, str):
            return value.strip()
    return ""


@auth_bp.post("/signup")
def signup():
    data = request.get_json(silent=True) or {}
    fields = {
        "username": _field(data, "username"),
        "email": _field(data, "email").lower(),
        "password": data.get("password") if isinstance(data.get("password"), str) else "",
        "first_name": _field(data, "first_name", "firstName"),
        "last_name": _field(data, "last_name", "lastName"),
    }
    phone = _field(data, "phone") or None

    missing = [name for name in SIGNUP_REQUIRED_FIELDS if not fields[name]]
    if missing:
        return jsonify(error="All required fields must be provided", missing=missing), 400

    if not _is_valid_email(fields["email"]):
        return jsonify(error="Invalid email"), 400

    valid, errors = validate_password(fields["password"])
    if not valid:
        return jsonify(error="Password does not meet policy", details=errors), 400

    existing = User.query.filter(
        or_(User.email == fields["email"], User.username == fields["username"])
    ).first()
    if existing:
        log_event("SIGNUP_FAIL_EXISTS", metadata={"email": fields["email"], "username": fields["username"]})
        return jsonify(error="User with this email or username already exists"), 409

    user = User(
        username=fields["username"],
        email=fields["email"],
        password_hash=hash_password(fields["password"]),
        first_name=fields["first_name"],
        last_name=fields["last_name"],
        phone=phone,
    )
    db.session.add(user)
    db.session.commit()

    token = create_session(user.id)
    log_event("SIGNUP_SUCCESS", user_id=user.id)

    return jsonify(message="User created successfully", token=token, user=user.to_dict()), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = _field(data, "email").lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""

    if not email or not password:
        return jsonify(error="Email and password are required"), 400

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    token = create_session(user.id)
    log_event("LOGIN_SUCCESS", user_id=user.id)

    return jsonify(message="Login successful", token=token, user=user.to_dict()), 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(g.user.to_dict()), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(bearer_token_from_request())
    log_event("LOGOUT", user_id=g.user.id)
    return jsonify(message="Logged out"), 200
