from flask import Blueprint, jsonify

from utils.clock import utcnow

health_bp = Blueprint("health", __name__, url_prefix="/api")


@health_bp.get("/health")
def health():
    return jsonify(status="ok", timestamp=utcnow().isoformat() + "Z"), 200
