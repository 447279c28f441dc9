from .health import health_bp
from .auth import auth_bp
from .slots import slots_bp
