import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _csv(name, default):
    raw = os.getenv(name)
    if not raw:
        return default
    return [part.strip() for part in raw.split(",") if part.strip()]


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the code as courtslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "courtslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Where slot state lives: "sql" (database above) or "memory" (per-process, per-slot locks)
    SLOT_STORE_BACKEND = os.getenv("SLOT_STORE_BACKEND", "sql")

    # 24 hours token lifetime
    SESSION_LIFETIME_SECONDS = int(os.getenv("SESSION_LIFETIME_SECONDS", str(24 * 60 * 60)))

    # Idle timeout, 0 disables
    IDLE_TIMEOUT_SECONDS = int(os.getenv("IDLE_TIMEOUT_SECONDS", "0"))

    # Password hashing / policy
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
    PASSWORD_MIN_LEN = 6
    PASSWORD_MAX_LEN = 128

    # Slot seeding (today + SEED_DAYS-1, every time x every court)
    SEED_SLOTS_ON_STARTUP = os.getenv("SEED_SLOTS_ON_STARTUP", "true").lower() == "true"
    SEED_DAYS = int(os.getenv("SEED_DAYS", "2"))
    SEED_TIMES = _csv("SEED_TIMES", ["06:00", "07:00", "08:00", "09:00", "10:00",
                                     "16:00", "17:00", "18:00", "19:00", "20:00"])
    SEED_COURTS = _csv("SEED_COURTS", ["Court 1", "Court 2", "Court 3"])
    SEED_PRICES = [int(p) for p in _csv("SEED_PRICES", ["1000", "1200", "1500"])]
    SEED_DURATION = os.getenv("SEED_DURATION", "1 hour")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
