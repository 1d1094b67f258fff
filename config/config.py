import os


def _flag(name: str, default: str = "0") -> bool:
    return bool(int(os.environ.get(name, default)))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "change-me"

    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "shiftdesk")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Attendance policy
    CHECKIN_CUTOFF_MINUTES = int(os.environ.get("CHECKIN_CUTOFF_MINUTES", "60"))
    ALLOW_RECHECKIN_AFTER_COMPLETED = _flag("ALLOW_RECHECKIN_AFTER_COMPLETED")

    # Dev helpers
    AUTO_INIT_DB = _flag("AUTO_INIT_DB")
    AUTO_SEED_DB = _flag("AUTO_SEED_DB")

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
