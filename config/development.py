import os

from .config import Config, _flag

SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = Config.db_config()

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

CHECKIN_CUTOFF_MINUTES = Config.CHECKIN_CUTOFF_MINUTES
ALLOW_RECHECKIN_AFTER_COMPLETED = Config.ALLOW_RECHECKIN_AFTER_COMPLETED

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = _flag("AUTO_INIT_DB", "1")
# Optional: also seed demo data on startup
AUTO_SEED_DB = Config.AUTO_SEED_DB
