import os

from .config import Config

SECRET_KEY = "test-secret"
DB_CONFIG = dict(Config.db_config(), database=os.getenv("DB_NAME", "shiftdesk_test"))

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

CHECKIN_CUTOFF_MINUTES = 60
ALLOW_RECHECKIN_AFTER_COMPLETED = False

AUTO_INIT_DB = False
AUTO_SEED_DB = False
