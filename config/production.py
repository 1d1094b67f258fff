import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = Config.db_config()

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

CHECKIN_CUTOFF_MINUTES = Config.CHECKIN_CUTOFF_MINUTES
ALLOW_RECHECKIN_AFTER_COMPLETED = Config.ALLOW_RECHECKIN_AFTER_COMPLETED

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
