import os

SECRET_KEY = "test-secret"
TOKEN_ALGORITHM = "HS256"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_payroll_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SCHEDULER_ENABLED = False
SCHEDULER_TIMEZONE = "Asia/Dhaka"

MAIL_CONFIG = {"host": "", "port": 0, "user": "", "password": "", "sender": ""}
STORAGE_CONFIG = {"bucket": "", "endpoint": "", "access_key": "", "secret_key": ""}
