import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
TOKEN_ALGORITHM = os.getenv("TOKEN_ALGORITHM", "HS256")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_payroll_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "1")))
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "Asia/Dhaka")

MAIL_CONFIG = {
    "host": os.getenv("MAIL_HOST", ""),
    "port": int(os.getenv("MAIL_PORT", "587")),
    "user": os.getenv("MAIL_USER", ""),
    "password": os.getenv("MAIL_PASSWORD", ""),
    "sender": os.getenv("MAIL_SENDER", ""),
}
STORAGE_CONFIG = {
    "bucket": os.getenv("STORAGE_BUCKET", ""),
    "endpoint": os.getenv("STORAGE_ENDPOINT", ""),
    "access_key": os.getenv("STORAGE_ACCESS_KEY", ""),
    "secret_key": os.getenv("STORAGE_SECRET_KEY", ""),
}
