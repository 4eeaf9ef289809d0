import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
TOKEN_ALGORITHM = os.getenv("TOKEN_ALGORITHM", "HS256")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_payroll_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Monthly payroll batch (5th of the month, 01:00)
SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "0")))
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "Asia/Dhaka")

# Used by the mail and storage collaborators only
MAIL_CONFIG = {
    "host": os.getenv("MAIL_HOST", "localhost"),
    "port": int(os.getenv("MAIL_PORT", "587")),
    "user": os.getenv("MAIL_USER", ""),
    "password": os.getenv("MAIL_PASSWORD", ""),
    "sender": os.getenv("MAIL_SENDER", "hr@example.com"),
}
STORAGE_CONFIG = {
    "bucket": os.getenv("STORAGE_BUCKET", "profile-images"),
    "endpoint": os.getenv("STORAGE_ENDPOINT", ""),
    "access_key": os.getenv("STORAGE_ACCESS_KEY", ""),
    "secret_key": os.getenv("STORAGE_SECRET_KEY", ""),
}
