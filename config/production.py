import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_hub"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

MAIL_RELAY_URL = os.getenv("MAIL_RELAY_URL", "")
MAIL_SENDER_EMAIL = os.getenv("MAIL_SENDER_EMAIL", "")
MAIL_SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "Attendance Hub")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "30"))
