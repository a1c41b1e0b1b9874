"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_EMAIL_LOG_LIMIT = 50
DEFAULT_NOTIFICATION_TIMEOUT_SECONDS = 30.0
DEFAULT_MIN_PASSWORD_LENGTH = 6

SYSTEM_CONFIG_KEY = "config"
SYSTEM_SETTINGS_KEY = "settings"
SYSTEM_VERSION = "1.0.0"

UNASSIGNED_DEPARTMENT = "Unassigned"
