"""Constants for the reminder events facade."""

import os

# Timeouts
REQUEST_TIMEOUT: float = float(os.environ.get("REQUEST_TIMEOUT", "60.0"))

# Background execution
WORKER_THREADS: int = int(os.environ.get("REMINDERS_WORKER_THREADS", "1"))

# Logging
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Facade-raised errors
ERROR_DOMAIN: str = "reminder_events"
CALENDAR_NOT_FOUND_CODE: int = 1
REMINDER_NOT_FOUND_CODE: int = 2
