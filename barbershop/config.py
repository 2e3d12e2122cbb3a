# barbershop/config.py

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barber.db")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn("SECRET_KEY not set, using an insecure development key", RuntimeWarning, stacklevel=2)
    SECRET_KEY = "change-me-later"

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Upper bound on waiting for a per-barber or per-appointment lock
LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS", "5"))

# How many recent events the polling feed keeps
EVENT_FEED_SIZE = int(os.getenv("EVENT_FEED_SIZE", "200"))

# First admin barber, created when the barbers collection is empty
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin1234")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
