import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/hackconnect.db")

# Tokens
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))

# Matching
SUGGESTION_LIMIT = 10

# Listing
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Teams
TEAM_MIN_MEMBERS = 2
TEAM_MAX_MEMBERS = 10
TEAM_DEFAULT_MAX_MEMBERS = 5

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
