"""
Application configuration settings.
"""
import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if it exists (for local development)
env_file = BASE_DIR / ".env"
if env_file.exists():
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip())

APP_NAME = "15th Finance Commission Portal"

# Database - Support both SQLite (local) and PostgreSQL (production)
DATABASE_URL = os.getenv("DATABASE_URL", "")
DATABASE_PATH = Path(os.getenv("DATABASE_PATH", str(BASE_DIR / "adp_works.db")))

# Determine if using PostgreSQL
USE_POSTGRES = DATABASE_URL.startswith("postgres")

# Render.com uses postgres:// but psycopg2 needs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Security
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE", str(60 * 60 * 24 * 7)))  # 7 days in seconds

# Budget ceiling for one engineer batch (rupees)
TOTAL_BUDGET = int(os.getenv("TOTAL_BUDGET", "1000000"))

# Storage - "database" (large quota) or "json" (small quota file)
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "database")
STORAGE_FILE = Path(os.getenv("STORAGE_FILE", str(BASE_DIR / "forwarded_submissions.json")))
STORAGE_MAX_BYTES = int(os.getenv("STORAGE_MAX_BYTES", str(int(9.5 * 1024 * 1024))))
STORAGE_TTL_SECONDS = int(os.getenv("STORAGE_TTL_SECONDS", str(24 * 60 * 60)))

# Work sectors
SECTORS = [
    "SWM/LQM",
    "Water Supply",
    "UGD Drains",
    "CC Drains",
    "CC Roads",
    "BT Roads",
    "Construction of Slaughter Houses",
    "Development of Parks",
    "Protection of Open Spaces",
    "Burial grounds & Crematoriums",
    "Repairs to Municipal Schools",
    "Urban Health Clinics",
    "Greenery",
    "Street Lighting",
    "CC Charges",
    "EESL Dues",
    "ABC & ARV Activities",
    "Solar Panels",
    "CB",
    "IEC",
]

# Departments a forward may be routed through
DEPARTMENTS = [
    "Public Health",
    "Engineering",
    "Administration",
]

# Default department per receiving section
DEFAULT_DEPARTMENT = {
    "EEPH": "Public Health",
    "SEPH": "Public Health",
    "ENCPH": "Engineering",
    "CDMA": "Administration",
}

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
