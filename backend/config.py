# config.py
import os
import logging

from dotenv import load_dotenv

load_dotenv()

APP_NAME = "Elementary Quiz Generator API"
APP_DESCRIPTION = "Crossword and MCQ storage with per-student leaderboards"
APP_VERSION = "1.0.0"

PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Seconds between reconnect attempts, and between liveness pings (0 disables the watchdog)
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", "5"))
DB_PING_INTERVAL = float(os.getenv("DB_PING_INTERVAL", "30"))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]

REQUIRED_DB_VARS = ("MYSQLHOST", "MYSQLUSER", "MYSQLPASSWORD")


def describe_database() -> dict:
    """Connection target for startup logs. Never includes the password."""
    return {
        "host": os.getenv("MYSQLHOST", "localhost"),
        "user": os.getenv("MYSQLUSER", "website_user"),
        "database": os.getenv("MYSQLDATABASE", "crossword_db"),
        "port": int(os.getenv("MYSQLPORT", "3306")),
    }


def missing_database_vars() -> list[str]:
    if os.getenv("DATABASE_URL"):
        return []
    return [name for name in REQUIRED_DB_VARS if not os.getenv(name)]


def database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    target = describe_database()
    password = os.getenv("MYSQLPASSWORD", "")
    return (
        f"mysql+pymysql://{target['user']}:{password}"
        f"@{target['host']}:{target['port']}/{target['database']}"
    )


def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    logger = logging.getLogger("quizstore")
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(_h)
    logger.setLevel(getattr(logging, level, logging.INFO))
    return logger
