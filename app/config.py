"""
Application configuration
"""
import logging
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Game and server settings from environment variables"""

    # Storage
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "dohyo_basho.db")

    # Bout timing
    MOVE_TIMEOUT_MS: int = int(os.getenv("MOVE_TIMEOUT_MS", "30000"))  # 30 seconds per phase

    # Tournament rules
    WINS_NEEDED_FOR_CUP: int = int(os.getenv("WINS_NEEDED_FOR_CUP", "3"))
    TOURNAMENT_SIZE: int = int(os.getenv("TOURNAMENT_SIZE", "8"))

    # "free": 10 points on top of 5 per stat, "fixed": stats sum to exactly 20
    BUILD_MODE: str = os.getenv("BUILD_MODE", "free")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Comma-separated extra CORS origins
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "")


settings = Settings()


def configure_logging(level: str = None):
    """Set up root logging once for the API and CLI entry points"""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
