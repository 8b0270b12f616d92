"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
STATE_DB = DATA_DIR / "state.db"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)


def _bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    # AGR Cloud portal
    BASE_URL: str = os.getenv("BASE_URL", "https://adm.agrcloud.com.ar")
    AGR_EMAIL: str | None = os.getenv("AGR_EMAIL")
    AGR_PASSWORD: str | None = os.getenv("AGR_PASSWORD")

    # Browser
    HEADLESS: bool = _bool("HEADLESS", "true")
    CHROME_PATH: str | None = os.getenv("CHROME_PATH") or os.getenv("PUPPETEER_EXECUTABLE_PATH")
    NAV_TIMEOUT: int = int(os.getenv("NAV_TIMEOUT", "240"))  # seconds
    ROWS_TIMEOUT: int = int(os.getenv("ROWS_TIMEOUT", "15"))
    LOGIN_TIMEOUT: int = int(os.getenv("LOGIN_TIMEOUT", "30"))
    NAV_RETRIES: int = int(os.getenv("NAV_RETRIES", "2"))
    NAV_RETRY_DELAY: float = float(os.getenv("NAV_RETRY_DELAY", "1.5"))

    # Scraper
    MOVEMENTS_PAGE_SIZE: int = int(os.getenv("MOVEMENTS_PAGE_SIZE", "20"))
    ITEMS_PAGE_SIZE: int = int(os.getenv("ITEMS_PAGE_SIZE", "50"))
    MAX_PAGES: int = int(os.getenv("MAX_PAGES", "500"))
    BATCH_SIZE: int = int(os.getenv("BATCH_SIZE", "500"))

    # Jobs
    SCRAPER_TIMEOUT: int = int(os.getenv("SCRAPER_TIMEOUT", str(25 * 60)))  # seconds
    RUN_ALL_TIMEOUT: int = int(os.getenv("RUN_ALL_TIMEOUT", str(60 * 60)))
    TIMEZONE: str | None = os.getenv("TIMEZONE")
    CRON_TZ: str | None = os.getenv("CRON_TZ")
    SCHEDULER_ENABLED: bool = _bool("SCHEDULER_ENABLED", "true")

    # Supabase
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str | None = os.getenv("SUPABASE_SERVICE_ROLE")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API
    API_KEY: str | None = os.getenv("API_KEY")
    PORT: int = int(os.getenv("PORT", "8080"))

    @classmethod
    def validate(cls, require_supabase: bool = True) -> None:
        """Validate required configuration."""
        errors = []
        if require_supabase:
            if not cls.SUPABASE_URL:
                errors.append("SUPABASE_URL is required")
            if not cls.SUPABASE_SERVICE_ROLE:
                errors.append("SUPABASE_SERVICE_ROLE is required")
        if not cls.AGR_EMAIL or not cls.AGR_PASSWORD:
            errors.append("AGR_EMAIL and AGR_PASSWORD are required")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
