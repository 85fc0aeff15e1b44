"""
Company Matcher - Configuration

Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Catalog store
    DATABASE_URL: str = Field(
        default=f"sqlite:///{PROJECT_ROOT}/data/company_matcher.db"
    )

    # Application
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Data files
    PROFILES_PATH: str = Field(default="out/profiles.json")
    SCRAPED_PATH: str = Field(default="out/scraped.json")
    NAMES_INPUT: str = Field(default="data/sample-websites-company-names.csv")
    SAMPLE_INPUT: str = Field(default="data/API-input-sample.csv")

    # Matching limits
    MAX_CANDIDATES: int = Field(default=2000)
    MAX_BRUTE_FORCE: int = Field(default=5000)

    # Text search fuzziness
    TEXT_FUZZINESS: float = Field(default=0.2)
    FUZZY_STRICT_THRESHOLD: float = Field(default=0.3)
    FUZZY_LOOSE_THRESHOLD: float = Field(default=0.6)

    # Result pages
    DEFAULT_PER_PAGE: int = Field(default=10)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
