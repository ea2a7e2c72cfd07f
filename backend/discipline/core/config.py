from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "DISCIPLINE OS"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True

    # Database
    DATABASE_URL: str = "sqlite:///./discipline.db"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 60

    # Day lifecycle
    DAY_END_HOUR: int = 23

    # Consequences
    REWARD_EXPIRY_DAYS: int = 7
    ESCALATION_WINDOW_DAYS: int = 7
    ESCALATION_PENALTY_COUNT: int = 3
    PENALTY_RANDOM_SEED: Optional[int] = None

    # Analytics
    HEATMAP_DEFAULT_DAYS: int = 90

    class Config:
        # Search .env in current dir AND backend/ dir
        env_file = (".env", "backend/.env", "../.env")
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
