"""Application configuration."""
from datetime import tzinfo
from typing import List, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

from boards.recommendation.engine import ScoringWeights


def clean_float_value(v: Any) -> float:
    """Clean float values from environment variables."""
    if isinstance(v, str):
        # Remove any comments and whitespace
        v = v.split('#')[0].strip()
    return float(v)


class Settings(BaseSettings):
    # Application settings
    PROJECT_NAME: str = "Boards Backend"
    API_PREFIX: str = "/api"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database settings
    DATABASE_URL: str = "sqlite:///./boards.db"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

    # Calendar arithmetic (tonight/weekend windows, time-of-day embedding signal)
    TIMEZONE: str = "UTC"

    # Recommendation weights
    W_VIBE: float = 2.0
    W_DISTANCE: float = 1.5
    W_TIME: float = 1.2
    W_POPULARITY: float = 1.0
    W_TRUST: float = 0.5
    W_EMBED: float = 1.0

    # Recommendation request defaults
    DEFAULT_RADIUS_KM: float = 10.0
    DEFAULT_MAX_RESULTS: int = 20
    MAX_RESULTS_CAP: int = 50

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator(
        'W_VIBE', 'W_DISTANCE', 'W_TIME', 'W_POPULARITY', 'W_TRUST', 'W_EMBED',
        mode='before'
    )
    @classmethod
    def clean_weight(cls, v: Any) -> float:
        return clean_float_value(v)

    @field_validator('TIMEZONE')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}") from None
        return v

    @field_validator('W_VIBE', 'W_DISTANCE', 'W_TIME', 'W_POPULARITY', 'W_TRUST', 'W_EMBED')
    @classmethod
    def validate_positive_weight(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Scoring weights must be positive")
        return v

    def local_timezone(self) -> tzinfo:
        """Zone used for calendar windows and the embedder's time-of-day signal."""
        return ZoneInfo(self.TIMEZONE)

    def scoring_weights(self) -> ScoringWeights:
        """Build the immutable weight set handed to the scoring engine."""
        return ScoringWeights(
            vibe=self.W_VIBE,
            distance=self.W_DISTANCE,
            time=self.W_TIME,
            popularity=self.W_POPULARITY,
            trust=self.W_TRUST,
            embed=self.W_EMBED,
        )


settings = Settings()
