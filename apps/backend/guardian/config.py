from typing import List, Literal, Optional
from pathlib import Path
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

CHANNELS = ("instagram", "whatsapp")

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    ENV: Literal["development", "staging", "production"] = Field("development")
    HOST: str = Field("0.0.0.0")
    PORT: int = Field(3000)
    LOG_LEVEL: str = Field("INFO")

    # Storage
    DATABASE_URL: str = Field("sqlite:///./guardian.db")

    # Contact policy
    QUOTA_TIMEZONE: str = Field("UTC")
    DAILY_CAP_INSTAGRAM: Optional[int] = Field(30)   # 30-40 is the safe zone
    DAILY_CAP_WHATSAPP: Optional[int] = None         # uncapped unless configured
    FOLLOWUP_COOLDOWN_HOURS: float = Field(24)
    STATUS_OVERWRITE_POLICY: Literal["overwrite", "preserve", "reject"] = Field("preserve")
    PROTECTED_STATUSES: List[str] = Field(default=["stop", "dnd", "responded"])
    HOT_LEAD_SCORE: int = Field(6)

    # Text completion
    OPENAI_API_KEY: str = Field("dummy")
    OPENAI_MODEL: str = Field(default="gpt-4o-mini")
    OPENAI_TEMPERATURE: float = Field(0.3)
    OPENAI_MAX_TOKENS: int = Field(300)
    OPENAI_TIMEOUT_SECONDS: float = Field(20.0)
    OPENAI_MAX_RETRIES: int = Field(3)

    @field_validator("DAILY_CAP_INSTAGRAM", "DAILY_CAP_WHATSAPP", mode="after")
    @classmethod
    def non_negative_cap(cls, v):
        if v is not None and v < 0:
            raise ValueError("daily caps must be >= 0")
        return v

    @field_validator("OPENAI_MAX_RETRIES", mode="after")
    @classmethod
    def non_negative_retries(cls, v):
        return max(0, v)

    def daily_cap(self, channel: str) -> Optional[int]:
        """Configured daily cap for a channel, None when uncapped."""
        return {
            "instagram": self.DAILY_CAP_INSTAGRAM,
            "whatsapp": self.DAILY_CAP_WHATSAPP,
        }.get(channel)

    def cap_label(self, channel: str) -> str:
        """Cap as shown in logs; a cap of 0 is a real cap, not "uncapped"."""
        cap = self.daily_cap(channel)
        return "uncapped" if cap is None else str(cap)

try:
    settings = Settings()
except ValidationError as e:
    print("❌ Env validation failed:\n", e.json(indent=2))
    raise
