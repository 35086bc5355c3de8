from dotenv import load_dotenv
from pydantic import BaseModel, field_validator
import os

from .logic import STRATEGIES

_TRUE = ("1", "true", "yes", "on")


class Settings(BaseModel):
    database_url: str = "sqlite:///data/app.db"
    jwt_secret: str = "devsecret"
    jwt_expire_hours: int = 8
    due_date_strategy: str = "plan"
    cors_origins: list[str] = ["*"]
    reset_token_minutes: int = 60
    allow_open_registration: bool = False
    reminders_enabled: bool = False
    reminder_cron: str = "0 9 * * *"
    log_level: str = "INFO"

    @field_validator("due_date_strategy")
    @classmethod
    def _known_strategy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in STRATEGIES:
            raise ValueError(f"DUE_DATE_STRATEGY must be one of {', '.join(STRATEGIES)}")
        return v

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        env = os.environ
        origins = env.get("CORS_ORIGINS", "*")
        return cls(
            database_url=env.get("DATABASE_URL", "sqlite:///data/app.db"),
            jwt_secret=env.get("JWT_SECRET", "devsecret"),
            jwt_expire_hours=int(env.get("JWT_EXPIRE_HOURS", "8")),
            due_date_strategy=env.get("DUE_DATE_STRATEGY", "plan"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            reset_token_minutes=int(env.get("RESET_TOKEN_MINUTES", "60")),
            allow_open_registration=env.get("ALLOW_OPEN_REGISTRATION", "false").strip().lower() in _TRUE,
            reminders_enabled=env.get("REMINDERS_ENABLED", "false").strip().lower() in _TRUE,
            reminder_cron=env.get("REMINDER_CRON", "0 9 * * *"),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
