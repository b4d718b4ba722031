import os
from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field

REQUIRED_ENV = ("PORT", "DATABASE_URL", "DATABASE_NAME", "JWT_SECRET")


class ConfigError(RuntimeError):
    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Missing environment variables: {', '.join(missing)}")


class Settings(BaseModel):
    port: int
    database_url: str
    database_name: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expire_seconds: int = Field(100000, gt=0)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build settings from the environment, refusing to continue without the required values."""
    missing = [name for name in REQUIRED_ENV if not os.getenv(name)]
    if missing:
        raise ConfigError(missing)
    return Settings(
        port=int(os.environ["PORT"]),
        database_url=os.environ["DATABASE_URL"],
        database_name=os.environ["DATABASE_NAME"],
        jwt_secret=os.environ["JWT_SECRET"],
        jwt_expire_seconds=int(os.getenv("JWT_EXPIRE_SECONDS", 100000)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
