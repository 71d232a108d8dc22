from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):

    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    # Also the lifetime of the login session behind the token
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Invitations and teams
    INVITATION_EXPIRE_HOURS: int = 48
    INVITATION_CODE_MAX_ATTEMPTS: int = 10
    MAX_TEAMS_PER_ORGANIZATION: int = 50

    LOG_LEVEL: str = "INFO"

    # Email
    MAIL_SERVER: Optional[str] = None
    MAIL_PORT: int = 587
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: str = "noreply@helpdesk.local"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings():
    return Settings()
