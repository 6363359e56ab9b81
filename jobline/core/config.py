from typing import List, Union
from pathlib import Path
from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Jobline Case Management API"
    API_V1_STR: str = "/api/v1"

    # Database
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8
    FRONTEND_URL: str = "http://localhost:5173"

    # Client status page links (bytes of entropy fed to token_urlsafe)
    SHARE_LINK_BYTES: int = 18

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text" # "text" or "json"

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("SHARE_LINK_BYTES")
    def share_link_has_enough_entropy(cls, v: int) -> int:
        # token_urlsafe yields ~1.3 chars per byte; 12 bytes -> 16 chars
        if v < 12:
            raise ValueError("SHARE_LINK_BYTES must be at least 12")
        return v

    # Use .env file if it exists, otherwise rely on environment variables
    _env_file = Path(__file__).resolve().parent.parent.parent / ".env"
    model_config = SettingsConfigDict(
        env_file=_env_file if _env_file.exists() else None,
        case_sensitive=True,
        extra="ignore"
    )

settings = Settings()
