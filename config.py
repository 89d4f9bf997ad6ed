import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_JWT_SECRET = "dev_jwt_secret_change_me"


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, built once at startup and handed to create_app().

    Nothing else in the application reads the environment.
    """
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = 7
    database_url: str = "sqlite:///./tasks.db"
    bcrypt_rounds: int = 10
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    allowed_hosts: List[str] = field(default_factory=lambda: ["localhost", "127.0.0.1", "0.0.0.0"])
    log_level: str = "INFO"
    log_file: Optional[str] = None
    port: int = 8000

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


def load_settings() -> Settings:
    """Read settings from the environment (and a local .env file, if present)."""
    load_dotenv()

    return Settings(
        # Fallback für lokale Entwicklung, in Produktion JWT_SECRET setzen!
        jwt_secret=os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        token_ttl_days=int(os.getenv("TOKEN_TTL_DAYS", "7")),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./tasks.db"),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
        cors_origins=_split(os.getenv("CLIENT_ORIGIN", "http://localhost:5173")),
        allowed_hosts=_split(os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,0.0.0.0")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
        port=int(os.getenv("PORT", "8000")),
    )
