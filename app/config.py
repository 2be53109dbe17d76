import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./lostfound.db")
        self.jwt_secret = os.getenv("JWT_SECRET", "your_really_long_secret_key")
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Approving one claim rejects the other pending claims on the same item
        self.auto_reject_sibling_claims = _env_bool("AUTO_REJECT_SIBLING_CLAIMS", False)

        self.side_effect_max_attempts = max(1, int(os.getenv("SIDE_EFFECT_MAX_ATTEMPTS", "3")))


@lru_cache
def get_settings() -> Settings:
    return Settings()
