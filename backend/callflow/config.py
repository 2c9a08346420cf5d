import os
import pathlib
import logging
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = pathlib.Path(__file__).parent.parent.parent


class Settings:
    """Process-wide configuration read from the environment once at startup."""

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        retell_api_key: str = "",
        retell_phone_number: str = "",
        vapi_api_key: str = "",
        provider_timeout_seconds: float = 30.0,
        provider_read_attempts: int = 3,
        log_level: str = "INFO",
    ) -> None:
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.retell_api_key = retell_api_key
        self.retell_phone_number = retell_phone_number
        self.vapi_api_key = vapi_api_key
        self.provider_timeout_seconds = provider_timeout_seconds
        self.provider_read_attempts = max(1, provider_read_attempts)
        self.log_level = log_level

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
            retell_api_key=(os.getenv("RETELL_API_KEY") or "").strip(),
            retell_phone_number=(os.getenv("RETELL_PHONE_NUMBER") or "").strip(),
            vapi_api_key=(os.getenv("VAPI_API_KEY") or "").strip(),
            provider_timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30")),
            provider_read_attempts=int(os.getenv("PROVIDER_READ_ATTEMPTS", "3")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def load_settings() -> Settings:
    # Project root .env wins over the working directory one
    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded .env from: {env_path}")
    else:
        load_dotenv()
    return Settings.from_env()
