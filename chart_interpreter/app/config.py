"""
Process configuration read from the environment (and .env via main.py).

Rationale:
- Read the environment once, in one place, and hand the values to the
  components that need them instead of letting them call os.getenv.
- Generation parameters are fixed constants, not configuration.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict

# Generation parameters sent with every request
TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 8192

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_PROMPT_PATH = "post-prompt.txt"


class Settings(BaseModel):
    # frozen so a Settings can key the generation client cache
    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    model_name: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    transport: str = "http"
    prompt_path: str = DEFAULT_PROMPT_PATH
    request_timeout: float = 30.0
    provider_timeout: float = 30.0
    host: str = "0.0.0.0"
    port: int = 9494
    log_level: str = "INFO"

    @property
    def effective_provider_timeout(self) -> float:
        """Outbound timeout, never longer than the per-request deadline."""
        return min(self.provider_timeout, self.request_timeout)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("GOOGLE_AI_API_KEY") or os.getenv("GEMINI_API_KEY") or "",
            model_name=os.getenv("GEMINI_MODEL") or DEFAULT_MODEL,
            api_base=(os.getenv("GEMINI_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            transport=(os.getenv("GENERATION_TRANSPORT") or "http").lower(),
            prompt_path=os.getenv("PROMPT_PATH") or DEFAULT_PROMPT_PATH,
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
            provider_timeout=float(os.getenv("PROVIDER_TIMEOUT", "30")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "9494")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
