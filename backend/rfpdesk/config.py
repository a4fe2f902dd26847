# config.py
# Environment-driven settings (.env is loaded if present)

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

PLACEHOLDER_OPENAI_KEY = "sk-your-openai-api-key-here"
DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseModel):
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    llm_timeout: float = 10.0

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    email_user: Optional[str] = None
    email_pass: Optional[str] = None

    data_dir: Path = DEFAULT_DATA_DIR
    frontend_url: str = "*"
    log_level: str = "INFO"

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key) and self.openai_api_key != PLACEHOLDER_OPENAI_KEY

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        env = os.environ
        return cls(
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_model=env.get("OPENAI_MODEL", "gpt-4o-mini"),
            llm_timeout=float(env.get("LLM_TIMEOUT", "10")),
            smtp_host=env.get("SMTP_HOST", "smtp.gmail.com"),
            smtp_port=int(env.get("SMTP_PORT", "587")),
            imap_host=env.get("EMAIL_HOST", "imap.gmail.com"),
            imap_port=int(env.get("EMAIL_PORT", "993")),
            email_user=env.get("EMAIL_USER") or None,
            email_pass=env.get("EMAIL_PASS") or None,
            data_dir=Path(env.get("RFPDESK_DATA_DIR", str(DEFAULT_DATA_DIR))),
            frontend_url=env.get("FRONTEND_URL", "*"),
            log_level=env.get("LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
