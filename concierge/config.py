import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load the .env that sits at the repo root (next to the concierge/ package)
ROOT_DIR = Path(__file__).resolve().parents[1]
ENV_PATH = ROOT_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False) # real env vars win over .env

DEFAULT_WEBFLOW_SITE_ID = "6005cd6988e875868452d33d"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
DEFAULT_PUBLIC_DIR = ROOT_DIR / "public"


def _optional(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    webflow_api_token: Optional[str] = None
    webflow_site_id: str = DEFAULT_WEBFLOW_SITE_ID
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    anthropic_max_tokens: int = 1024
    mapbox_token: str = ""
    cache_ttl_seconds: int = 30 * 60
    http_timeout_seconds: float = 30.0
    public_dir: Path = DEFAULT_PUBLIC_DIR
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info" # debug, info, warning, error, critical

    @property
    def has_webflow(self) -> bool:
        return bool(self.webflow_api_token)

    @property
    def has_claude(self) -> bool:
        return bool(self.anthropic_api_key)


def load_settings() -> Settings:
    """
    Read settings from the environment. Missing credentials are allowed:
    the CMS cache stays empty without WEBFLOW_API_TOKEN and chat answers 500
    without ANTHROPIC_API_KEY.
    """
    return Settings(
        webflow_api_token=_optional("WEBFLOW_API_TOKEN"),
        webflow_site_id=_optional("WEBFLOW_SITE_ID") or DEFAULT_WEBFLOW_SITE_ID,
        anthropic_api_key=_optional("ANTHROPIC_API_KEY"),
        anthropic_model=_optional("ANTHROPIC_MODEL") or DEFAULT_ANTHROPIC_MODEL,
        anthropic_max_tokens=int(os.getenv("ANTHROPIC_MAX_TOKENS", "1024")),
        mapbox_token=_optional("MAPBOX_TOKEN") or "",
        cache_ttl_seconds=int(os.getenv("CMS_CACHE_TTL_SECONDS", str(30 * 60))),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
        public_dir=Path(_optional("PUBLIC_DIR") or DEFAULT_PUBLIC_DIR),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
