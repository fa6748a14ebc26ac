"""Application configuration"""

import enum
import json
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


class DuplicatePolicy(str, enum.Enum):
    """How to treat several mirror issues sharing one identity label"""
    FIRST = "first"
    SKIP = "skip"


class Settings(BaseSettings):
    """Application settings"""

    # GitHub
    github_token: str | None = None

    # Mirror (directory) repository every partner issue is copied into
    mirror_owner: str = "ubiquity"
    mirror_repo: str = "devpool-directory"

    # JSON file holding {"urls": [...]} of partner repositories
    partners_file: str = "projects.json"

    # Database
    database_url: str = "sqlite:///./devpool_sync.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Sync
    sync_interval_minutes: int = 60
    scheduler_enabled: bool = True
    # What to do when two mirror issues carry the same identity label:
    # "first" keeps the first match, "skip" leaves the partner issue alone.
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST
    assignee_workers: int = 4

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


def load_partner_urls(path: str | Path) -> List[str]:
    """Load the ordered list of partner repository URLs from a JSON file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    urls = data.get("urls") if isinstance(data, dict) else data
    if not isinstance(urls, list):
        raise ValueError(f"{path}: expected a list of URLs under 'urls'")
    return [str(u).strip() for u in urls if str(u).strip()]


settings = Settings()
