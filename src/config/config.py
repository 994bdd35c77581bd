import os
from dataclasses import dataclass

from utils.load_secrets import load_env_vars


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str
    service_account_json: str
    cache_ttl_seconds: int
    write_batch_threshold: int
    log_to_sheet: bool
    timezone: str
    sheet_schema_path: str

    def __init__(self):
        load_env_vars()
        object.__setattr__(
            self, "spreadsheet_id", os.getenv("SPREADSHEET_ID", "").strip()
        )
        object.__setattr__(
            self,
            "service_account_json",
            os.getenv("SERVICE_ACCOUNT_JSON", "").strip(),
        )
        object.__setattr__(
            self,
            "cache_ttl_seconds",
            int(os.getenv("CACHE_TTL_SECONDS", "300").strip()),
        )
        object.__setattr__(
            self,
            "write_batch_threshold",
            int(os.getenv("WRITE_BATCH_THRESHOLD", "50").strip()),
        )
        object.__setattr__(self, "log_to_sheet", _env_flag("LOG_TO_SHEET", "true"))
        object.__setattr__(
            self, "timezone", os.getenv("TIMEZONE", "America/Chicago").strip()
        )
        object.__setattr__(
            self, "sheet_schema_path", os.getenv("SHEET_SCHEMA_PATH", "").strip()
        )


SETTINGS = Settings()
