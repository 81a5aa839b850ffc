from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHIPTRACK_")

    database_url: str = "sqlite+pysqlite:///:memory:"
    events_table: str = "shipment_events"
    event_store: Literal["sql", "jsonl"] = "sql"
    event_log_path: Path = Path(__file__).resolve().parents[1] / "event_log.jsonl"
    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
