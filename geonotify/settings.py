# geonotify/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field

class Storage(BaseModel):
    db_path: str = "/data/geonotify.db"
    busy_timeout_sec: float = 5.0

class Reliability(BaseModel):
    queue_path: str = "/data/queue.db"
    queue_name: str = "webhook_queue"
    dequeue_timeout_sec: float = 5.0
    queue_poll_interval_sec: float = 0.2
    max_attempts: int = 5
    backoff_initial_sec: float = 1.0
    backoff_max_sec: float = 60.0

class Webhook(BaseModel):
    url: str = ""
    timeout_sec: float = 10.0
    workers: int = 1

class Api(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    stats_window_minutes: int = 5
    default_page_size: int = 20

class Observability(BaseModel):
    metrics_enabled: bool = True
    service_name: str = "geonotify"
    build_version: str = "0.1.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    storage: Storage = Field(default_factory=Storage)
    reliability: Reliability = Field(default_factory=Reliability)
    webhook: Webhook = Field(default_factory=Webhook)
    api: Api = Field(default_factory=Api)
    observability: Observability = Field(default_factory=Observability)
