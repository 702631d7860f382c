# geonotify/main.py
import os, asyncio, signal
from typing import List, Optional
import uvicorn
from geonotify.settings import Settings
from geonotify.container import Services, build_services
from geonotify.observability.health import create_app
from geonotify.observability.logging_setup import setup_logging_dev, get_logger
from geonotify.adapters.webhook.client import WebhookClient
from geonotify.dispatch.webhook_dispatcher import WebhookDispatcher

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 저장소
    s.storage.db_path = os.getenv("DATABASE_PATH", s.storage.db_path)
    s.storage.busy_timeout_sec = float(os.getenv("DB_BUSY_TIMEOUT_SEC", s.storage.busy_timeout_sec))

    # 큐 / 신뢰성
    s.reliability.queue_path = os.getenv("QUEUE_PATH", s.reliability.queue_path)
    s.reliability.queue_name = os.getenv("QUEUE_NAME", s.reliability.queue_name)
    s.reliability.dequeue_timeout_sec = float(os.getenv("DEQUEUE_TIMEOUT_SEC", s.reliability.dequeue_timeout_sec))
    s.reliability.queue_poll_interval_sec = float(os.getenv("QUEUE_POLL_INTERVAL_SEC", s.reliability.queue_poll_interval_sec))
    s.reliability.max_attempts = int(os.getenv("WEBHOOK_MAX_ATTEMPTS", s.reliability.max_attempts))
    s.reliability.backoff_initial_sec = float(os.getenv("WEBHOOK_BACKOFF_INITIAL_SEC", s.reliability.backoff_initial_sec))
    s.reliability.backoff_max_sec = float(os.getenv("WEBHOOK_BACKOFF_MAX_SEC", s.reliability.backoff_max_sec))

    # 웹훅
    s.webhook.url = os.getenv("WEBHOOK_URL", s.webhook.url)
    s.webhook.timeout_sec = float(os.getenv("WEBHOOK_TIMEOUT_SEC", s.webhook.timeout_sec))
    s.webhook.workers = int(os.getenv("WEBHOOK_WORKERS", s.webhook.workers))

    # HTTP API
    s.api.host = os.getenv("HTTP_HOST", s.api.host)
    s.api.port = int(os.getenv("HTTP_PORT", s.api.port))
    s.api.stats_window_minutes = int(os.getenv("STATS_WINDOW_MINUTES", s.api.stats_window_minutes))

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)

    return s

def build_dispatchers(s: Settings, services: Services, client: WebhookClient) -> List[WebhookDispatcher]:
    return [
        WebhookDispatcher(
            services.queue,
            client,
            name=f"dispatcher-{i + 1}",
            dequeue_timeout=s.reliability.dequeue_timeout_sec,
            max_attempts=s.reliability.max_attempts,
            backoff_initial=s.reliability.backoff_initial_sec,
            backoff_max=s.reliability.backoff_max_sec,
        )
        for i in range(max(0, s.webhook.workers))
    ]

def build_http_server(s: Settings, services: Services) -> uvicorn.Server:
    app = create_app(s, services)
    return uvicorn.Server(
        uvicorn.Config(app, host=s.api.host, port=s.api.port, log_level=s.observability.log_level.lower())
    )

async def main():
    s = build_settings()
    setup_logging_dev(s.observability.log_level)
    log = get_logger()
    log.info("설정 로드 완료")

    services = build_services(s)
    await services.init()
    log.info("저장소 초기화 완료")

    server = build_http_server(s, services)
    http_task = asyncio.create_task(server.serve())
    log.info(f"HTTP 서버 시작됨 {s.api.host}:{s.api.port}")

    client: Optional[WebhookClient] = None
    dispatch_tasks: List[asyncio.Task] = []
    if s.webhook.url:
        client = WebhookClient(s.webhook.url, timeout=s.webhook.timeout_sec)
        await client.open()
        for d in build_dispatchers(s, services, client):
            dispatch_tasks.append(asyncio.create_task(d.start(), name=d.name))
        log.info(f"웹훅 디스패처 {len(dispatch_tasks)}개 시작")
    else:
        log.warning("WEBHOOK_URL 미설정, 디스패처 없이 시작 (작업은 큐에 보존됨)")

    stop = asyncio.Future()
    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass
    except RuntimeError: pass

    await asyncio.wait([stop, http_task], return_when=asyncio.FIRST_COMPLETED)
    log.info("종료 신호 수신")

    for t in dispatch_tasks:
        t.cancel()
    await asyncio.gather(*dispatch_tasks, return_exceptions=True)
    if client:
        await client.close()

    server.should_exit = True
    await asyncio.gather(http_task, return_exceptions=True)
    log.info("서비스 종료 완료")

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
