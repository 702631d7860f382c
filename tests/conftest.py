"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from geonotify.container import build_services
from geonotify.core.models import DeliveryTask, Incident, WebhookPayload
from geonotify.settings import Settings


@pytest.fixture
def temp_db_path(tmp_path):
    """임시 데이터베이스 파일 경로"""
    return str(tmp_path / "geonotify.db")


@pytest.fixture
def temp_queue_path(tmp_path):
    """임시 큐 데이터베이스 파일 경로"""
    return str(tmp_path / "queue.db")


@pytest.fixture
def sample_settings(temp_db_path, temp_queue_path):
    """테스트용 설정"""
    settings = Settings()
    settings.storage.db_path = temp_db_path
    settings.reliability.queue_path = temp_queue_path
    settings.reliability.queue_poll_interval_sec = 0.01
    settings.reliability.dequeue_timeout_sec = 0.1
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    return settings


@pytest.fixture
async def services(sample_settings):
    """초기화된 실제 SQLite 서비스 묶음"""
    svc = build_services(sample_settings)
    await svc.init()
    return svc


@pytest.fixture
def sample_incidents():
    """테스트용 사건 목록 (생성 순서)"""
    return [
        Incident(id=1, title="화재", latitude=52.0, longitude=52.0, radius_m=100),
        Incident(id=2, title="침수", latitude=10.0, longitude=10.0, radius_m=0.5),
        Incident(id=3, title="종료된 사건", latitude=52.0, longitude=52.0, radius_m=100, active=False),
    ]


@pytest.fixture
def sample_payload():
    """테스트용 웹훅 페이로드"""
    return WebhookPayload(
        user_id=7,
        latitude=52.0,
        longitude=52.05,
        locations_ids=[1],
        checked_at=datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_task(sample_payload):
    """테스트용 발송 작업"""
    return DeliveryTask(payload=sample_payload)


@pytest.fixture
def mock_dependencies():
    """테스트용 의존성 목업"""
    return {
        'incidents': AsyncMock(),
        'queue': AsyncMock(),
        'audit': AsyncMock(),
    }


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 느린 테스트 마커 추가
        if "performance" in item.name or "stress" in item.name:
            item.add_marker(pytest.mark.slow)
        
        # 통합 테스트 마커 추가
        if "integration" in item.name or "end_to_end" in item.name:
            item.add_marker(pytest.mark.integration)
