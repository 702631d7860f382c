"""
Observability 및 HTTP API 모듈 단위 테스트

이 모듈은 헬스 체크, 메트릭, 로깅과 도메인 HTTP 엔드포인트를 테스트합니다.
"""

import asyncio
import pytest
from fastapi.testclient import TestClient
from geonotify.container import build_services
from geonotify.observability.health import create_app
from geonotify.observability.logging_setup import InterceptHandler, get_logger, setup_logging_dev
from geonotify.observability import metrics


@pytest.fixture
def sync_services(sample_settings):
    """동기 테스트용 초기화된 서비스 묶음"""
    svc = build_services(sample_settings)
    asyncio.run(svc.init())
    return svc


@pytest.fixture
def client(sample_settings, sync_services):
    """테스트용 클라이언트"""
    return TestClient(create_app(sample_settings, sync_services))


class TestHealthEndpoints:
    """헬스 체크 엔드포인트 테스트"""

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "test-service"
        assert "timestamp" in data

    def test_system_health_ok(self, client):
        response = client.get("/api/v1/system/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "db": "ok", "queue": "ok"}

    def test_system_health_degraded(self, sample_settings, sync_services, tmp_path):
        """저장소 접근 불가 시 degraded (상태 코드는 200 유지)"""
        sync_services.queue.path = str(tmp_path / "missing" / "queue.db")
        client = TestClient(create_app(sample_settings, sync_services))

        response = client.get("/api/v1/system/health")

        assert response.status_code == 200
        assert response.json() == {"status": "degraded", "db": "ok", "queue": "error"}

    def test_ready_endpoint(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["db"] == "ok"

    def test_ready_not_ready(self, sample_settings, sync_services, tmp_path):
        sync_services.incidents.path = str(tmp_path / "missing" / "db.sqlite")
        client = TestClient(create_app(sample_settings, sync_services))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["db"] == "error"

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "location_checks_total" in response.text
        assert "webhook_queue_depth" in response.text

    def test_metrics_disabled(self, sample_settings, sync_services):
        sample_settings.observability.metrics_enabled = False
        client = TestClient(create_app(sample_settings, sync_services))

        response = client.get("/metrics")

        assert response.status_code == 503

    def test_info_endpoint(self, client):
        response = client.get("/info")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "test-service"
        assert data["version"] == "1.0.0"
        assert data["webhook_configured"] is False
        assert "uptime_seconds" in data

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == 200
        endpoints = response.json()["endpoints"]
        assert endpoints["location_check"] == "/api/v1/location/check"
        assert endpoints["incidents"] == "/api/v1/incidents"


class TestLocationCheckEndpoint:
    """위치 확인 엔드포인트 테스트"""

    def test_match(self, client):
        client.post("/api/v1/incidents", json={
            "title": "화재", "latitude": 52.0, "longitude": 52.0, "radius_m": 100
        })

        response = client.post("/api/v1/location/check", json={
            "user_id": 7, "latitude": 52.0, "longitude": 52.05
        })

        assert response.status_code == 200
        assert response.json() == {
            "user_id": 7, "latitude": 52.0, "longitude": 52.05, "locations_ids": [1]
        }

    def test_no_match_returns_empty_list(self, client):
        response = client.post("/api/v1/location/check", json={
            "user_id": 7, "latitude": 0.0, "longitude": 0.0
        })

        assert response.status_code == 200
        assert response.json()["locations_ids"] == []

    def test_invalid_user_id(self, client):
        response = client.post("/api/v1/location/check", json={
            "user_id": 0, "latitude": 0.0, "longitude": 0.0
        })

        assert response.status_code == 400
        assert "user_id" in response.json()["detail"]

    @pytest.mark.parametrize("body", [
        {"latitude": 1.0, "longitude": 1.0},
        {"user_id": "abc", "latitude": 1.0, "longitude": 1.0},
        {"user_id": 1, "latitude": "north", "longitude": 1.0},
    ])
    def test_malformed_body(self, client, body):
        response = client.post("/api/v1/location/check", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "invalid request body"

    def test_user_id_beyond_int64_rejected_before_side_effects(self, client, sync_services):
        """범위를 넘는 user_id는 큐/감사 기록 전에 400"""
        client.post("/api/v1/incidents", json={
            "title": "화재", "latitude": 52.0, "longitude": 52.0, "radius_m": 100
        })

        response = client.post("/api/v1/location/check", json={
            "user_id": 2**63, "latitude": 52.0, "longitude": 52.0
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "invalid request body"
        assert asyncio.run(sync_services.queue.size()) == 0
        assert asyncio.run(sync_services.audit.list_recent()) == []

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_coordinate_rejected(self, client, sync_services, literal):
        """JSON의 NaN/Infinity 리터럴은 400"""
        for body in (
            f'{{"user_id": 7, "latitude": {literal}, "longitude": 52.0}}',
            f'{{"user_id": 7, "latitude": 52.0, "longitude": {literal}}}',
        ):
            response = client.post(
                "/api/v1/location/check",
                content=body,
                headers={"Content-Type": "application/json"},
            )

            assert response.status_code == 400
            assert response.json()["detail"] == "invalid request body"
        assert asyncio.run(sync_services.audit.list_recent()) == []

    def test_store_failure_is_server_error(self, sample_settings, sync_services, tmp_path):
        sync_services.incidents.path = str(tmp_path / "missing" / "db.sqlite")
        client = TestClient(create_app(sample_settings, sync_services))

        response = client.post("/api/v1/location/check", json={
            "user_id": 7, "latitude": 0.0, "longitude": 0.0
        })

        assert response.status_code == 500
        assert response.json() == {"detail": "server error"}


class TestIncidentEndpoints:
    """사건 관리 엔드포인트 테스트"""

    def _create(self, client, **overrides):
        body = {"title": "화재", "latitude": 52.0, "longitude": 52.0, "radius_m": 100}
        body.update(overrides)
        return client.post("/api/v1/incidents", json=body)

    def test_create(self, client):
        response = self._create(client, description="3층")

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 1
        assert data["active"] is True
        assert data["description"] == "3층"

    def test_create_invalid(self, client):
        assert self._create(client, title="").status_code == 400
        assert self._create(client, radius_m=-5).status_code == 400

    def test_get_and_not_found(self, client):
        created = self._create(client).json()

        assert client.get(f"/api/v1/incidents/{created['id']}").json()["title"] == "화재"
        assert client.get("/api/v1/incidents/999").status_code == 404
        assert client.get("/api/v1/incidents/0").status_code == 400

    def test_list(self, client):
        for i in range(3):
            self._create(client, title=f"t{i}")

        response = client.get("/api/v1/incidents", params={"page": 1, "page_size": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["page"] == 1
        assert data["page_size"] == 2
        assert [item["title"] for item in data["items"]] == ["t2", "t1"]

    def test_list_default_page_size(self, client):
        data = client.get("/api/v1/incidents").json()
        assert data["page"] == 1
        assert data["page_size"] == 20
        assert data["items"] == []

    def test_list_invalid_page(self, client):
        assert client.get("/api/v1/incidents", params={"page": 0}).status_code == 400

    def test_update(self, client):
        created = self._create(client).json()

        response = client.put(f"/api/v1/incidents/{created['id']}", json={
            "title": "진화", "latitude": 1.0, "longitude": 1.0, "radius_m": 2, "active": False
        })

        assert response.status_code == 200
        assert response.json()["title"] == "진화"
        assert response.json()["active"] is False
        assert client.put("/api/v1/incidents/999", json={
            "title": "x", "latitude": 1.0, "longitude": 1.0
        }).status_code == 404

    def test_update_without_active_keeps_deactivated(self, client):
        """active를 생략한 수정은 비활성 사건을 다시 활성화하지 않음"""
        created = self._create(client).json()
        client.delete(f"/api/v1/incidents/{created['id']}")

        response = client.put(f"/api/v1/incidents/{created['id']}", json={
            "title": "재조사", "latitude": 52.0, "longitude": 52.0, "radius_m": 100
        })

        assert response.status_code == 200
        assert response.json()["title"] == "재조사"
        assert response.json()["active"] is False
        assert client.post("/api/v1/location/check", json={
            "user_id": 7, "latitude": 52.0, "longitude": 52.0
        }).json()["locations_ids"] == []

    def test_create_non_finite_rejected(self, client):
        response = client.post(
            "/api/v1/incidents",
            content='{"title": "화재", "latitude": 52.0, "longitude": 52.0, "radius_m": Infinity}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert client.get("/api/v1/incidents").json()["items"] == []

    def test_deactivate(self, client):
        created = self._create(client).json()

        response = client.delete(f"/api/v1/incidents/{created['id']}")

        assert response.status_code == 204
        assert client.get(f"/api/v1/incidents/{created['id']}").json()["active"] is False
        assert client.delete("/api/v1/incidents/999").status_code == 404

    def test_stats(self, client):
        for user_id in (1, 2, 2):
            client.post("/api/v1/location/check", json={
                "user_id": user_id, "latitude": 0.0, "longitude": 0.0
            })

        response = client.get("/api/v1/incidents/stats")

        assert response.status_code == 200
        assert response.json() == {"user_count": 2}


class TestMetrics:
    """메트릭 테스트"""

    def test_location_check_counter(self, client):
        before = metrics.location_checks.labels(result="clear")._value.get()

        client.post("/api/v1/location/check", json={"user_id": 1, "latitude": 0.0, "longitude": 0.0})

        assert metrics.location_checks.labels(result="clear")._value.get() == before + 1


class TestLogging:
    """로깅 테스트"""

    def test_setup_logging_dev(self):
        setup_logging_dev("DEBUG")
        log = get_logger("test")
        log.info("로그 테스트")

    def test_intercept_handler(self):
        import logging
        handler = InterceptHandler()
        record = logging.LogRecord("uvicorn", logging.INFO, __file__, 1, "message", None, None)
        handler.emit(record)
