"""
Error taxonomy for geonotify.

Request-path errors propagate to the HTTP boundary; dispatcher-path
errors are absorbed by the dispatcher loop and only logged.
"""

from typing import Optional


class GeoNotifyError(Exception):
    """모든 도메인 오류의 기반 클래스"""


class LocationValidationError(GeoNotifyError):
    """잘못된 입력 (사용자 ID, 사건 필드, 페이지 파라미터 등)"""


class IncidentNotFoundError(GeoNotifyError):
    """사건을 찾을 수 없음"""

    def __init__(self, incident_id: int):
        super().__init__(f"incident {incident_id} not found")
        self.incident_id = incident_id


class DependencyError(GeoNotifyError):
    """저장소 또는 큐에 접근할 수 없음"""


class EnqueueFailed(DependencyError):
    """발송 작업을 큐에 넣지 못함 (직렬화 포함)"""


class SerializationError(GeoNotifyError):
    """큐 원소를 역직렬화할 수 없음"""


class DeliveryError(GeoNotifyError):
    """웹훅 발송 실패"""

    def __init__(self, message: str, *, status: Optional[int] = None, retryable: bool = True):
        super().__init__(message)
        self.status = status
        self.retryable = retryable
