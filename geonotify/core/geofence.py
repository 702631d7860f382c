"""
Geofence matching for geonotify.

A point is inside an incident zone when the sum of the absolute
latitude and longitude differences to the incident center is less
than or equal to the incident radius. The radius is compared in raw
coordinate units, so zones are diamonds rather than circles.
"""

from typing import Iterable, List, Tuple
from geonotify.core.models import Incident


def l1_offset(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    두 좌표 간 |Δlat| + |Δlon| 값을 계산합니다.

    Args:
        lat1: 첫 번째 지점의 위도
        lon1: 첫 번째 지점의 경도
        lat2: 두 번째 지점의 위도
        lon2: 두 번째 지점의 경도

    Returns:
        좌표 차이 절댓값의 합 (도 단위)
    """
    return abs(lat1 - lat2) + abs(lon1 - lon2)


def is_inside(point: Tuple[float, float], incident: Incident) -> bool:
    """점이 사건 영역 안에 있는지 확인합니다. 비활성 사건은 항상 False."""
    if not incident.active:
        return False
    lat, lon = point
    return l1_offset(lat, lon, incident.latitude, incident.longitude) <= incident.radius_m


def match_incidents(point: Tuple[float, float], incidents: Iterable[Incident]) -> List[int]:
    """
    점이 포함되는 사건 ID 목록을 반환합니다.

    Args:
        point: (위도, 경도)
        incidents: 사건 스냅샷 (비활성 사건 포함 가능)

    Returns:
        스캔 순서를 유지한 사건 ID 목록. 일치하는 사건이 없으면 빈 리스트.
    """
    return [incident.id for incident in incidents if is_inside(point, incident)]
