"""
Core domain models for geonotify.

This module defines the core domain models using Pydantic v2
for type safety and validation.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """현재 UTC 시각"""
    return datetime.now(timezone.utc)


class Incident(BaseModel):
    """지리적 사건(incident) 모델"""
    id: int
    title: str
    description: str = ""
    latitude: float
    longitude: float
    radius_m: float
    active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# SQLite INTEGER 범위
INT64_MAX = 2**63 - 1


class IncidentWrite(BaseModel):
    """사건 생성/수정 입력 모델 (active 생략 시 수정에서는 기존 값 유지)"""
    model_config = ConfigDict(allow_inf_nan=False)

    title: str
    description: str = ""
    latitude: float
    longitude: float
    radius_m: float = 0
    active: Optional[bool] = None


class LocationCheckRequest(BaseModel):
    """위치 확인 요청 모델"""
    model_config = ConfigDict(allow_inf_nan=False)

    user_id: int = Field(le=INT64_MAX)
    latitude: float
    longitude: float


class LocationCheckResponse(BaseModel):
    """위치 확인 응답 모델"""
    user_id: int
    latitude: float
    longitude: float
    locations_ids: List[int] = Field(default_factory=list)


class LocationCheckAudit(BaseModel):
    """위치 확인 감사 레코드"""
    user_id: int
    latitude: float
    longitude: float
    locations_ids: List[int] = Field(default_factory=list)
    checked_at: datetime


class WebhookPayload(BaseModel):
    """구독자에게 전달되는 웹훅 본문"""
    user_id: int
    latitude: float
    longitude: float
    locations_ids: List[int]
    checked_at: datetime

    @field_validator("checked_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class DeliveryTask(BaseModel):
    """큐 원소: 웹훅 본문 + 재시도 상태"""
    task_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    attempts: int = 0
    enqueued_at: datetime = Field(default_factory=utcnow)
    payload: WebhookPayload

    def next_attempt(self) -> "DeliveryTask":
        """시도 횟수를 하나 올린 복사본을 반환합니다."""
        return self.model_copy(update={"attempts": self.attempts + 1, "enqueued_at": utcnow()})


class DeliveryState(str, Enum):
    """작업별 발송 상태"""
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    DELIVERED = "delivered"
    RETRY_SCHEDULED = "retry_scheduled"
    DEAD_LETTERED = "dead_lettered"


class QueuedMessage(BaseModel):
    """큐에서 꺼낸 원시 원소"""
    id: int
    body: str


class DeadLetter(BaseModel):
    """데드레터 항목"""
    id: int
    queue: str
    body: str
    reason: str
    attempts: int = 0
    failed_at: datetime
    task_id: Optional[str] = None
