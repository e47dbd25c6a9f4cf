"""Pydantic wire models for published diagnostics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..diagnostics.status import DiagnosticBatch, Level, StatusReport

# ── Published payloads ───────────────────────────────────────────────────────


class KeyValueModel(BaseModel):
    key: str
    value: str


class DiagnosticStatusModel(BaseModel):
    name: str
    level: int  # 0=OK, 1=WARN, 2=ERROR, 3=STALE
    message: str
    hardware_id: str
    values: list[KeyValueModel] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: StatusReport) -> DiagnosticStatusModel:
        return cls(
            name=report.name,
            level=int(report.level),
            message=report.message,
            hardware_id=report.hardware_id,
            values=[KeyValueModel(key=kv.key, value=kv.value) for kv in report.values],
        )


class DiagnosticArrayModel(BaseModel):
    timestamp: datetime
    hardware_id: str
    status: list[DiagnosticStatusModel]

    @classmethod
    def from_batch(cls, batch: DiagnosticBatch) -> DiagnosticArrayModel:
        return cls(
            timestamp=batch.timestamp,
            hardware_id=batch.hardware_id,
            status=[DiagnosticStatusModel.from_report(s) for s in batch.statuses],
        )


# ── Requests ─────────────────────────────────────────────────────────────────


class BroadcastRequest(BaseModel):
    level: Level
    message: str


class PeriodRequest(BaseModel):
    seconds: float = Field(gt=0)


class HardwareIdRequest(BaseModel):
    hardware_id: str
