"""Appointment data migration schemas."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MigrationPolicy(str, Enum):
    """Which backfill a reconciliation run applies."""

    USER_DATA = "user-data"
    PRICING = "pricing"


class MigrationStatus(str, Enum):
    """Outcome for a single appointment."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class MigrationResult(BaseModel):
    """What happened to one appointment during a run."""

    appointment_id: str
    status: MigrationStatus
    message: str
    before: dict[str, Any] = Field(default_factory=dict)
    after: dict[str, Any] = Field(default_factory=dict)
    patch: dict[str, Any] = Field(default_factory=dict)


class MigrationSummary(BaseModel):
    """Aggregate counts for a run."""

    total: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0


class MigrationRun(BaseModel):
    """A finished reconciliation run."""

    policy: MigrationPolicy
    dry_run: bool = False
    started_at: datetime
    finished_at: datetime
    users_loaded: int = 0
    appointments_loaded: int = 0
    summary: MigrationSummary
    results: list[MigrationResult] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class MigrationRunResponse(MigrationRun):
    """Response schema for a migration run."""


class ServicePriceResponse(BaseModel):
    """One entry of the service price list."""

    service_name: str
    amount: int
    category: str


class PricingTableResponse(BaseModel):
    """Response schema for the effective service price list."""

    services: list[ServicePriceResponse]
    default_amount: int
    default_category: str
