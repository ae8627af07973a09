"""Reconciliation runs that backfill missing appointment data."""

import asyncio
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, ClassVar

import structlog
from pydantic import ValidationError

from app.config import Settings
from app.core.exceptions import AppException, MigrationInProgressError
from app.core.pricing import ServicePrice, build_pricing_table
from app.database import DocumentStore, StoredDocument
from app.models.appointments import AppointmentRecord
from app.models.users import UserRecord
from app.schemas.migrations import (
    MigrationPolicy,
    MigrationResult,
    MigrationRun,
    MigrationStatus,
    MigrationSummary,
)
from app.services.backfill_service import (
    DEFAULT_AMOUNT,
    DEFAULT_CATEGORY,
    compute_identity_patch,
    compute_pricing_patch,
    needs_identity_backfill,
    needs_pricing_backfill,
)
from app.services.identity_service import (
    extract_candidate_email,
    find_email_matches,
    resolve_user,
)

logger = structlog.get_logger(__name__)


def summarize(results: Sequence[MigrationResult]) -> MigrationSummary:
    """Count results by outcome."""
    return MigrationSummary(
        total=len(results),
        updated=sum(1 for r in results if r.status == MigrationStatus.SUCCESS),
        skipped=sum(1 for r in results if r.status == MigrationStatus.SKIPPED),
        failed=sum(1 for r in results if r.status == MigrationStatus.FAILED),
    )


def format_report(run: MigrationRun) -> str:
    """Render a run as a plain-text report for operators."""
    icons = {
        MigrationStatus.SUCCESS: "✅",
        MigrationStatus.SKIPPED: "⏭️ ",
        MigrationStatus.FAILED: "❌",
    }
    rule = "=" * 50
    title = f"Migration {'dry run ' if run.dry_run else ''}complete: {run.policy.value}"

    lines = []
    for result in run.results:
        lines.append(f"{icons[result.status]} {result.appointment_id[:8]}... {result.message}")
        for field, value in result.patch.items():
            lines.append(f"      {field}: {result.before.get(field)!r} -> {value!r}")

    lines += [
        "",
        rule,
        title,
        rule,
        f"✅ Updated: {run.summary.updated}",
        f"⏭️  Skipped: {run.summary.skipped}",
        f"❌ Failed: {run.summary.failed}",
        rule,
    ]
    return "\n".join(lines)


class MigrationService:
    """
    Scan appointments and fill in missing data, one appointment at a time.

    A run loads everything it needs up front, then walks the appointments in fetch
    order: check completeness, resolve, compute a patch, write it. Each appointment
    gets its own write; a failed write is reported and the run moves on. Nothing is
    retried or rolled back.
    """

    _locks: ClassVar[dict[MigrationPolicy, asyncio.Lock]] = {}

    def __init__(
        self,
        store: DocumentStore,
        users_collection: str = "users",
        appointments_collection: str = "appointments",
        pricing: Mapping[str, ServicePrice] | None = None,
        default_amount: int = DEFAULT_AMOUNT,
        default_category: str = DEFAULT_CATEGORY,
        conditional_writes: bool = True,
        reject_ambiguous_matches: bool = False,
    ):
        """Initialize service with a document store and run options."""
        self.store = store
        self.users_collection = users_collection
        self.appointments_collection = appointments_collection
        self.pricing = pricing if pricing is not None else build_pricing_table()
        self.default_amount = default_amount
        self.default_category = default_category
        self.conditional_writes = conditional_writes
        self.reject_ambiguous_matches = reject_ambiguous_matches

    @classmethod
    def from_settings(cls, store: DocumentStore, app_settings: Settings) -> "MigrationService":
        """Build a service configured from application settings."""
        return cls(
            store,
            users_collection=app_settings.users_collection,
            appointments_collection=app_settings.appointments_collection,
            pricing=build_pricing_table(app_settings.service_pricing_overrides),
            default_amount=app_settings.default_service_amount,
            default_category=app_settings.default_service_category,
            conditional_writes=app_settings.migration_conditional_writes,
            reject_ambiguous_matches=app_settings.migration_reject_ambiguous_matches,
        )

    @asynccontextmanager
    async def _exclusive(self, policy: MigrationPolicy) -> AsyncIterator[None]:
        lock = self._locks.setdefault(policy, asyncio.Lock())
        if lock.locked():
            raise MigrationInProgressError(policy.value)
        async with lock:
            yield

    async def run(self, policy: MigrationPolicy, dry_run: bool = False) -> MigrationRun:
        """Run the given policy over every appointment."""
        if policy == MigrationPolicy.USER_DATA:
            return await self.run_identity_backfill(dry_run=dry_run)
        return await self.run_pricing_backfill(dry_run=dry_run)

    async def run_identity_backfill(self, dry_run: bool = False) -> MigrationRun:
        """
        Fill userName, userEmail and userPhone from matching user records.

        Args:
            dry_run: Compute and report patches without writing them

        Returns:
            The finished run with per-appointment results

        Raises:
            StoreReadError: If users or appointments could not be loaded
            MigrationInProgressError: If this policy is already running
        """
        policy = MigrationPolicy.USER_DATA
        async with self._exclusive(policy):
            started_at = datetime.now(UTC)
            logger.info("migration_started", policy=policy.value, dry_run=dry_run)

            users = await self._load_users()
            documents = await self.store.fetch_all(self.appointments_collection)

            results = []
            for document in documents:
                results.append(
                    await self._process(
                        document,
                        lambda appointment: self._reconcile_identity(appointment, users),
                        dry_run,
                    )
                )

            return self._finish(policy, dry_run, started_at, results, len(users), len(documents))

    async def run_pricing_backfill(self, dry_run: bool = False) -> MigrationRun:
        """
        Fill amount and serviceCategory from the service price list.

        Args:
            dry_run: Compute and report patches without writing them

        Returns:
            The finished run with per-appointment results

        Raises:
            StoreReadError: If appointments could not be loaded
            MigrationInProgressError: If this policy is already running
        """
        policy = MigrationPolicy.PRICING
        async with self._exclusive(policy):
            started_at = datetime.now(UTC)
            logger.info("migration_started", policy=policy.value, dry_run=dry_run)

            documents = await self.store.fetch_all(self.appointments_collection)

            results = []
            for document in documents:
                results.append(await self._process(document, self._reconcile_pricing, dry_run))

            return self._finish(policy, dry_run, started_at, results, 0, len(documents))

    async def _load_users(self) -> list[UserRecord]:
        users = []
        for document in await self.store.fetch_all(self.users_collection):
            try:
                users.append(UserRecord.from_document(document))
            except ValidationError as e:
                logger.warning("user_document_unreadable", user_id=document.id, error=str(e))
        return users

    def _reconcile_identity(
        self,
        appointment: AppointmentRecord,
        users: Sequence[UserRecord],
    ) -> tuple[MigrationStatus, str, dict[str, Any]]:
        if not needs_identity_backfill(appointment):
            return MigrationStatus.SKIPPED, "Already has complete user data", {}

        candidate_email = extract_candidate_email(appointment)
        if candidate_email:
            matches = find_email_matches(candidate_email, users)
            if len(matches) > 1:
                logger.warning(
                    "ambiguous_user_match",
                    appointment_id=appointment.id,
                    email=candidate_email,
                    user_ids=[user.id for user in matches],
                )
                if self.reject_ambiguous_matches:
                    return (
                        MigrationStatus.FAILED,
                        f"Ambiguous match: {len(matches)} users share email {candidate_email}",
                        {},
                    )

        user = resolve_user(appointment, users)
        patch = compute_identity_patch(appointment, user, candidate_email)

        if not patch:
            if user is None:
                return (
                    MigrationStatus.FAILED,
                    f"No matching user found for email: {candidate_email or 'N/A'}",
                    {},
                )
            return MigrationStatus.SKIPPED, "No changes needed", {}

        if user is not None:
            message = f"Updated with data from user {user.email or user.id}"
        else:
            message = "Updated with email-based fallback (no user found in collection)"
        return MigrationStatus.SUCCESS, message, patch

    def _reconcile_pricing(
        self,
        appointment: AppointmentRecord,
    ) -> tuple[MigrationStatus, str, dict[str, Any]]:
        if not needs_pricing_backfill(appointment):
            return MigrationStatus.SKIPPED, "Already has amount and category", {}

        patch = compute_pricing_patch(
            appointment,
            self.pricing,
            default_amount=self.default_amount,
            default_category=self.default_category,
        )
        if not patch:
            return MigrationStatus.SKIPPED, "Already has amount and category", {}

        amount = patch.get("amount", appointment.amount)
        category = patch.get("serviceCategory", appointment.service_category)
        return MigrationStatus.SUCCESS, f"Added amount: R{amount} | category: {category}", patch

    async def _process(
        self,
        document: StoredDocument,
        reconcile: Callable[[AppointmentRecord], tuple[MigrationStatus, str, dict[str, Any]]],
        dry_run: bool,
    ) -> MigrationResult:
        before = dict(document.data)

        try:
            appointment = AppointmentRecord.from_document(document)
        except ValidationError as e:
            logger.warning("appointment_document_unreadable", appointment_id=document.id)
            return self._record(
                document.id,
                MigrationStatus.FAILED,
                f"Error: unreadable appointment document ({e.error_count()} invalid fields)",
                before,
            )

        status, message, patch = reconcile(appointment)
        if status != MigrationStatus.SUCCESS:
            return self._record(appointment.id, status, message, before)

        if dry_run:
            return self._record(appointment.id, status, f"[dry run] {message}", before, patch)

        expected_version = appointment.version if self.conditional_writes else None
        try:
            await self.store.update_fields(
                self.appointments_collection,
                appointment.id,
                patch,
                expected_version=expected_version,
            )
        except Exception as e:
            reason = e.message if isinstance(e, AppException) else str(e)
            return self._record(appointment.id, MigrationStatus.FAILED, f"Error: {reason}", before)

        return self._record(appointment.id, status, message, before, patch)

    @staticmethod
    def _record(
        appointment_id: str,
        status: MigrationStatus,
        message: str,
        before: dict[str, Any],
        patch: dict[str, Any] | None = None,
    ) -> MigrationResult:
        patch = patch or {}
        log = logger.warning if status == MigrationStatus.FAILED else logger.info
        log(
            f"migration_record_{status.value}",
            appointment_id=appointment_id,
            message=message,
            fields=sorted(patch),
        )
        return MigrationResult(
            appointment_id=appointment_id,
            status=status,
            message=message,
            before=before,
            after={**before, **patch},
            patch=patch,
        )

    @staticmethod
    def _finish(
        policy: MigrationPolicy,
        dry_run: bool,
        started_at: datetime,
        results: list[MigrationResult],
        users_loaded: int,
        appointments_loaded: int,
    ) -> MigrationRun:
        summary = summarize(results)
        logger.info(
            "migration_completed",
            policy=policy.value,
            dry_run=dry_run,
            updated=summary.updated,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return MigrationRun(
            policy=policy,
            dry_run=dry_run,
            started_at=started_at,
            finished_at=datetime.now(UTC),
            users_loaded=users_loaded,
            appointments_loaded=appointments_loaded,
            summary=summary,
            results=results,
        )
