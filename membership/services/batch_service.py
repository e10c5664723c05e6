# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Compensation batch validation, persistence and archiving.

validate_batch fails fast on the first problem. batch_save_with_validation
collects every problem so an operator sees them all in one round trip, and
persists only a fully valid batch.

A cycle holds at most one open record per member. A batch must carry the id
and version of a member's open record to change it, and the pool ceiling
covers the batch together with every open record it leaves untouched.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from membership.core.errors import ConcurrencyConflictError, InvalidStateError, NotFoundError
from membership.core.logging import get_logger
from membership.metrics.prometheus import BATCH_SAVES, RECORDS_ARCHIVED, RECORDS_UPDATED
from membership.models.domain import AuditEntry, CompensationRecord
from membership.repositories.base import AuditStore, CompensationStore
from membership.schemas.compensation import BatchSaveResult, FieldError, PoolSummary
from membership.services.config_service import ConfigService

logger = get_logger(__name__)

BATCH_SAVE_OPERATION = "COMPENSATION_BATCH_SAVE"
ARCHIVE_OPERATION = "COMPENSATION_ARCHIVE"
UPDATE_OPERATION = "COMPENSATION_UPDATE"

UPDATABLE_FIELDS: tuple[str, ...] = (
    "base_points",
    "bonus_points",
    "deductions",
    "total_points",
    "allocated_amount",
    "remark",
)


class BatchService:
    """Gatekeeper between an allocation proposal and the compensation store."""

    def __init__(
        self,
        compensation_repo: CompensationStore,
        audit_repo: AuditStore,
        config_service: ConfigService,
    ) -> None:
        self._compensation = compensation_repo
        self._audit = audit_repo
        self._config = config_service

    # ── Validation ──

    def validate_batch(self, records: list[CompensationRecord]) -> None:
        """Raise InvalidStateError on the first violated rule."""
        if not records:
            raise InvalidStateError("Compensation batch is empty")

        expected = self._config.formal_roster_size()
        if len(records) != expected:
            raise InvalidStateError(
                f"Formal member count mismatch: expected {expected}, got {len(records)}"
            )

        open_records = self._compensation.find_unarchived()
        identity_errors, archived_errors = self._identity_errors(records, open_records)
        if archived_errors:
            raise InvalidStateError(archived_errors[0])
        if identity_errors:
            first = identity_errors[0]
            raise InvalidStateError(f"Member '{first.member_id}': {first.message}")

        min_share, max_share = self._config.share_band()
        for record in records:
            if not min_share <= record.allocated_amount <= max_share:
                raise InvalidStateError(
                    f"Member '{record.member_id}': value {record.allocated_amount} "
                    f"not within [{min_share}, {max_share}]"
                )

        pool_error = self._pool_error(records, open_records)
        if pool_error:
            raise InvalidStateError(pool_error)

    def _identity_errors(
        self, records: list[CompensationRecord], open_records: list[CompensationRecord]
    ) -> tuple[list[FieldError], list[str]]:
        """Duplicate members, ids owned by someone else, bypassed open records and archived ids."""
        open_by_member = {r.member_id: r for r in open_records}
        field_errors: list[FieldError] = []
        archived_errors: list[str] = []
        seen: set[str] = set()

        for record in records:
            if record.member_id in seen:
                field_errors.append(
                    FieldError(
                        member_id=record.member_id,
                        field="member_id",
                        message="member appears more than once in the batch",
                    )
                )
                continue
            seen.add(record.member_id)

            stored = self._compensation.find_by_id(record.id) if record.id else None
            if stored is not None and stored.archived:
                archived_errors.append(
                    f"Compensation record '{record.id}' for member '{record.member_id}' "
                    f"is archived and cannot be modified"
                )
                continue
            if stored is not None and stored.member_id != record.member_id:
                field_errors.append(
                    FieldError(
                        member_id=record.member_id,
                        field="id",
                        message=f"record '{record.id}' belongs to member '{stored.member_id}'",
                    )
                )
                continue

            current = open_by_member.get(record.member_id)
            if current is not None and current.id != record.id:
                field_errors.append(
                    FieldError(
                        member_id=record.member_id,
                        field="id",
                        message=(
                            f"member already has open record '{current.id}' "
                            f"(version {current.version}); resubmit it instead"
                        ),
                    )
                )
        return field_errors, archived_errors

    def _pool_error(
        self, records: list[CompensationRecord], open_records: list[CompensationRecord]
    ) -> Optional[str]:
        pool = self._config.pool_total()
        total = sum(r.allocated_amount for r in records)
        batch_ids = {r.id for r in records if r.id}
        carried = sum(r.allocated_amount for r in open_records if r.id not in batch_ids)
        if total + carried <= pool:
            return None
        if carried:
            return (
                f"Batch total {total} plus {carried} held by other open records "
                f"exceeds pool ceiling {pool}"
            )
        return f"Batch total {total} exceeds pool ceiling {pool}"

    def _collect_errors(self, records: list[CompensationRecord]) -> BatchSaveResult:
        expected = self._config.formal_roster_size()
        if len(records) != expected:
            return BatchSaveResult(
                success=False,
                global_error=(
                    f"Formal member count mismatch: expected {expected}, got {len(records)}"
                ),
            )

        open_records = self._compensation.find_unarchived()
        errors, global_errors = self._identity_errors(records, open_records)

        min_share, max_share = self._config.share_band()
        for record in records:
            if not min_share <= record.allocated_amount <= max_share:
                errors.append(
                    FieldError(
                        member_id=record.member_id,
                        field="allocated_amount",
                        message=(
                            f"value {record.allocated_amount} not within "
                            f"[{min_share}, {max_share}]"
                        ),
                    )
                )

        pool_error = self._pool_error(records, open_records)
        if pool_error:
            global_errors.append(pool_error)

        violating: list[str] = []
        for error in errors:
            if error.member_id not in violating:
                violating.append(error.member_id)
        return BatchSaveResult(
            success=not errors and not global_errors,
            errors=errors,
            global_error="; ".join(global_errors) or None,
            violating_member_ids=violating,
        )

    # ── Commands ──

    def batch_save_with_validation(
        self, records: list[CompensationRecord], operator_id: str
    ) -> BatchSaveResult:
        """Validate everything, then persist all records and audit the commit, or nothing."""
        result = self._collect_errors(records)
        if not result.success:
            BATCH_SAVES.labels(result="rejected").inc()
            logger.warning(
                "Batch rejected: operator=%s, field_errors=%d, global_error=%s",
                operator_id, len(result.errors), result.global_error,
            )
            return result

        try:
            saved = self._compensation.save_all(records)
        except ConcurrencyConflictError as exc:
            BATCH_SAVES.labels(result="conflict").inc()
            logger.warning("Batch save conflict: operator=%s, %s", operator_id, exc.message)
            return BatchSaveResult(
                success=False,
                global_error=f"Concurrent modification conflict, reload and retry: {exc.message}",
            )
        except InvalidStateError as exc:
            # A record was archived between validation and the write.
            BATCH_SAVES.labels(result="rejected").inc()
            logger.warning("Batch save refused: operator=%s, %s", operator_id, exc.message)
            return BatchSaveResult(success=False, global_error=exc.message)

        total = sum(r.allocated_amount for r in saved)
        self._audit.append(
            AuditEntry(
                operator_id=operator_id,
                operation_type=BATCH_SAVE_OPERATION,
                detail=f"Saved {len(saved)} compensation records, total {total}",
            )
        )
        BATCH_SAVES.labels(result="saved").inc()
        logger.info(
            "Batch saved: operator=%s, records=%d, total=%d", operator_id, len(saved), total,
            extra={"operator_id": operator_id},
        )
        return BatchSaveResult(success=True, saved_records=saved)

    def update_record(
        self, record_id: str, updates: Mapping[str, Any], operator_id: str
    ) -> CompensationRecord:
        """
        Partially update one open record. Keys set to None are left unchanged.
        A new allocated_amount must sit inside the share band and keep the
        open cycle within the pool ceiling.
        """
        unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
        if unknown:
            raise InvalidStateError(f"Fields cannot be updated: {', '.join(unknown)}")

        existing = self._compensation.find_by_id(record_id)
        if existing is None:
            raise NotFoundError(f"Compensation record '{record_id}' not found")
        if existing.archived:
            raise InvalidStateError(
                f"Compensation record '{record_id}' is archived and cannot be modified"
            )

        changes = {key: value for key, value in updates.items() if value is not None}
        try:
            updated = CompensationRecord.model_validate({**existing.model_dump(), **changes})
        except ValidationError as exc:
            raise InvalidStateError(
                f"Compensation record '{record_id}': {exc.error_count()} invalid field(s)"
            )

        if updated.allocated_amount != existing.allocated_amount:
            min_share, max_share = self._config.share_band()
            if not min_share <= updated.allocated_amount <= max_share:
                raise InvalidStateError(
                    f"Member '{updated.member_id}': value {updated.allocated_amount} "
                    f"not within [{min_share}, {max_share}]"
                )
            pool_error = self._pool_error([updated], self._compensation.find_unarchived())
            if pool_error:
                raise InvalidStateError(pool_error)

        saved = self._compensation.save_all([updated])[0]
        self._audit.append(
            AuditEntry(
                operator_id=operator_id,
                operation_type=UPDATE_OPERATION,
                detail=f"Updated compensation record {record_id}: {', '.join(sorted(changes))}",
            )
        )
        RECORDS_UPDATED.inc()
        logger.info(
            "Compensation record updated: record=%s, member=%s, fields=%s",
            record_id, saved.member_id, sorted(changes),
            extra={"operator_id": operator_id, "member_id": saved.member_id},
        )
        return saved

    def archive_cycle(self, operator_id: str) -> int:
        """Freeze every open record with one shared timestamp. Returns how many were archived."""
        open_records = self._compensation.find_unarchived()
        if not open_records:
            logger.info("Archive skipped: no open compensation records")
            return 0

        archived_at = datetime.now(timezone.utc)
        self._compensation.save_all(
            [r.model_copy(update={"archived": True, "archived_at": archived_at}) for r in open_records]
        )
        self._audit.append(
            AuditEntry(
                operator_id=operator_id,
                operation_type=ARCHIVE_OPERATION,
                detail=f"Archived {len(open_records)} compensation records",
            )
        )
        RECORDS_ARCHIVED.inc(len(open_records))
        logger.info(
            "Cycle archived: operator=%s, records=%d", operator_id, len(open_records),
            extra={"operator_id": operator_id},
        )
        return len(open_records)

    # ── Queries ──

    def pool_summary(self) -> PoolSummary:
        open_records = self._compensation.find_unarchived()
        pool = self._config.pool_total()
        allocated = sum(r.allocated_amount for r in open_records)
        return PoolSummary(
            pool_total=pool,
            allocated_total=allocated,
            remaining=pool - allocated,
            record_count=len(open_records),
        )
