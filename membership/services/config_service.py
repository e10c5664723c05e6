# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Business configuration.
Reads every tunable from the config store on each call (no caching), falling
back to the env-driven defaults in Settings. Writes are validated as a whole
and stored in one call. Integer tunables and the check-in tier table (JSON)
are kept under separate keys.
"""

from typing import Any, Mapping, Sequence

from pydantic import TypeAdapter, ValidationError

from membership.core.config import settings
from membership.core.errors import InvalidStateError
from membership.core.logging import get_logger
from membership.metrics.prometheus import CONFIG_UPDATES
from membership.models.domain import CheckinTier, RotationThresholds
from membership.repositories.base import ConfigStore

logger = get_logger(__name__)

POOL_TOTAL = "pool_total"
FORMAL_ROSTER_SIZE = "formal_roster_size"
SHARE_MIN = "share_min"
SHARE_MAX = "share_max"
BASE_ALLOCATION = "base_allocation"
POINTS_RATIO = "points_ratio"
PROMOTION_POINTS_THRESHOLD = "promotion_points_threshold"
DEMOTION_POINTS_THRESHOLD = "demotion_points_threshold"
DEMOTION_CONSECUTIVE_MONTHS = "demotion_consecutive_months"
DISMISSAL_POINTS_THRESHOLD = "dismissal_points_threshold"
DISMISSAL_CONSECUTIVE_MONTHS = "dismissal_consecutive_months"
CHECKIN_TIERS = "checkin_tiers"

_TIER_TABLE = TypeAdapter(list[CheckinTier])


def _defaults() -> dict[str, int]:
    return {
        POOL_TOTAL: settings.DEFAULT_POOL_TOTAL,
        FORMAL_ROSTER_SIZE: settings.DEFAULT_FORMAL_ROSTER_SIZE,
        SHARE_MIN: settings.DEFAULT_SHARE_MIN,
        SHARE_MAX: settings.DEFAULT_SHARE_MAX,
        BASE_ALLOCATION: settings.DEFAULT_BASE_ALLOCATION,
        POINTS_RATIO: settings.DEFAULT_POINTS_RATIO,
        PROMOTION_POINTS_THRESHOLD: settings.DEFAULT_PROMOTION_POINTS_THRESHOLD,
        DEMOTION_POINTS_THRESHOLD: settings.DEFAULT_DEMOTION_POINTS_THRESHOLD,
        DEMOTION_CONSECUTIVE_MONTHS: settings.DEFAULT_DEMOTION_CONSECUTIVE_MONTHS,
        DISMISSAL_POINTS_THRESHOLD: settings.DEFAULT_DISMISSAL_POINTS_THRESHOLD,
        DISMISSAL_CONSECUTIVE_MONTHS: settings.DEFAULT_DISMISSAL_CONSECUTIVE_MONTHS,
    }


CONFIG_KEYS: tuple[str, ...] = tuple(_defaults())


class ConfigService:
    """Typed, uncached view over the config store."""

    def __init__(self, config_repo: ConfigStore) -> None:
        self._config = config_repo

    # ── Queries ──

    def get_int(self, key: str) -> int:
        default = _defaults()[key]
        raw = self._config.get(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning("Config %s=%r is not an integer, using default %d", key, raw, default)
            return default

    def pool_total(self) -> int:
        return self.get_int(POOL_TOTAL)

    def formal_roster_size(self) -> int:
        return self.get_int(FORMAL_ROSTER_SIZE)

    def share_band(self) -> tuple[int, int]:
        return self.get_int(SHARE_MIN), self.get_int(SHARE_MAX)

    def points_ratio(self) -> int:
        return self.get_int(POINTS_RATIO)

    def rotation_thresholds(self) -> RotationThresholds:
        return RotationThresholds(
            promotion_points_threshold=self.get_int(PROMOTION_POINTS_THRESHOLD),
            demotion_points_threshold=self.get_int(DEMOTION_POINTS_THRESHOLD),
            demotion_consecutive_months=self.get_int(DEMOTION_CONSECUTIVE_MONTHS),
            dismissal_points_threshold=self.get_int(DISMISSAL_POINTS_THRESHOLD),
            dismissal_consecutive_months=self.get_int(DISMISSAL_CONSECUTIVE_MONTHS),
        )

    def get_all(self) -> dict[str, int]:
        return {key: self.get_int(key) for key in CONFIG_KEYS}

    def checkin_tiers(self) -> list[CheckinTier]:
        """The check-in reward table; an unreadable stored table falls back to the default."""
        raw = self._config.get(CHECKIN_TIERS)
        if raw is not None:
            try:
                return _TIER_TABLE.validate_json(raw)
            except ValidationError:
                logger.warning("Config %s is not a valid tier table, using default", CHECKIN_TIERS)
        return _TIER_TABLE.validate_json(settings.DEFAULT_CHECKIN_TIERS)

    # ── Commands ──

    def save_config(self, updates: Mapping[str, Any]) -> dict[str, int]:
        """Validate the merged configuration, then write `updates`.

        Raises InvalidStateError without writing anything if any rule fails.
        """
        unknown = sorted(set(updates) - set(CONFIG_KEYS))
        if unknown:
            raise InvalidStateError(f"Unknown configuration keys: {', '.join(unknown)}")

        parsed: dict[str, int] = {}
        for key, value in updates.items():
            try:
                parsed[key] = int(str(value).strip())
            except ValueError:
                raise InvalidStateError(f"Configuration '{key}' must be an integer, got {value!r}")

        merged = self.get_all()
        merged.update(parsed)
        self._validate(merged)

        self._config.save_many({key: str(value) for key, value in parsed.items()})
        CONFIG_UPDATES.inc()
        logger.info("Configuration saved: keys=%s", sorted(parsed))
        return merged

    def save_checkin_tiers(self, tiers: Sequence[Any]) -> list[CheckinTier]:
        """Replace the check-in reward table. Tiers must be ordered and must not overlap."""
        try:
            parsed = _TIER_TABLE.validate_python(list(tiers))
        except ValidationError as exc:
            raise InvalidStateError(f"Invalid check-in tier table: {exc.error_count()} error(s)")
        if not parsed:
            raise InvalidStateError("Check-in tier table cannot be empty")

        previous_max = -1
        for tier in parsed:
            if tier.min_count < 0 or tier.min_count > tier.max_count:
                raise InvalidStateError(
                    f"Tier '{tier.label}' has an invalid range [{tier.min_count}, {tier.max_count}]"
                )
            if tier.min_count <= previous_max:
                raise InvalidStateError(
                    f"Tier '{tier.label}' overlaps or precedes the tier before it"
                )
            previous_max = tier.max_count

        self._config.save_many({CHECKIN_TIERS: _TIER_TABLE.dump_json(parsed).decode()})
        CONFIG_UPDATES.inc()
        logger.info("Check-in tiers saved: tiers=%d", len(parsed))
        return parsed

    # ── Internal ──

    @staticmethod
    def _validate(values: dict[str, int]) -> None:
        if values[SHARE_MIN] > values[SHARE_MAX]:
            raise InvalidStateError(
                f"share_min ({values[SHARE_MIN]}) cannot exceed share_max ({values[SHARE_MAX]})"
            )
        if values[FORMAL_ROSTER_SIZE] < 1:
            raise InvalidStateError("formal_roster_size must be at least 1")
        allocation_total = values[BASE_ALLOCATION] * values[FORMAL_ROSTER_SIZE]
        if allocation_total > values[POOL_TOTAL]:
            raise InvalidStateError(
                f"base_allocation ({values[BASE_ALLOCATION]}) x formal_roster_size "
                f"({values[FORMAL_ROSTER_SIZE]}) = {allocation_total} exceeds "
                f"pool_total ({values[POOL_TOTAL]})"
            )
        for key in (PROMOTION_POINTS_THRESHOLD, DEMOTION_POINTS_THRESHOLD, DISMISSAL_POINTS_THRESHOLD):
            if values[key] < 0:
                raise InvalidStateError(f"{key} cannot be negative: {values[key]}")
        for key in (DEMOTION_CONSECUTIVE_MONTHS, DISMISSAL_CONSECUTIVE_MONTHS):
            if values[key] < 1:
                raise InvalidStateError(f"{key} must be at least 1, got {values[key]}")
