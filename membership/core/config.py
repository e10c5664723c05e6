# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Process-level settings plus the defaults behind every business tunable.
Business tunables themselves are read per call through ConfigService.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "membership-engine")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

    ROLE_CHANGE_ACTOR: str = os.getenv("ROLE_CHANGE_ACTOR", "system")

    # ── Business defaults (overridable per key in the config store) ──
    DEFAULT_POOL_TOTAL: int = int(os.getenv("DEFAULT_POOL_TOTAL", "2000"))
    DEFAULT_FORMAL_ROSTER_SIZE: int = int(os.getenv("DEFAULT_FORMAL_ROSTER_SIZE", "5"))
    DEFAULT_SHARE_MIN: int = int(os.getenv("DEFAULT_SHARE_MIN", "200"))
    DEFAULT_SHARE_MAX: int = int(os.getenv("DEFAULT_SHARE_MAX", "400"))
    DEFAULT_BASE_ALLOCATION: int = int(os.getenv("DEFAULT_BASE_ALLOCATION", "400"))
    DEFAULT_POINTS_RATIO: int = int(os.getenv("DEFAULT_POINTS_RATIO", "2"))
    DEFAULT_PROMOTION_POINTS_THRESHOLD: int = int(
        os.getenv("DEFAULT_PROMOTION_POINTS_THRESHOLD", "100")
    )
    DEFAULT_DEMOTION_POINTS_THRESHOLD: int = int(
        os.getenv("DEFAULT_DEMOTION_POINTS_THRESHOLD", "150")
    )
    DEFAULT_DEMOTION_CONSECUTIVE_MONTHS: int = int(
        os.getenv("DEFAULT_DEMOTION_CONSECUTIVE_MONTHS", "2")
    )
    DEFAULT_DISMISSAL_POINTS_THRESHOLD: int = int(
        os.getenv("DEFAULT_DISMISSAL_POINTS_THRESHOLD", "100")
    )
    DEFAULT_DISMISSAL_CONSECUTIVE_MONTHS: int = int(
        os.getenv("DEFAULT_DISMISSAL_CONSECUTIVE_MONTHS", "2")
    )
    DEFAULT_CHECKIN_TIERS: str = os.getenv(
        "DEFAULT_CHECKIN_TIERS",
        '[{"min_count": 0, "max_count": 19, "points": -20, "label": "unqualified"},'
        ' {"min_count": 20, "max_count": 29, "points": -10, "label": "needs improvement"},'
        ' {"min_count": 30, "max_count": 39, "points": 0, "label": "qualified"},'
        ' {"min_count": 40, "max_count": 49, "points": 30, "label": "good"},'
        ' {"min_count": 50, "max_count": 999, "points": 50, "label": "excellent"}]',
    )


settings = Settings()
