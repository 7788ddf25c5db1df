from .ids import new_run_id, new_uuid
from .time import normalize_dt, now_utc, parse_rfc3339, to_rfc3339

__all__ = [
    "new_uuid",
    "new_run_id",
    "now_utc",
    "parse_rfc3339",
    "to_rfc3339",
    "normalize_dt",
]
