"""Deterministic cache keys for normalized request parameters."""

import hashlib
from typing import Any, Mapping

COORDINATE_PRECISION = 4
SEPARATOR = "|"


def _normalize(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        rounded = round(value, COORDINATE_PRECISION)
        # -0.0 and 0.0 must collide
        return f"{rounded + 0.0:.{COORDINATE_PRECISION}f}"
    return str(value)


def fingerprint(params: Mapping[str, Any]) -> str:
    """Hex SHA-256 of the parameters, independent of insertion order.

    Floats are rounded to 4 decimal digits so coordinate jitter does not
    fragment the cache. Parameters whose value is None are left out, so an
    absent parameter and a null one give the same key.
    """
    canonical = SEPARATOR.join(
        f"{name}:{_normalize(params[name])}"
        for name in sorted(params)
        if params[name] is not None
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
