"""
Central configuration for MoveTo tunables and shared constants.
"""

from __future__ import annotations

import logging
import os

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    logger.warning("Ignoring unparsable boolean %s=%r", name, raw)
    return default


TRACE_ENABLED: bool = _env_bool("MOVETO_TRACE", False)
LOG_LEVEL_DEFAULT: str = os.getenv("MOVETO_LOG_LEVEL", "INFO").strip().upper()

# Planner budget per compute() call (seconds)
DEFAULT_TIMEOUT_S: float = float(os.getenv("MOVETO_TIMEOUT_S", "1.0"))

# Keep a diagnostic trajectory for failed planning attempts
STORE_FAILURES_DEFAULT: bool = _env_bool("MOVETO_STORE_FAILURES", True)

# Frame marker arrow length (m)
MARKER_SCALE: float = float(os.getenv("MOVETO_MARKER_SCALE", "0.1"))

# Reference planner tunables
MAX_STEP_RAD: float = float(os.getenv("MOVETO_MAX_STEP_RAD", "0.1"))
IK_TOLERANCE: float = float(os.getenv("MOVETO_IK_TOLERANCE", "1e-5"))
IK_MAX_RESTARTS: int = int(os.getenv("MOVETO_IK_MAX_RESTARTS", "5"))

# Name of the root frame every transform is expressed in
PLANNING_FRAME_DEFAULT: str = "world"
