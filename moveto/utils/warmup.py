"""
JIT warmup utilities.

Call warmup_jit() before the first compute() so the numba cost kernels are
compiled up front. With cache=True this is fast once the cache exists.
"""

import logging
import time

import numpy as np

from moveto.stages.cost import _path_length

logger = logging.getLogger(__name__)


def warmup_jit() -> float:
    """
    Pre-compile all numba JIT functions by calling them with dummy data.

    Returns the time taken in seconds.
    """
    logger.debug("Warming JIT...")
    start = time.perf_counter()

    positions = np.zeros((2, 3), dtype=np.float64)
    weights = np.ones(3, dtype=np.float64)
    _path_length(positions, weights)

    elapsed = time.perf_counter() - start
    logger.debug("JIT warmup done in %.3fs", elapsed)
    return elapsed
