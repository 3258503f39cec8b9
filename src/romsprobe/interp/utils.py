"""
utils.py

Small helpers shared by the interpolation modules: a defensive KDTree
builder for the grid indexer and a robust exception logger.

The public helpers:
- `safe_log_exception(msg, exc, **ctx)` : logs exceptions robustly
- `safe_build_kdtree(points, name='KDTree')` : returns a cKDTree or None
- `as_readonly(arr, dtype)` : float/bool copy of an array with writes disabled

"""

from typing import Any, Optional
import sys
import logging
import numpy as np

logger = logging.getLogger(__name__)


def safe_log_exception(msg: str, exc: Exception, **ctx: Any) -> None:
    """Log an unexpected engine failure with the query that triggered it.

    ``ctx`` carries the query (x, y, depth, time) and is appended as
    ``key=value`` pairs. The caller re-raises afterwards, so a broken logging
    setup must not mask the original error: stderr is the last resort.
    """
    query = ', '.join(f'{k}={v!r}' for k, v in ctx.items()) or 'no query context'
    try:
        logger.exception('%s (%s): %s', msg, query, exc)
    except Exception:
        try:
            sys.stderr.write(f'romsprobe logging failed: {msg} ({query}): {exc!r}\n')
        except OSError:
            pass


def safe_build_kdtree(points: Any, name: str = 'KDTree') -> Optional[object]:
    """Build the cKDTree behind a `GridIndexer` over flattened (x, y) nodes.

    ``None`` means the indexer keeps its full scan: the node array was
    missing, empty or not coercible to float pairs. Anything else is logged
    and re-raised.
    """
    try:
        if points is None:
            logger.debug('%s: no grid nodes given, keeping the full scan', name)
            return None
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[0] == 0 or pts.shape[1] != 2:
            logger.debug('%s: node array shaped %s is not (N, 2), keeping the full scan', name, pts.shape)
            return None
        from scipy.spatial import cKDTree

        return cKDTree(pts)
    except (ValueError, TypeError, IndexError, AttributeError):
        logger.exception('%s: failed to build cKDTree over the grid nodes', name)
        return None
    except Exception:
        logger.exception('%s: unexpected error while building cKDTree; re-raising', name)
        raise


def as_readonly(arr: Any, dtype=float) -> np.ndarray:
    """Return a C-contiguous copy of ``arr`` with the writeable flag cleared."""
    out = np.array(arr, dtype=dtype, copy=True, order='C')
    out.setflags(write=False)
    return out
