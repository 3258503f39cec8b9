"""Interpolation core: nearest-4 search, sigma/time bracketing, IDW averaging."""
from romsprobe.interp.averaging import combine
from romsprobe.interp.dataset import FieldValues, HorizontalGrid, ModelDataset
from romsprobe.interp.engine import EngineState, InterpolationEngine, ProbeResult
from romsprobe.interp.errors import (AllLandError, BadValueError, EngineStateError, InitializationError,
                                     OutOfGridError, RomsProbeError, StaleTimeWarning)
from romsprobe.interp.grid_index import GridIndexer, NeighborSet, find_nearest4
from romsprobe.interp.temporal import TemporalBracket, resolve_time
from romsprobe.interp.vertical import VerticalBracket, resolve_level
