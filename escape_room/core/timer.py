"""
Timer Engine - per-question countdown against a trusted time source

Elapsed time is always computed from TimeAuthority readings taken at
start/sample/complete, never from tick counts, so tick granularity and
paused clients have no effect on scoring.

  remaining = max(0, time_limit - elapsed)
  plausible = 0 <= time_taken <= time_limit + tolerance
"""
import logging
import math
import time
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict


logger = logging.getLogger(__name__)

# Allowance for network/reporting latency (seconds)
DEFAULT_TOLERANCE_SECONDS = 2


class TimeAuthority:
    """
    Best-effort authoritative clock

    Reads `source` (e.g. a server timestamp fetch) and falls back to the
    local clock when it raises. `degraded` tells whether the last reading
    came from the fallback.
    """

    def __init__(self, source: Optional[Callable[[], float]] = None,
                 fallback: Callable[[], float] = time.time):
        self._source = source
        self._fallback = fallback
        self.degraded = source is None

    def now(self) -> float:
        if self._source is None:
            return self._fallback()
        try:
            value = float(self._source())
        except Exception as e:
            if not self.degraded:
                logger.warning(f"⚠️ Time authority unavailable, using local clock: {e}")
            self.degraded = True
            return self._fallback()
        self.degraded = False
        return value


class TimerState(BaseModel):
    """Opaque timer state: a start reading and a limit"""
    model_config = ConfigDict(frozen=True)

    start_time: float
    time_limit: int


class TimerSample(BaseModel):
    remaining: float
    elapsed: float


class TimerCompletion(BaseModel):
    time_taken: int
    is_plausible: bool


def start(time_limit_seconds: int, trusted_now: float) -> TimerState:
    """Create a timer state starting at `trusted_now`"""
    if time_limit_seconds <= 0:
        raise ValueError("time_limit_seconds must be positive")
    return TimerState(start_time=trusted_now, time_limit=time_limit_seconds)


def sample(state: TimerState, trusted_now: float) -> TimerSample:
    """
    Sample the timer

    Elapsed is floored at 0 (a reading before the start shows a full clock),
    remaining is floored at 0.
    """
    elapsed = max(0.0, trusted_now - state.start_time)
    remaining = max(0.0, state.time_limit - elapsed)
    return TimerSample(remaining=remaining, elapsed=elapsed)


def complete(state: TimerState, trusted_now: float,
             tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS) -> TimerCompletion:
    """
    Complete the timer and validate the reading

    time_taken is whole seconds (floor). A negative reading or one beyond
    time_limit + tolerance is reported as implausible.
    """
    time_taken = math.floor(trusted_now - state.start_time)
    is_plausible = 0 <= time_taken <= state.time_limit + tolerance_seconds
    if not is_plausible:
        logger.warning(
            f"⚠️ Suspicious timing: elapsed={time_taken}s limit={state.time_limit}s "
            f"start={state.start_time} end={trusted_now}"
        )
    return TimerCompletion(time_taken=time_taken, is_plausible=is_plausible)


def format_time(seconds: float) -> str:
    """Format remaining seconds as MM:SS (rounded up)"""
    total = max(0, math.ceil(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


class QuestionTimer:
    """
    Live timer for one question instance

    Pull-based: the owner calls `poll(now)`; `on_timeout` fires exactly once
    when remaining reaches 0, and `on_tick` (optional) on every poll before that.
    """

    def __init__(
        self,
        state: TimerState,
        on_timeout: Optional[Callable[[TimerState], None]] = None,
        on_tick: Optional[Callable[[TimerSample], None]] = None,
    ):
        self.state = state
        self._on_timeout = on_timeout
        self._on_tick = on_tick
        self.has_expired = False
        self.is_stopped = False

    @property
    def time_limit(self) -> int:
        return self.state.time_limit

    def poll(self, trusted_now: float) -> TimerSample:
        current = sample(self.state, trusted_now)
        if self.is_stopped or self.has_expired:
            return current

        if current.remaining <= 0:
            self.has_expired = True
            if self._on_timeout:
                self._on_timeout(self.state)
        elif self._on_tick:
            self._on_tick(current)
        return current

    def stop(self) -> None:
        self.is_stopped = True

    def complete(self, trusted_now: float,
                 tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS) -> TimerCompletion:
        self.stop()
        return complete(self.state, trusted_now, tolerance_seconds)

    def view(self, trusted_now: float) -> Dict:
        current = sample(self.state, trusted_now)
        return {
            "remaining": round(current.remaining, 2),
            "formatted": format_time(current.remaining),
            "progress": round(current.remaining / self.time_limit * 100, 2),
            "has_expired": self.has_expired or current.remaining <= 0,
        }
