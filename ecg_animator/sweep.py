# ecg_animator/sweep.py
import logging
import numpy as np
from typing import Dict, List, NamedTuple, Optional, Sequence

from .constants import (
    DEFAULT_ECG_PARAMS, DEFAULT_PIXELS_PER_MV, DISPLAY_HEIGHT, DISPLAY_WIDTH,
    ERASE_WIDTH, PIXELS_PER_SECOND
)
from .exceptions import NonAdvancingCycleError
from .rhythm_logic import (
    CustomBeatConfig, CyclingState, PatternConfig, normalize_custom_config,
    normalize_pattern, synthesize_run
)

logger = logging.getLogger(__name__)

FIRST_SWEEP = "first_sweep"
STEADY_SWEEP = "steady_sweep"


def _requested_enabled(pattern) -> bool:
    if pattern is None:
        return False
    if isinstance(pattern, dict):
        return bool(pattern.get("enabled"))
    return bool(pattern[0])


class Point(NamedTuple):
    x: float
    y: float


class SweepFrame(NamedTuple):
    """What the rendering side needs after one tick."""
    points: List[Optional[Point]]
    marker: Optional[Point]
    pointer_x: float
    phase: str
    error: Optional[str] = None


class SweepEngine:
    """
    Oscilloscope-style sweep over a synthesized ECG trace.

    The pointer moves left to right at `sweep_speed` display units per
    second. During the first sweep the trace is revealed behind the pointer
    and nothing is erased. Afterwards every tick rewrites only the display
    slots inside a narrow erase window around the pointer with fresh samples,
    so the old trace stays visible everywhere else. Each time the pointer
    reaches the right edge it wraps to 0 and the sample buffer is refilled
    with the next sweep's worth of beats, continuing the beat patterns.

    The engine never draws anything itself: `advance` returns a SweepFrame
    for a rendering collaborator.
    """

    def __init__(
        self,
        params: Optional[Dict[str, float]] = None,
        custom_beats: Optional[Sequence[Dict[str, float]]] = None,
        custom_config: Optional[CustomBeatConfig] = None,
        p_pattern: Optional[PatternConfig] = None,
        r_pattern: Optional[PatternConfig] = None,
        pixels_per_mv: float = DEFAULT_PIXELS_PER_MV,
        width: float = DISPLAY_WIDTH,
        height: float = DISPLAY_HEIGHT,
        sweep_speed: float = PIXELS_PER_SECOND,
        erase_width: float = ERASE_WIDTH
    ):
        if width <= 0 or height <= 0:
            raise ValueError("Display width and height must be positive")
        if sweep_speed <= 0:
            raise ValueError("sweep_speed must be positive")

        self.width = float(width)
        self.height = float(height)
        self.sweep_speed = float(sweep_speed)
        self.erase_width = float(erase_width)

        self.pointer_x = 0.0
        self.phase = FIRST_SWEEP
        self.cycling_state = CyclingState()
        self.last_error: Optional[str] = None

        self.sample_x = np.array([])
        self.sample_y = np.array([])
        self.display_points: List[Optional[Point]] = []

        self.apply_parameters(
            params=params,
            custom_beats=custom_beats,
            custom_config=custom_config,
            p_pattern=p_pattern,
            r_pattern=r_pattern,
            pixels_per_mv=pixels_per_mv,
        )

    @property
    def sweep_duration(self) -> float:
        return self.width / self.sweep_speed

    @property
    def sample_step(self) -> float:
        # One sample per display unit
        return 1.0 / self.sweep_speed

    def apply_parameters(
        self,
        params: Optional[Dict[str, float]] = None,
        custom_beats: Optional[Sequence[Dict[str, float]]] = None,
        custom_config: Optional[CustomBeatConfig] = None,
        p_pattern: Optional[PatternConfig] = None,
        r_pattern: Optional[PatternConfig] = None,
        pixels_per_mv: Optional[float] = None
    ) -> None:
        """
        Regenerate the trace from new settings and restart the sweep.

        The sample buffer is rebuilt, the display is cleared and the engine
        goes back to its first sweep with the pointer at 0. Cycling counters
        carry on from where they were.

        Raises:
            NonAdvancingCycleError: if the settings produce a zero-length
                cycle. All previous state is left untouched in that case.
        """
        new_params = dict(DEFAULT_ECG_PARAMS if params is None else params)
        new_custom_beats = [dict(beat) for beat in (custom_beats or [])]
        new_custom_config = normalize_custom_config(custom_config)
        new_p_pattern = normalize_pattern(p_pattern)
        new_r_pattern = normalize_pattern(r_pattern)
        new_pixels_per_mv = float(pixels_per_mv) if pixels_per_mv is not None \
            else getattr(self, "pixels_per_mv", DEFAULT_PIXELS_PER_MV)

        for name, requested, resolved in (("P", p_pattern, new_p_pattern), ("R", r_pattern, new_r_pattern)):
            if _requested_enabled(requested) and not resolved.enabled:
                logger.warning("Dynamic %s pattern disabled: interval must be > 0 and count >= 0", name)

        sample_x, sample_y, new_state = self._synthesize_points(
            new_params, new_custom_beats, new_custom_config, new_p_pattern, new_r_pattern,
            new_pixels_per_mv, self.cycling_state)

        self.params = new_params
        self.custom_beats = new_custom_beats
        self.custom_config = new_custom_config
        self.p_pattern = new_p_pattern
        self.r_pattern = new_r_pattern
        self.pixels_per_mv = new_pixels_per_mv

        self.sample_x, self.sample_y = sample_x, sample_y
        self.cycling_state = new_state
        self.display_points = [None] * len(sample_x)
        self.pointer_x = 0.0
        self.phase = FIRST_SWEEP
        self.last_error = None

    def _synthesize_points(self, params, custom_beats, custom_config, p_pattern, r_pattern,
                           pixels_per_mv, cycling_state):
        time_axis, signal, new_state, _ = synthesize_run(
            self.sweep_duration,
            params,
            custom_beats=custom_beats,
            cycling_state=cycling_state,
            p_pattern=p_pattern,
            r_pattern=r_pattern,
            custom_config=custom_config,
            sample_step=self.sample_step,
        )
        baseline_y = self.height / 2
        sample_x = time_axis * self.sweep_speed
        sample_y = baseline_y - signal * pixels_per_mv
        return sample_x, sample_y, new_state

    def _refill(self) -> None:
        try:
            sample_x, sample_y, new_state = self._synthesize_points(
                self.params, self.custom_beats, self.custom_config, self.p_pattern,
                self.r_pattern, self.pixels_per_mv, self.cycling_state)
        except NonAdvancingCycleError as e:
            self.last_error = str(e)
            logger.warning("Sweep refill failed, keeping previous trace: %s", e)
            return

        self.sample_x, self.sample_y = sample_x, sample_y
        self.cycling_state = new_state
        self.last_error = None

        # Keep the display buffer the same length as the sample buffer
        num_samples = len(sample_x)
        if len(self.display_points) < num_samples:
            self.display_points.extend([None] * (num_samples - len(self.display_points)))
        elif len(self.display_points) > num_samples:
            del self.display_points[num_samples:]
        logger.debug("Sweep refilled with %d samples (beat %d)", num_samples, new_state.beat_counter)

    def _sample_point(self, idx: int) -> Point:
        return Point(float(self.sample_x[idx]), float(self.sample_y[idx]))

    def _reveal_up_to_pointer(self) -> None:
        visible_count = int(np.searchsorted(self.sample_x, self.pointer_x, side="right"))
        for i in range(visible_count):
            if self.display_points[i] is None:
                self.display_points[i] = self._sample_point(i)

    def _refresh_erase_window(self) -> None:
        erase_start = self.pointer_x - self.erase_width / 2
        erase_end = self.pointer_x + self.erase_width / 2
        start_idx = int(np.searchsorted(self.sample_x, erase_start, side="left"))
        end_idx = int(np.searchsorted(self.sample_x, erase_end, side="right"))
        for i in range(start_idx, min(end_idx, len(self.display_points))):
            self.display_points[i] = self._sample_point(i)

    def marker_index(self) -> Optional[int]:
        """Index of the first sample at or right of the pointer, else the last sample."""
        num_samples = len(self.sample_x)
        if num_samples == 0:
            return None
        idx = int(np.searchsorted(self.sample_x, self.pointer_x, side="left"))
        return min(idx, num_samples - 1)

    def advance(self, elapsed_sec: float) -> SweepFrame:
        """
        Move the pointer by `elapsed_sec` of wall-clock time and update the
        display buffer.

        Never raises. If a refill fails the previous samples stay in use and
        the message is reported in the returned frame.
        """
        if elapsed_sec > 0:
            self.pointer_x += self.sweep_speed * elapsed_sec

        if len(self.sample_x) == 0:
            return self.frame()

        if self.phase == FIRST_SWEEP:
            self._reveal_up_to_pointer()
            if self.pointer_x >= self.width:
                self.phase = STEADY_SWEEP
                self.pointer_x = 0.0
                self._refill()
        else:
            if self.pointer_x >= self.width:
                self.pointer_x = 0.0
                self._refill()
            self._refresh_erase_window()

        return self.frame()

    def frame(self) -> SweepFrame:
        idx = self.marker_index()
        marker = self._sample_point(idx) if idx is not None else None
        return SweepFrame(
            points=list(self.display_points),
            marker=marker,
            pointer_x=self.pointer_x,
            phase=self.phase,
            error=self.last_error,
        )
