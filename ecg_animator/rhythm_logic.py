# ecg_animator/rhythm_logic.py
import logging
import numpy as np
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from .beat_generation import sanitize_beat_params, synthesize_cycle
from .constants import (
    DEFAULT_CUSTOM_REPEAT_INTERVAL, PARAMETER_KEYS, SAMPLE_STEP_SEC
)
from .exceptions import NonAdvancingCycleError

logger = logging.getLogger(__name__)


# --- Beat Cycling State ---
class CyclingState(NamedTuple):
    """Counters carried from one synthesized cycle to the next."""
    r_cycle_counter: int = 0
    p_cycle_counter: int = 0
    beat_counter: int = 0
    custom_idx: int = 0
    waiting_normal_beats: int = 0


class PatternConfig(NamedTuple):
    """Periodic wave-count override: every `interval` beats use `count` waves."""
    enabled: bool = False
    count: int = 0
    interval: int = 0


class CustomBeatConfig(NamedTuple):
    enabled: bool = False
    repeat_interval: int = DEFAULT_CUSTOM_REPEAT_INTERVAL


class BeatRecord(NamedTuple):
    start_time: float
    duration: float
    p_count: int
    r_count: int
    custom_index: Optional[int] = None


def normalize_pattern(pattern: Optional[PatternConfig]) -> PatternConfig:
    """Disable patterns whose interval is not positive or whose count is negative."""
    if pattern is None:
        return PatternConfig()
    if isinstance(pattern, dict):
        pattern = PatternConfig(**pattern)
    elif not isinstance(pattern, PatternConfig):
        pattern = PatternConfig(*pattern)
    if not pattern.enabled:
        return pattern
    if pattern.interval is None or pattern.count is None or pattern.interval <= 0 or pattern.count < 0:
        return PatternConfig(False, 0, 0)
    return PatternConfig(True, int(pattern.count), int(pattern.interval))


def normalize_custom_config(config: Optional[CustomBeatConfig]) -> CustomBeatConfig:
    if config is None:
        return CustomBeatConfig()
    if isinstance(config, dict):
        config = CustomBeatConfig(**config)
    elif not isinstance(config, CustomBeatConfig):
        config = CustomBeatConfig(*config)
    return CustomBeatConfig(bool(config.enabled), max(0, int(config.repeat_interval or 0)))


def merge_custom_beat(base: Dict[str, float], custom_beat: Dict[str, float]) -> Dict[str, float]:
    """Overlay the fields a custom beat sets onto the base parameter set."""
    merged = dict(base)
    merged.update({
        key: value for key, value in custom_beat.items()
        if key in PARAMETER_KEYS and value is not None
    })
    return merged


def _custom_beat_due(custom_beats: Sequence[Dict[str, float]], state: CyclingState,
                     custom_config: CustomBeatConfig) -> bool:
    return custom_config.enabled and len(custom_beats) > 0 and state.waiting_normal_beats == 0


def _apply_pattern(pattern: PatternConfig, counter: int, default_count: int) -> Tuple[int, int]:
    if not pattern.enabled:
        return default_count, counter
    counter += 1
    if counter >= pattern.interval:
        return pattern.count, 0
    return default_count, counter


def resolve_next_beat(
    base: Dict[str, float],
    custom_beats: Optional[Sequence[Dict[str, float]]],
    cycling_state: CyclingState,
    p_pattern: Optional[PatternConfig] = None,
    r_pattern: Optional[PatternConfig] = None,
    custom_config: Optional[CustomBeatConfig] = None
) -> Tuple[Dict[str, float], int, int, CyclingState]:
    """
    Work out the effective parameters for the next cardiac cycle.

    Three independent sources of variation are combined:
    - the custom beat queue, whose fields override `base` for one beat each,
      followed by `repeat_interval` normal beats once the queue wraps;
    - the dynamic P pattern, replacing the P-wave count every `interval` beats;
    - the dynamic R pattern, replacing the QRS count (normally 1) every
      `interval` beats.

    The P and R counts are resolved the same way whichever parameter set is
    active. `cycling_state` is not modified; the updated counters are
    returned as a new value.

    Returns:
        (effective_params, cur_p_count, cur_r_count, new_cycling_state)
    """
    custom_beats = custom_beats or []
    custom_config = normalize_custom_config(custom_config)
    p_pattern = normalize_pattern(p_pattern)
    r_pattern = normalize_pattern(r_pattern)

    custom_idx = cycling_state.custom_idx
    waiting_normal_beats = cycling_state.waiting_normal_beats
    current = base

    if custom_config.enabled:
        if _custom_beat_due(custom_beats, cycling_state, custom_config):
            custom_idx = custom_idx % len(custom_beats)
            current = merge_custom_beat(base, custom_beats[custom_idx])
            custom_idx += 1
            if custom_idx >= len(custom_beats):
                custom_idx = 0
                waiting_normal_beats = custom_config.repeat_interval
                logger.debug("Custom beat queue wrapped; %d normal beats follow", waiting_normal_beats)
        elif waiting_normal_beats > 0:
            waiting_normal_beats -= 1

    effective = sanitize_beat_params(current)

    cur_p_count, p_cycle_counter = _apply_pattern(
        p_pattern, cycling_state.p_cycle_counter, effective["n_p"])
    cur_r_count, r_cycle_counter = _apply_pattern(
        r_pattern, cycling_state.r_cycle_counter, 1)

    new_state = CyclingState(
        r_cycle_counter=r_cycle_counter,
        p_cycle_counter=p_cycle_counter,
        beat_counter=cycling_state.beat_counter + 1,
        custom_idx=custom_idx,
        waiting_normal_beats=waiting_normal_beats,
    )
    return effective, cur_p_count, cur_r_count, new_state


def synthesize_run(
    total_duration: float,
    base_params: Dict[str, float],
    custom_beats: Optional[Sequence[Dict[str, float]]] = None,
    cycling_state: Optional[CyclingState] = None,
    p_pattern: Optional[PatternConfig] = None,
    r_pattern: Optional[PatternConfig] = None,
    custom_config: Optional[CustomBeatConfig] = None,
    sample_step: float = SAMPLE_STEP_SEC
) -> Tuple[np.ndarray, np.ndarray, CyclingState, List[BeatRecord]]:
    """
    Synthesize consecutive cycles until their total duration exceeds
    `total_duration`.

    Each cycle is shifted by the time already elapsed, and the cycling
    counters are threaded from one beat to the next so patterns continue
    across calls when the returned state is passed back in.

    Returns:
        - time_axis: Sample times starting at 0
        - signal: Amplitudes in mV
        - cycling_state: Counters after the last synthesized beat
        - beats: One BeatRecord per synthesized cycle

    Raises:
        NonAdvancingCycleError: if any beat reduces to a zero-length cycle
    """
    if total_duration < 0:
        raise ValueError("total_duration must be non-negative")

    state = cycling_state if cycling_state is not None else CyclingState()
    custom_beats = list(custom_beats or [])
    custom_config = normalize_custom_config(custom_config)

    time_chunks: List[np.ndarray] = []
    signal_chunks: List[np.ndarray] = []
    beats: List[BeatRecord] = []
    elapsed = 0.0

    while elapsed <= total_duration:
        custom_index = state.custom_idx % len(custom_beats) \
            if _custom_beat_due(custom_beats, state, custom_config) else None
        params, cur_p_count, cur_r_count, next_state = resolve_next_beat(
            base_params, custom_beats, state, p_pattern, r_pattern, custom_config)
        try:
            time_axis, signal, cycle_duration = synthesize_cycle(
                params, cur_p_count, cur_r_count, elapsed, sample_step)
        except NonAdvancingCycleError as e:
            raise NonAdvancingCycleError(
                f"Beat {next_state.beat_counter} does not advance time: {e}",
                beat_number=next_state.beat_counter,
            ) from e

        time_chunks.append(time_axis)
        signal_chunks.append(signal)
        beats.append(BeatRecord(elapsed, cycle_duration, cur_p_count, cur_r_count, custom_index))
        elapsed += cycle_duration
        state = next_state

    full_time_axis = np.concatenate(time_chunks) if time_chunks else np.array([])
    full_signal = np.concatenate(signal_chunks) if signal_chunks else np.array([])
    logger.debug("Synthesized %d beats (%.3f s, %d samples)", len(beats), elapsed, len(full_signal))
    return full_time_axis, full_signal, state, beats
