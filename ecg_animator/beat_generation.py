# ecg_animator/beat_generation.py
import logging
import math
import numpy as np
from typing import Dict, List, Tuple

from .constants import (
    BASELINE_MV, DEFAULT_ECG_PARAMS, DEFAULT_HEART_RATE_BPM, DURATION_KEYS,
    PARAMETER_KEYS, SAMPLE_STEP_SEC, WAVE_PRECEDENCE
)
from .exceptions import NonAdvancingCycleError
from .waveform_primitives import raised_cosine_pulse

logger = logging.getLogger(__name__)


def _as_number(value, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def sanitize_beat_params(params: Dict[str, float]) -> Dict[str, float]:
    """
    Return a complete, numerically safe copy of a parameter set.

    Missing keys take their defaults, breadths and segment lengths are clamped
    to >= 0, heights that are not numbers become 0, the P-wave count is a
    non-negative integer and a zero, negative or missing heart rate falls back
    to 60 bpm.
    """
    sanitized = {}
    for key in PARAMETER_KEYS:
        if key == "heart_rate":
            rate = _as_number(params.get(key), DEFAULT_HEART_RATE_BPM)
            if rate <= 0:
                logger.debug("Heart rate %r invalid, using %.0f bpm", params.get(key), DEFAULT_HEART_RATE_BPM)
                rate = DEFAULT_HEART_RATE_BPM
            sanitized[key] = rate
            continue
        raw = params.get(key, DEFAULT_ECG_PARAMS[key])
        if key == "n_p":
            sanitized[key] = max(0, int(_as_number(raw, 0.0)))
        elif key in DURATION_KEYS:
            sanitized[key] = max(0.0, _as_number(raw, 0.0))
        else:
            sanitized[key] = _as_number(raw, 0.0)
    return sanitized


def unscaled_cycle_length(params: Dict[str, float], cur_p_count: int, cur_r_count: int) -> float:
    has_qrs = 1 if cur_r_count > 0 else 0
    return (cur_p_count * (params["b_p"] + params["l_pq"])
            + (params["b_q"] + params["b_r"] + params["b_s"]) * has_qrs
            + params["l_st"] + params["b_t"] + params["l_tp"])


def calculate_wave_onsets(
    scaled: Dict[str, float],
    cur_p_count: int,
    cur_r_count: int,
    start_time: float = 0.0
) -> Dict[str, List[float]]:
    """
    Lay out onset times for every wave of one cycle, left to right.

    P waves are spaced by b_p + l_pq. Each QRS repetition places Q, R and S
    back to back, with half a PQ segment between repetitions (not after the
    last one). The ST segment then precedes a single T wave.
    """
    offset = start_time
    p_spacing = scaled["b_p"] + scaled["l_pq"]
    onsets = {"P": [offset + i * p_spacing for i in range(cur_p_count)],
              "Q": [], "R": [], "S": [], "T": []}
    offset += cur_p_count * p_spacing

    for i in range(cur_r_count):
        onsets["Q"].append(offset)
        offset += scaled["b_q"]
        onsets["R"].append(offset)
        offset += scaled["b_r"]
        onsets["S"].append(offset)
        offset += scaled["b_s"]
        if i < cur_r_count - 1:
            offset += scaled["l_pq"] / 2

    offset += scaled["l_st"]
    onsets["T"].append(offset)
    return onsets


def superimpose_waves(
    time_axis: np.ndarray,
    onsets: Dict[str, List[float]],
    heights: Dict[str, float],
    breadths: Dict[str, float]
) -> np.ndarray:
    """
    Evaluate every wave pulse over a sorted time axis.

    Waves are visited in P, Q, R, S, T order and a sample keeps the first
    non-zero amplitude it receives. A pulse that is exactly zero inside its
    own window leaves the sample open for later waves.

    Each onset's window [onset, onset + breadth) is located by binary search,
    so the cost follows the number of samples, not the number of onsets.
    """
    signal = np.full(len(time_axis), BASELINE_MV)
    resolved = np.zeros(len(time_axis), dtype=bool)

    for wave in WAVE_PRECEDENCE:
        breadth = breadths.get(wave, 0.0)
        wave_onsets = np.asarray(onsets.get(wave, []), dtype=float)
        if breadth <= 0 or wave_onsets.size == 0:
            continue
        starts = np.searchsorted(time_axis, wave_onsets, side="left")
        ends = np.searchsorted(time_axis, wave_onsets + breadth, side="left")
        for i in np.flatnonzero(ends > starts):
            window_idx = np.arange(starts[i], ends[i])
            window_idx = window_idx[~resolved[window_idx]]
            if window_idx.size == 0:
                continue
            values = raised_cosine_pulse(time_axis[window_idx], heights[wave], breadth, wave_onsets[i])
            hit = values != 0
            signal[window_idx[hit]] = values[hit]
            resolved[window_idx[hit]] = True

    return signal


def synthesize_cycle(
    params: Dict[str, float],
    cur_p_count: int,
    cur_r_count: int,
    start_time: float = 0.0,
    sample_step: float = SAMPLE_STEP_SEC
) -> Tuple[np.ndarray, np.ndarray, float]:
    """
    Synthesize one cardiac cycle of samples.

    Every breadth and segment is scaled so the cycle lasts exactly one heart
    period (60 / heart_rate), however many P waves or QRS repetitions it
    contains. Samples are taken every `sample_step` seconds from `start_time`
    up to (not including) the end of the cycle.

    Where wave windows overlap the first wave in P, Q, R, S, T order that
    gives a non-zero amplitude wins; a pulse that is exactly zero inside its
    own window lets the next wave type through.

    Args:
        params: Effective parameter set for this beat
        cur_p_count: Number of P waves in this beat
        cur_r_count: Number of QRS repetitions in this beat (0 drops the QRS)
        start_time: Time offset of the first sample
        sample_step: Sampling interval in seconds

    Returns:
        - time_axis: Sample times
        - signal: Amplitudes in mV
        - cycle_duration: Realized cycle duration in seconds

    Raises:
        NonAdvancingCycleError: if the parameters give a zero-length cycle
    """
    if sample_step <= 0:
        raise ValueError("sample_step must be positive")

    p = sanitize_beat_params(params)
    cur_p_count = max(0, int(cur_p_count))
    cur_r_count = max(0, int(cur_r_count))

    base_length = unscaled_cycle_length(p, cur_p_count, cur_r_count)
    if not math.isfinite(base_length) or base_length <= 0:
        raise NonAdvancingCycleError(
            f"Cycle length is zero (P count {cur_p_count}, R count {cur_r_count}); "
            "at least one breadth or segment must be positive"
        )

    heart_period = 60.0 / p["heart_rate"]
    scale_factor = heart_period / base_length
    scaled = {key: p[key] * scale_factor for key in DURATION_KEYS}

    has_qrs = 1 if cur_r_count > 0 else 0
    cycle_duration = (cur_p_count * (scaled["b_p"] + scaled["l_pq"])
                      + (scaled["b_q"] + scaled["b_r"] + scaled["b_s"]) * has_qrs
                      + scaled["l_st"] + scaled["b_t"] + scaled["l_tp"])

    onsets = calculate_wave_onsets(scaled, cur_p_count, cur_r_count, start_time)

    end_time = start_time + cycle_duration
    num_candidates = int(np.ceil(cycle_duration / sample_step)) + 1
    time_axis = start_time + np.arange(num_candidates) * sample_step
    time_axis = time_axis[time_axis < end_time]

    heights = {wave: p[f"h_{wave.lower()}"] for wave in WAVE_PRECEDENCE}
    breadths = {wave: scaled[f"b_{wave.lower()}"] for wave in WAVE_PRECEDENCE}
    signal = superimpose_waves(time_axis, onsets, heights, breadths)

    return time_axis, signal, cycle_duration
