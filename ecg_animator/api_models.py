# ecg_animator/api_models.py
from pydantic import BaseModel, Field
from typing import List, Optional

from .constants import (
    DEFAULT_CUSTOM_REPEAT_INTERVAL, DEFAULT_ECG_PARAMS, DEFAULT_P_PATTERN,
    DEFAULT_PIXELS_PER_MV, DEFAULT_R_PATTERN, MAX_WAVES_PER_BEAT
)


class ECGParams(BaseModel):
    # Negative durations are accepted here and clamped to 0 during synthesis.
    # Wave counts are capped at MAX_WAVES_PER_BEAT.
    heart_rate: float = Field(DEFAULT_ECG_PARAMS["heart_rate"], description="Heart rate in bpm. 0 falls back to 60 bpm.")

    h_p: float = Field(DEFAULT_ECG_PARAMS["h_p"], description="P wave height (mV)")
    b_p: float = Field(DEFAULT_ECG_PARAMS["b_p"], description="P wave breadth (sec)")
    h_q: float = Field(DEFAULT_ECG_PARAMS["h_q"], description="Q wave height (mV)")
    b_q: float = Field(DEFAULT_ECG_PARAMS["b_q"], description="Q wave breadth (sec)")
    h_r: float = Field(DEFAULT_ECG_PARAMS["h_r"], description="R wave height (mV)")
    b_r: float = Field(DEFAULT_ECG_PARAMS["b_r"], description="R wave breadth (sec)")
    h_s: float = Field(DEFAULT_ECG_PARAMS["h_s"], description="S wave height (mV)")
    b_s: float = Field(DEFAULT_ECG_PARAMS["b_s"], description="S wave breadth (sec)")
    h_t: float = Field(DEFAULT_ECG_PARAMS["h_t"], description="T wave height (mV)")
    b_t: float = Field(DEFAULT_ECG_PARAMS["b_t"], description="T wave breadth (sec)")

    l_pq: float = Field(DEFAULT_ECG_PARAMS["l_pq"], description="PQ segment length (sec)")
    l_st: float = Field(DEFAULT_ECG_PARAMS["l_st"], description="ST segment length (sec)")
    l_tp: float = Field(DEFAULT_ECG_PARAMS["l_tp"], description="TP segment length (sec)")

    n_p: int = Field(DEFAULT_ECG_PARAMS["n_p"], ge=0, le=MAX_WAVES_PER_BEAT, description="Default P waves per QRS complex")


class CustomBeatParams(BaseModel):
    """Partial override of ECGParams; unset fields keep the base value."""
    heart_rate: Optional[float] = None
    h_p: Optional[float] = None
    b_p: Optional[float] = None
    h_q: Optional[float] = None
    b_q: Optional[float] = None
    h_r: Optional[float] = None
    b_r: Optional[float] = None
    h_s: Optional[float] = None
    b_s: Optional[float] = None
    h_t: Optional[float] = None
    b_t: Optional[float] = None
    l_pq: Optional[float] = None
    l_st: Optional[float] = None
    l_tp: Optional[float] = None
    n_p: Optional[int] = Field(None, ge=0, le=MAX_WAVES_PER_BEAT)


class DynamicPatternSettings(BaseModel):
    enabled: bool = Field(False, description="Enable the periodic wave-count override")
    count: int = Field(0, ge=0, le=MAX_WAVES_PER_BEAT, description="Number of waves on trigger beats (0 drops them)")
    interval: int = Field(0, description="Trigger every N beats. Values <= 0 disable the pattern.")


class CustomBeatSequence(BaseModel):
    enabled: bool = Field(False, description="Enable the custom beat sequence")
    repeat_interval: int = Field(DEFAULT_CUSTOM_REPEAT_INTERVAL, description="Normal beats emitted after the sequence before it repeats")
    beats: List[CustomBeatParams] = Field(default_factory=list)


class RhythmSettings(BaseModel):
    params: ECGParams = Field(default_factory=ECGParams)
    p_pattern: DynamicPatternSettings = Field(default_factory=lambda: DynamicPatternSettings(**DEFAULT_P_PATTERN))
    r_pattern: DynamicPatternSettings = Field(default_factory=lambda: DynamicPatternSettings(**DEFAULT_R_PATTERN))
    custom_beats: CustomBeatSequence = Field(default_factory=CustomBeatSequence)


class WaveformRequest(RhythmSettings):
    duration_sec: float = Field(10.0, gt=0, le=600, description="Minimum duration of the generated trace (sec)")


class MonitorSettings(RhythmSettings):
    pixels_per_mv: float = Field(DEFAULT_PIXELS_PER_MV, gt=0, description="Vertical scale in display units per mV")


class AdvanceRequest(BaseModel):
    elapsed_sec: float = Field(..., ge=0, le=10.0, description="Wall-clock time since the previous tick (sec)")
