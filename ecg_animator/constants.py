# --- Display & Sweep Constants ---
PIXELS_PER_SECOND = 150  # sweep speed, display units per second
POINTER_RADIUS = 6
ERASE_WIDTH = 12
DISPLAY_WIDTH = 1000
DISPLAY_HEIGHT = 400
DEFAULT_PIXELS_PER_MV = 100

# One sample per display unit at the sweep speed
SAMPLE_STEP_SEC = 1.0 / PIXELS_PER_SECOND
BASELINE_MV = 0.0

# --- Rate Constants ---
DEFAULT_HEART_RATE_BPM = 60.0

# --- Parameter Set Definitions ---
# Heights in mV, breadths and segment lengths in seconds.
WAVE_HEIGHT_KEYS = ("h_p", "h_q", "h_r", "h_s", "h_t")
WAVE_BREADTH_KEYS = ("b_p", "b_q", "b_r", "b_s", "b_t")
SEGMENT_KEYS = ("l_pq", "l_st", "l_tp")
DURATION_KEYS = WAVE_BREADTH_KEYS + SEGMENT_KEYS
PARAMETER_KEYS = ("heart_rate",) + WAVE_HEIGHT_KEYS + DURATION_KEYS + ("n_p",)

DEFAULT_ECG_PARAMS = {
    "heart_rate": 70.0,
    "h_p": 0.15, "b_p": 0.08,
    "h_q": -0.1, "b_q": 0.025,
    "h_r": 1.2, "b_r": 0.05,
    "h_s": -0.25, "b_s": 0.025,
    "h_t": 0.2, "b_t": 0.16,
    "l_pq": 0.08, "l_st": 0.12, "l_tp": 0.3,
    "n_p": 1,
}

# Template used when a new custom beat is added to the queue
DEFAULT_CUSTOM_BEAT = {
    key: value for key, value in DEFAULT_ECG_PARAMS.items()
    if key not in ("heart_rate", "n_p")
}

# --- Beat Pattern Defaults ---
DEFAULT_R_PATTERN = {"enabled": False, "count": 2, "interval": 5}
DEFAULT_P_PATTERN = {"enabled": False, "count": 0, "interval": 3}
DEFAULT_CUSTOM_REPEAT_INTERVAL = 10

# Upper bound on P waves or QRS repetitions accepted per beat from requests
MAX_WAVES_PER_BEAT = 10

# Wave evaluation order; earlier waves win where windows overlap
WAVE_PRECEDENCE = ("P", "Q", "R", "S", "T")
