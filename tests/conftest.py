"""
Pytest configuration and shared fixtures for ECG animator tests.
"""
import pytest
from ecg_animator.constants import DEFAULT_ECG_PARAMS

@pytest.fixture
def default_params():
    """Default parameter set (70 bpm, one P wave per QRS)."""
    return dict(DEFAULT_ECG_PARAMS)

@pytest.fixture
def sixty_bpm_params():
    """Default morphology at 60 bpm so one cycle lasts exactly 1 second."""
    params = dict(DEFAULT_ECG_PARAMS)
    params["heart_rate"] = 60
    return params

@pytest.fixture
def r_only_params():
    """Only the R wave has height; every other wave is flat."""
    params = dict(DEFAULT_ECG_PARAMS)
    params.update({
        "heart_rate": 60,
        "h_p": 0.0, "h_q": 0.0, "h_s": 0.0, "h_t": 0.0,
        "h_r": 1.2, "b_r": 0.05,
        "n_p": 1,
    })
    return params

@pytest.fixture
def custom_beat_queue():
    """Two distinguishable custom beats."""
    return [
        {"h_r": 2.0},
        {"h_r": 0.5, "b_t": 0.2},
    ]

@pytest.fixture
def tolerance_config():
    """Standard tolerance values for numerical comparisons."""
    return {
        'timing_tolerance_sec': 1.0 / 150,  # one sample at the sweep speed
        'amplitude_tolerance_mv': 0.01,
        'float_tolerance': 1e-9,
    }
