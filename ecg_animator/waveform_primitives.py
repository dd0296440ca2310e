# ecg_animator/waveform_primitives.py
import numpy as np


# --- Waveform Primitive ---
def raised_cosine_pulse(t_points, height, breadth, onset):
    """
    Raised-cosine bump used for every P, Q, R, S and T wave.

    The pulse rises from 0 to `height` and back to 0 over the window
    [onset, onset + breadth), peaking at the midpoint. Value and slope are
    zero at both edges, so abutting pulses join without discontinuities.

    Args:
        t_points: Scalar time or array of time points (seconds)
        height: Peak amplitude in mV (negative for downward deflections)
        breadth: Pulse duration in seconds
        onset: Start time of the pulse window

    Returns:
        A float for scalar input, otherwise an array shaped like `t_points`.
        Zero wherever `t` falls outside the window, and everywhere when
        `breadth` is 0.
    """
    t = np.asarray(t_points, dtype=float)
    if breadth <= 0:
        pulse = np.zeros_like(t)
    else:
        in_window = (t >= onset) & (t < onset + breadth)
        phase = 2 * np.pi * (t - onset) / breadth
        pulse = np.where(in_window, (height / 2.0) * (1 - np.cos(phase)), 0.0)

    if pulse.ndim == 0:
        return float(pulse)
    return pulse
