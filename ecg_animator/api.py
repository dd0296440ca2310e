# ecg_animator/api.py
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .api_models import AdvanceRequest, CustomBeatParams, MonitorSettings, RhythmSettings, WaveformRequest
from .constants import DEFAULT_CUSTOM_BEAT, SAMPLE_STEP_SEC
from .exceptions import NonAdvancingCycleError
from .rendering import render_frame
from .rhythm_logic import CustomBeatConfig, PatternConfig, synthesize_run
from .sweep import SweepEngine

app = FastAPI()

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def rhythm_kwargs(settings: RhythmSettings) -> dict:
    """Unpack request settings into the keyword arguments the generators take."""
    return {
        "params": settings.params.model_dump(),
        "custom_beats": [beat.model_dump(exclude_none=True) for beat in settings.custom_beats.beats],
        "custom_config": CustomBeatConfig(
            enabled=settings.custom_beats.enabled,
            repeat_interval=settings.custom_beats.repeat_interval,
        ),
        "p_pattern": PatternConfig(**settings.p_pattern.model_dump()),
        "r_pattern": PatternConfig(**settings.r_pattern.model_dump()),
    }


def get_monitor() -> SweepEngine:
    if getattr(app.state, "monitor", None) is None:
        app.state.monitor = SweepEngine()
    return app.state.monitor


@app.post("/generate_waveform")
async def generate_waveform(request: WaveformRequest):
    kwargs = rhythm_kwargs(request)
    try:
        time_axis, ecg_signal, cycling_state, beats = synthesize_run(
            request.duration_sec,
            kwargs["params"],
            custom_beats=kwargs["custom_beats"],
            p_pattern=kwargs["p_pattern"],
            r_pattern=kwargs["r_pattern"],
            custom_config=kwargs["custom_config"],
            sample_step=SAMPLE_STEP_SEC,
        )
    except NonAdvancingCycleError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "time_axis": time_axis.tolist(),
        "ecg_signal": ecg_signal.tolist(),
        "beats_generated": [beat._asdict() for beat in beats],
        "cycling_state": cycling_state._asdict(),
    }


@app.post("/monitor/apply")
async def apply_monitor_settings(settings: MonitorSettings):
    monitor = get_monitor()
    try:
        monitor.apply_parameters(pixels_per_mv=settings.pixels_per_mv, **rhythm_kwargs(settings))
    except NonAdvancingCycleError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return render_frame(monitor.frame())


@app.post("/monitor/advance")
async def advance_monitor(request: AdvanceRequest):
    frame = get_monitor().advance(request.elapsed_sec)
    return render_frame(frame)


@app.get("/monitor/state")
async def get_monitor_state():
    monitor = get_monitor()
    return {
        "pointer_x": monitor.pointer_x,
        "phase": monitor.phase,
        "num_samples": len(monitor.sample_x),
        "cycling_state": monitor.cycling_state._asdict(),
        "width": monitor.width,
        "height": monitor.height,
        "last_error": monitor.last_error,
    }


@app.get("/custom_beats/template", response_model=CustomBeatParams)
async def get_custom_beat_template():
    """Starting values for a newly added custom beat."""
    return CustomBeatParams(**DEFAULT_CUSTOM_BEAT)
