"""
Integration tests for ECG animator API endpoints.
Tests waveform generation, the monitor sweep endpoints and response formats.
"""
import pytest
import numpy as np
from fastapi.testclient import TestClient
from ecg_animator.api import app
from ecg_animator.constants import DEFAULT_ECG_PARAMS, DISPLAY_HEIGHT, DISPLAY_WIDTH, SAMPLE_STEP_SEC
from main import app as main_app

FLAT_BEAT = {key: 0.0 for key in ("b_p", "b_q", "b_r", "b_s", "b_t", "l_pq", "l_st", "l_tp")}

class TestWaveformEndpoint:
    """Test the one-shot waveform generation endpoint."""

    @pytest.fixture
    def client(self):
        """Create test client for API testing."""
        return TestClient(app)

    @pytest.mark.integration
    def test_default_request(self, client):
        response = client.post("/generate_waveform", json={"duration_sec": 5.0})

        assert response.status_code == 200
        data = response.json()

        assert "time_axis" in data
        assert "ecg_signal" in data
        assert "beats_generated" in data
        assert "cycling_state" in data

        time_axis = np.array(data["time_axis"])
        signal = np.array(data["ecg_signal"])
        assert len(time_axis) == len(signal)
        assert np.all(np.diff(time_axis) > 0)
        # At least the requested duration, sampled at the sweep rate
        assert time_axis[-1] >= 5.0 - SAMPLE_STEP_SEC
        assert signal.max() > 1.0, "R peaks missing from signal"

        beats = data["beats_generated"]
        assert data["cycling_state"]["beat_counter"] == len(beats)
        assert set(beats[0]) == {"start_time", "duration", "p_count", "r_count", "custom_index"}

    @pytest.mark.integration
    def test_r_pattern_in_response(self, client):
        payload = {
            "duration_sec": 5.5,
            "params": {"heart_rate": 60},
            "r_pattern": {"enabled": True, "count": 3, "interval": 2},
        }
        response = client.post("/generate_waveform", json=payload)

        assert response.status_code == 200
        r_counts = [beat["r_count"] for beat in response.json()["beats_generated"]]
        assert r_counts == [1, 3, 1, 3, 1, 3]

    @pytest.mark.integration
    def test_custom_beats_in_response(self, client):
        payload = {
            "duration_sec": 3.5,
            "params": {"heart_rate": 60},
            "custom_beats": {"enabled": True, "repeat_interval": 1, "beats": [{"h_r": 2.0}]},
        }
        response = client.post("/generate_waveform", json=payload)

        assert response.status_code == 200
        beats = response.json()["beats_generated"]
        assert [beat["custom_index"] for beat in beats] == [0, None, 0, None]

    @pytest.mark.integration
    def test_non_advancing_cycle_rejected(self, client):
        payload = {"params": dict(FLAT_BEAT, heart_rate=60)}
        response = client.post("/generate_waveform", json=payload)

        assert response.status_code == 422
        assert response.json()["detail"].startswith("Beat 1 ")

    @pytest.mark.integration
    def test_invalid_duration_rejected(self, client):
        response = client.post("/generate_waveform", json={"duration_sec": -1})
        assert response.status_code == 422

    @pytest.mark.integration
    @pytest.mark.parametrize("payload", [
        {"r_pattern": {"enabled": True, "count": 50000, "interval": 1}},
        {"params": {"n_p": 2000}},
        {"custom_beats": {"enabled": True, "beats": [{"n_p": 11}]}},
    ])
    def test_excessive_wave_counts_rejected(self, client, payload):
        response = client.post("/generate_waveform", json=payload)
        assert response.status_code == 422

    @pytest.mark.integration
    def test_custom_beat_template(self, client):
        response = client.get("/custom_beats/template")

        assert response.status_code == 200
        template = response.json()
        assert template["h_r"] == DEFAULT_ECG_PARAMS["h_r"]
        assert template["l_tp"] == DEFAULT_ECG_PARAMS["l_tp"]
        assert template["heart_rate"] is None
        assert template["n_p"] is None


class TestMonitorEndpoints:
    """Test the sweep monitor endpoints."""

    @pytest.fixture
    def client(self):
        """Test client with a freshly applied monitor."""
        client = TestClient(app)
        response = client.post("/monitor/apply", json={})
        assert response.status_code == 200
        return client

    @pytest.mark.integration
    def test_apply_starts_empty_first_sweep(self, client):
        response = client.post("/monitor/apply", json={"params": {"heart_rate": 80}})

        assert response.status_code == 200
        data = response.json()
        assert data["path"] == ""
        assert data["drawn_points"] == 0
        assert data["phase"] == "first_sweep"
        assert data["pointer_x"] == 0.0
        assert data["marker"]["cx"] == 0.0

    @pytest.mark.integration
    def test_advance_reveals_trace(self, client):
        response = client.post("/monitor/advance", json={"elapsed_sec": 1.0})

        assert response.status_code == 200
        data = response.json()
        assert data["pointer_x"] == pytest.approx(150.0)
        assert data["path"].startswith("M 0 ")
        assert data["drawn_points"] > 0
        assert data["marker"]["r"] == 6
        assert data["error"] is None

    @pytest.mark.integration
    def test_full_sweep_switches_phase(self, client):
        client.post("/monitor/advance", json={"elapsed_sec": (DISPLAY_WIDTH + 1) / 150})
        response = client.post("/monitor/advance", json={"elapsed_sec": 0.1})

        data = response.json()
        assert data["phase"] == "steady_sweep"
        assert data["pointer_x"] == pytest.approx(15.0)

    @pytest.mark.integration
    def test_state_endpoint(self, client):
        response = client.get("/monitor/state")

        assert response.status_code == 200
        data = response.json()
        assert data["width"] == DISPLAY_WIDTH
        assert data["height"] == DISPLAY_HEIGHT
        assert data["num_samples"] > 0
        assert data["cycling_state"]["beat_counter"] > 0
        assert data["last_error"] is None

    @pytest.mark.integration
    def test_failed_apply_keeps_previous_monitor(self, client):
        before = client.get("/monitor/state").json()

        response = client.post("/monitor/apply", json={"params": dict(FLAT_BEAT, heart_rate=60)})

        assert response.status_code == 422
        assert client.get("/monitor/state").json() == before

    @pytest.mark.integration
    def test_negative_elapsed_rejected(self, client):
        response = client.post("/monitor/advance", json={"elapsed_sec": -0.5})
        assert response.status_code == 422


class TestMainApp:
    """Test the root application wrapper."""

    @pytest.fixture
    def client(self):
        return TestClient(main_app)

    @pytest.mark.integration
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.integration
    def test_api_is_mounted(self, client):
        response = client.post("/api/generate_waveform", json={"duration_sec": 1.0})
        assert response.status_code == 200
        assert len(response.json()["time_axis"]) > 0
