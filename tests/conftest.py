"""Shared fixtures for the fpstrack test suite."""

import pytest

from fpstrack.core.config import reset_config

SCENARIO_A = (
    "2025.04.04 23:42:13 Debug - [MWG_FPS] Alice FPS: 45\n"
    "2025.04.04 23:42:14 Debug - [MWG_FPS] Alice FPS: 50"
)

MIXED_LOG = "\n".join(
    [
        "Unity player log start",
        "2025.04.04 23:42:15 Debug      -  [MWG_FPS] Bob FPS: 30",
        "2025.04.04 23:42:13 Debug      -  [MWG_PlayerCount] 2",
        "2025.04.04 23:42:14 Debug      -  [MWG_FPS] Alice FPS: 60",
        "2025.04.04 23:42:16 Info       -  [Network] reconnecting",
        "2025.04.04 23:42:17 Debug      -  [MWG_PlayerCount] 3",
        "2025.04.04 23:42:18 Debug      -  [MWG_FPS] Alice FPS: 58",
        "",
    ]
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from config files and FPSTRACK_* variables."""
    for name in (
        "FPSTRACK_PREFIX",
        "FPSTRACK_ENCODING",
        "FPSTRACK_WINDOW_MS",
        "FPSTRACK_SMOOTHING",
        "FPSTRACK_MAX_SAMPLES",
        "FPSTRACK_DEBOUNCE_SECONDS",
        "FPSTRACK_EXPORT_FORMAT",
        "FPSTRACK_LOG_LEVEL",
        "FPSTRACK_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("fpstrack.core.config.get_default_config_paths", lambda: [])
    reset_config()
    yield
    reset_config()


@pytest.fixture
def scenario_a_text():
    return SCENARIO_A


@pytest.fixture
def mixed_log_text():
    return MIXED_LOG


@pytest.fixture
def mixed_log_file(tmp_path):
    path = tmp_path / "output_log.txt"
    path.write_text(MIXED_LOG, encoding="utf-8")
    return path
