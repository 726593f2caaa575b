import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from temporal_rgb.config import Settings, load_settings  # noqa: E402


def test_defaults_without_file_or_environment():
    settings = load_settings(None, env={})

    assert settings.delta_t == 0.5
    assert settings.fetch_workers == 3
    assert settings.series.stride == 1.0
    assert settings.series.workers >= 1
    assert settings.output.format == "png"
    assert settings.output.jpeg_quality == 95
    assert settings.logging.level == "INFO"
    assert settings.logging.file is None


def test_environment_overrides():
    env = {
        "TEMPORAL_RGB_DELTA_T": "0.25",
        "TEMPORAL_RGB_FETCH_WORKERS": "1",
        "TEMPORAL_RGB_SERIES_STRIDE": "2.5",
        "TEMPORAL_RGB_SERIES_WORKERS": "6",
        "TEMPORAL_RGB_OUTPUT_FORMAT": "JPG",
        "TEMPORAL_RGB_JPEG_QUALITY": "80",
        "TEMPORAL_RGB_LOG_LEVEL": "debug",
        "TEMPORAL_RGB_LOG_FILE": "logs/run.log",
    }

    settings = load_settings(None, env=env)

    assert settings.delta_t == 0.25
    assert settings.fetch_workers == 1
    assert settings.series.stride == 2.5
    assert settings.series.workers == 6
    assert settings.output.format == "jpg"
    assert settings.output.jpeg_quality == 80
    assert settings.logging.level == "DEBUG"
    assert settings.logging.file == Path("logs/run.log")


def test_json_file_takes_precedence_over_environment(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "delta_t": 1.5,
        "series": {"stride": 4},
        "output": {"format": "png", "jpeg_quality": 500},
    }))

    settings = load_settings(config_path, env={"TEMPORAL_RGB_DELTA_T": "0.1"})

    assert settings.delta_t == 1.5
    assert settings.series.stride == 4.0
    assert settings.output.jpeg_quality == 100


def test_unparseable_values_fall_back_to_defaults(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "delta_t": "soon",
        "fetch_workers": -2,
        "series": {"stride": 0, "workers": "many"},
        "output": {"format": "gif"},
        "logging": {"level": "chatty"},
    }))

    settings = load_settings(config_path, env={})

    assert settings == Settings()


def test_non_positive_offset_is_kept_for_the_pipeline_to_reject():
    settings = load_settings(None, env={"TEMPORAL_RGB_DELTA_T": "-1"})

    assert settings.delta_t == -1.0


def test_missing_file_uses_environment(tmp_path):
    settings = load_settings(tmp_path / "absent.json", env={"TEMPORAL_RGB_FETCH_WORKERS": "2"})

    assert settings.fetch_workers == 2


def test_non_object_root_is_rejected(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2, 3]")

    with pytest.raises(ValueError):
        load_settings(config_path, env={})
