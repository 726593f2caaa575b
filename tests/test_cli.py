import json
import os
import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from temporal_rgb import cli  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("TEMPORAL_RGB_"):
            monkeypatch.delenv(name, raising=False)


def write_gray_video(path: Path, levels, fps: float = 2.0, size=(16, 16)) -> Path:
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, size)
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    try:
        for level in levels:
            writer.write(np.full((size[1], size[0], 3), level, dtype=np.uint8))
    finally:
        writer.release()
    return path


def read_rgb(path: Path) -> np.ndarray:
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    assert image is not None, f"Expected an image at {path}"
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def test_generate_writes_composite(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [40, 120, 200])
    output = tmp_path / "out" / "composite.png"

    code = cli.main([
        "--workers", "2",
        "generate", str(video),
        "--at", "0.5",
        "--delta", "0.5",
        "--output", str(output),
    ])

    assert code == 0
    rgb = read_rgb(output)
    assert rgb.shape == (16, 16, 3)
    red, green, blue = (int(v) for v in rgb[8, 8])
    assert abs(red - 40) <= 6
    assert abs(green - 120) <= 6
    assert abs(blue - 200) <= 6


def test_generate_reports_invalid_offset(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [10, 20])

    code = cli.main([
        "generate", str(video),
        "--at", "0.5",
        "--delta", "0",
        "--output", str(tmp_path / "never.png"),
    ])

    assert code == 1
    assert not (tmp_path / "never.png").exists()


def test_generate_reports_unreadable_video(tmp_path):
    code = cli.main([
        "generate", str(tmp_path / "missing.avi"),
        "--at", "0.0",
        "--output", str(tmp_path / "never.png"),
    ])

    assert code == 1


def test_series_renders_every_stride(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [10, 60, 110, 160, 210])
    output_dir = tmp_path / "series"

    code = cli.main([
        "series", str(video),
        "--output-dir", str(output_dir),
        "--stride", "1.0",
        "--delta", "0.5",
        "--format", "jpg",
    ])

    assert code == 0
    assert sorted(p.name for p in output_dir.iterdir()) == [
        "composite_00000_0p000.jpg",
        "composite_00001_1p000.jpg",
        "composite_00002_2p000.jpg",
    ]


def test_series_uses_config_file(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [10, 60, 110, 160])
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"series": {"stride": 0.5, "workers": 1}}))
    output_dir = tmp_path / "series"

    code = cli.main([
        "--config", str(config_path),
        "series", str(video),
        "--output-dir", str(output_dir),
        "--limit", "2",
    ])

    assert code == 0
    assert len(list(output_dir.iterdir())) == 2


def test_series_rejects_non_positive_stride(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [10])

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["series", str(video), "--output-dir", str(tmp_path), "--stride", "0"])

    assert excinfo.value.code == 2


def test_info_logs_video_summary(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [10, 20, 30, 40])

    code = cli.main(["--log-file", str(tmp_path / "run.log"), "info", str(video)])

    assert code == 0
    log_text = (tmp_path / "run.log").read_text(encoding="utf-8")
    assert '"frame_count": 4' in log_text
    assert '"duration_seconds": 2.0' in log_text


def test_generate_rejects_unsupported_output_suffix(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [10, 20])
    output = tmp_path / "composite.tif"

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", str(video), "--at", "0.5", "--output", str(output)])

    assert excinfo.value.code == 2
    assert not output.exists()


def test_generate_reports_unwritable_output(tmp_path):
    video = write_gray_video(tmp_path / "clip.avi", [10, 20])
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("occupied", encoding="utf-8")

    code = cli.main([
        "generate", str(video),
        "--at", "0.5",
        "--output", str(blocker / "composite.png"),
    ])

    assert code == 1


@pytest.mark.parametrize("limit", ["0", "-1"])
def test_series_rejects_non_positive_limit(tmp_path, limit):
    video = write_gray_video(tmp_path / "clip.avi", [10])

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["series", str(video), "--output-dir", str(tmp_path), "--limit", limit])

    assert excinfo.value.code == 2
