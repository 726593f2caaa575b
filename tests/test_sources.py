import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from temporal_rgb.errors import FrameUnavailable, OutOfRange  # noqa: E402
from temporal_rgb.models import Raster  # noqa: E402
from temporal_rgb.sources import ArrayFrameSource, VideoFrameSource  # noqa: E402

# BGR order, as OpenCV writes them.
RED_BGR = (0, 0, 255)
GREEN_BGR = (0, 255, 0)
BLUE_BGR = (255, 0, 0)


def write_video(path: Path, colors, fps: float = 2.0, size=(32, 32)) -> Path:
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, size)
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    try:
        for color in colors:
            frame = np.zeros((size[1], size[0], 3), dtype=np.uint8)
            frame[:] = color
            writer.write(frame)
    finally:
        writer.release()
    return path


def dominant_channel(raster: Raster) -> int:
    return int(np.argmax(raster.samples.reshape(-1, 3).mean(axis=0)))


def test_array_source_holds_latest_keyframe():
    source = ArrayFrameSource({
        1.0: np.full((1, 1, 3), 2, dtype=np.uint8),
        0.0: np.full((1, 1, 3), 1, dtype=np.uint8),
    }, duration=2.0)

    assert source.duration_seconds() == 2.0
    assert int(source.frame_at(0.0).samples[0, 0, 0]) == 1
    assert int(source.frame_at(0.999).samples[0, 0, 0]) == 1
    assert int(source.frame_at(1.0).samples[0, 0, 0]) == 2
    assert int(source.frame_at(2.0).samples[0, 0, 0]) == 2


def test_array_source_duration_defaults_to_last_keyframe():
    source = ArrayFrameSource({0.0: np.zeros((1, 1, 3)), 3.5: np.ones((1, 1, 3))})

    assert source.duration_seconds() == 3.5


@pytest.mark.parametrize("timestamp", [-0.01, 1.01, float("nan"), "later"])
def test_array_source_rejects_out_of_range_timestamps(timestamp):
    source = ArrayFrameSource({0.0: np.zeros((1, 1, 3))}, duration=1.0)

    with pytest.raises(OutOfRange):
        source.frame_at(timestamp)


def test_array_source_without_frame_before_first_keyframe():
    source = ArrayFrameSource({0.5: np.zeros((1, 1, 3))}, duration=1.0)

    with pytest.raises(FrameUnavailable):
        source.frame_at(0.25)


def test_array_source_validates_construction():
    with pytest.raises(ValueError):
        ArrayFrameSource({})
    with pytest.raises(ValueError):
        ArrayFrameSource({0.0: np.zeros((1, 1, 3)), 2.0: np.zeros((1, 1, 3))}, duration=1.0)
    with pytest.raises(ValueError):
        ArrayFrameSource({-1.0: np.zeros((1, 1, 3))})


def test_video_source_reports_geometry_and_duration(tmp_path):
    path = write_video(tmp_path / "clip.avi", [RED_BGR, GREEN_BGR, BLUE_BGR])

    with VideoFrameSource(path) as source:
        assert source.frame_count == 3
        assert source.fps == pytest.approx(2.0)
        assert source.duration_seconds() == pytest.approx(1.5)
        assert (source.width, source.height) == (32, 32)


def test_video_source_maps_timestamps_to_frame_indices(tmp_path):
    path = write_video(tmp_path / "clip.avi", [RED_BGR, GREEN_BGR, BLUE_BGR])

    with VideoFrameSource(path) as source:
        assert source.frame_index_for(0.0) == 0
        assert source.frame_index_for(0.49) == 0
        assert source.frame_index_for(0.5) == 1
        assert source.frame_index_for(1.0) == 2
        assert source.frame_index_for(1.5) == 2


def test_video_source_decodes_rgb_frames(tmp_path):
    path = write_video(tmp_path / "clip.avi", [RED_BGR, GREEN_BGR, BLUE_BGR])

    with VideoFrameSource(path) as source:
        frames = [source.frame_at(t) for t in (0.0, 0.5, 1.0)]

    assert all(frame.depth == 3 and frame.dtype == np.uint8 for frame in frames)
    assert [dominant_channel(frame) for frame in frames] == [0, 1, 2]


def test_video_source_rejects_out_of_range(tmp_path):
    path = write_video(tmp_path / "clip.avi", [RED_BGR, GREEN_BGR])

    with VideoFrameSource(path) as source:
        with pytest.raises(OutOfRange):
            source.frame_at(1.5)


def test_video_source_missing_file(tmp_path):
    with pytest.raises(FrameUnavailable):
        VideoFrameSource(tmp_path / "missing.avi")


def test_video_source_closed_capture(tmp_path):
    path = write_video(tmp_path / "clip.avi", [RED_BGR])
    source = VideoFrameSource(path)
    source.close()

    with pytest.raises(FrameUnavailable):
        source.frame_at(0.0)
