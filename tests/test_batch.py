import os

import numpy as np
import pytest
from PIL import Image

from mass_editor.processing.batch import output_path_for, process_batch
from mass_editor.processing.photo_presets import Preset


@pytest.fixture
def input_files(tmp_path):
    paths = []
    for name, color in (("a", (200, 150, 110)), ("b", (40, 90, 160))):
        path = tmp_path / f"{name}.png"
        Image.fromarray(np.full((16, 24, 3), color, dtype=np.uint8)).save(path)
        paths.append(str(path))
    return paths


def test_output_path_for():
    assert output_path_for("/photos/IMG_001.png", "/out") == os.path.join("/out", "edited_IMG_001.jpg")


def test_process_batch(tmp_path, input_files):
    output_dir = tmp_path / "edited"
    missing = str(tmp_path / "missing.png")
    preset = Preset.from_dict({"id": "warm", "name": "Warm", "filters": "sepia(0.3)"})

    results = process_batch(input_files + [missing], str(output_dir), preset, {"exposure": 1.1}, max_workers=2)

    assert [r[0] for r in results] == sorted(input_files + [missing])
    by_path = {path: (ok, msg) for path, ok, msg in results}
    assert by_path[missing] == (False, "File not found")
    for path in input_files:
        assert by_path[path] == (True, None)
        with Image.open(output_path_for(path, str(output_dir))) as img:
            assert img.format == "JPEG"
            assert img.size == (24, 16)


def test_corrupt_file_reported(tmp_path):
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(b"not an image")
    results = process_batch([str(broken)], str(tmp_path / "out"), max_workers=1)
    assert len(results) == 1
    path, ok, msg = results[0]
    assert not ok
    assert "could not be read" in msg


def test_empty_batch(tmp_path):
    assert process_batch([], str(tmp_path / "out")) == []
