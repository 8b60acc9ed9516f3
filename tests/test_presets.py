"""Tests for preset parsing, loading and validation."""

import json
import pytest
from pathlib import Path

from mass_editor.processing.photo_presets import (
    FilterOp, Preset, PhotoPresetManager, ToneCurve, parse_filter_string,
)
from mass_editor.utils.errors import InvalidParameter
from mass_editor.utils.preset_validator import validate_preset_data, validate_preset_file

PRESET_DIR = Path(__file__).parent.parent / "mass_editor" / "config" / "presets" / "photo"


class TestFilterParsing:
    """Tests for the CSS filter recipe parser."""

    def test_empty_recipe(self):
        assert parse_filter_string("") == ()
        assert parse_filter_string("none") == ()
        assert parse_filter_string(None) == ()

    def test_order_is_kept(self):
        ops = parse_filter_string("brightness(1.05) contrast(1.15) saturate(0.95) sepia(0.2) hue-rotate(-5deg)")
        assert [op.operation for op in ops] == ["brightness", "contrast", "saturate", "sepia", "hue-rotate"]
        assert ops[0] == FilterOp("brightness", 1.05)
        assert ops[4].amount == -5.0

    def test_units(self):
        ops = parse_filter_string("contrast(120%) hue-rotate(0.5turn) blur(0.2px) grayscale(1) sepia()")
        assert ops[0].amount == pytest.approx(1.2)
        assert ops[1].amount == pytest.approx(180.0)
        assert ops[2].amount == pytest.approx(0.2)
        assert ops[3].amount == 1.0
        assert ops[4].amount == 1.0  # CSS default

    def test_radians(self):
        (op,) = parse_filter_string("hue-rotate(3.141592653589793rad)")
        assert op.amount == pytest.approx(180.0)

    def test_unknown_function_raises(self):
        with pytest.raises(InvalidParameter):
            parse_filter_string("brightness(1.1) invert(1)")

    def test_garbage_raises(self):
        with pytest.raises(InvalidParameter):
            parse_filter_string("brightness(1.1) oops")

    def test_bad_units_raise(self):
        with pytest.raises(InvalidParameter):
            parse_filter_string("blur(2deg)")
        with pytest.raises(InvalidParameter):
            parse_filter_string("hue-rotate(30)")
        with pytest.raises(InvalidParameter):
            parse_filter_string("contrast(abc)")

    def test_identity_ops(self):
        assert FilterOp("contrast", 1.0).is_identity()
        assert FilterOp("blur", 0.0).is_identity()
        assert not FilterOp("sepia", 0.2).is_identity()


class TestPresetRecord:
    def test_default_is_identity(self):
        preset = Preset.default()
        assert preset.filters == ()
        assert preset.tonal_range is None
        assert preset.overlay is None
        assert not preset.ai_subject_only

    def test_from_dict_structured_fields(self):
        preset = Preset.from_dict({
            "id": "studio",
            "name": "Studio",
            "category": "Retouching",
            "filters": "brightness(1.05)",
            "tonalRange": {"whites": 1.12, "blacks": 0.86, "highlights": 0.62, "shadows": 1.32, "dehaze": -0.02},
            "toneCurve": {"highlights": 8, "lights": 5, "darks": -6, "shadows": -10},
            "colorBalance": {"temp": 4, "tint": 2},
            "frequencySeparation": {"radius": 8, "intensity": 0.8, "toneSmoothing": True},
            "glow": {"intensity": 0.25, "radius": 25},
            "aiSubjectOnly": True,
        })
        assert preset.filters == (FilterOp("brightness", 1.05),)
        assert preset.tonal_range.shadows == 1.32
        assert preset.tone_curve == ToneCurve(highlights=8, lights=5, darks=-6, shadows=-10)
        assert preset.color_balance.temp == 4
        assert preset.frequency_separation.tone_smoothing is True
        assert preset.glow.radius == 25
        assert preset.ai_subject_only

    def test_partial_tonal_range_uses_defaults(self):
        preset = Preset.from_dict({"id": "p", "name": "P",
                                   "tonalRange": {"whites": 1.05, "blacks": 0.95, "highlights": 0.9, "shadows": 1.1}})
        assert preset.tonal_range.dehaze == 0.0

    def test_presets_are_immutable(self):
        preset = Preset.default()
        with pytest.raises(Exception):
            preset.name = "changed"


class TestPhotoPresetManager:
    """Tests for PhotoPresetManager."""

    @pytest.fixture
    def user_presets_file(self, tmp_path):
        return str(tmp_path / "photo_presets.json")

    @pytest.fixture
    def photo_preset_manager(self, user_presets_file):
        return PhotoPresetManager(presets_file=user_presets_file)

    def test_get_all_photo_presets(self, photo_preset_manager):
        """Should get all bundled photo presets."""
        presets = photo_preset_manager.get_all_presets()
        assert isinstance(presets, dict)
        assert len(presets) == len(list(PRESET_DIR.glob("*.json")))
        assert all(isinstance(p, Preset) for p in presets.values())

    def test_get_preset_by_id(self, photo_preset_manager):
        preset = photo_preset_manager.get_preset("cinematic-gold")
        assert preset.name == "Cinematic Gold"
        assert preset.overlay.type == "vignette"
        assert [op.operation for op in preset.filters][-1] == "hue-rotate"

    def test_invalid_preset_id(self, photo_preset_manager):
        """Invalid preset ID should return None."""
        assert photo_preset_manager.get_preset("nonexistent_preset_12345") is None

    def test_add_preset_persists_only_user_presets(self, photo_preset_manager, user_presets_file):
        assert photo_preset_manager.add_preset({"id": "mine", "name": "Mine", "filters": "sepia(0.5)"})
        with open(user_presets_file, encoding="utf-8") as f:
            saved = json.load(f)
        assert [p["id"] for p in saved] == ["mine"]

        reloaded = PhotoPresetManager(presets_file=user_presets_file)
        assert reloaded.get_preset("mine").filters == (FilterOp("sepia", 0.5),)

    def test_user_preset_overrides_default(self, user_presets_file):
        with open(user_presets_file, "w", encoding="utf-8") as f:
            json.dump([{"id": "vibrant-city", "name": "My City", "filters": "contrast(2)"}], f)
        manager = PhotoPresetManager(presets_file=user_presets_file)
        assert manager.get_preset("vibrant-city").name == "My City"

    def test_invalid_entries_are_skipped(self, user_presets_file):
        with open(user_presets_file, "w", encoding="utf-8") as f:
            json.dump([
                {"name": "No id"},
                {"id": "bad-filter", "name": "Bad", "filters": "invert(1)"},
                {"id": "ok", "name": "Ok"},
            ], f)
        manager = PhotoPresetManager(presets_file=user_presets_file)
        assert manager.get_preset("ok") is not None
        assert manager.get_preset("bad-filter") is None

    def test_add_invalid_preset_rejected(self, photo_preset_manager):
        assert not photo_preset_manager.add_preset({"id": "x", "name": "X", "overlay": {"type": "sparkles", "intensity": 1}})
        assert photo_preset_manager.get_preset("x") is None

    def test_corrupt_user_file_is_ignored(self, user_presets_file):
        with open(user_presets_file, "w", encoding="utf-8") as f:
            f.write("{not json")
        manager = PhotoPresetManager(presets_file=user_presets_file)
        assert manager.get_preset("cinematic-gold") is not None


class TestPresetFiles:
    """Tests for bundled preset file structure and validity."""

    def test_photo_preset_files_exist(self):
        assert len(list(PRESET_DIR.glob("*.json"))) > 0, "No photo preset files found"

    def test_photo_preset_files_valid(self):
        for json_file in PRESET_DIR.glob("*.json"):
            is_valid, errors = validate_preset_file(str(json_file))
            assert is_valid, f"{json_file.name}: {[str(e) for e in errors]}"
            assert not errors, f"{json_file.name}: {[str(e) for e in errors]}"

    def test_file_name_matches_id(self):
        for json_file in PRESET_DIR.glob("*.json"):
            with open(json_file, encoding="utf-8") as f:
                assert json.load(f)["id"] == json_file.stem


class TestPresetValidator:
    def test_missing_required(self):
        is_valid, errors = validate_preset_data({"name": "x"})
        assert not is_valid
        assert any(e.field == "id" for e in errors)

    def test_wrong_type(self):
        is_valid, errors = validate_preset_data({"id": "x", "name": "x", "filters": 3})
        assert not is_valid

    def test_bool_is_not_a_number(self):
        is_valid, _ = validate_preset_data({"id": "x", "name": "x", "glow": {"intensity": True, "radius": 2}})
        assert not is_valid

    def test_out_of_range_only_warns(self):
        is_valid, errors = validate_preset_data({"id": "x", "name": "x", "glow": {"intensity": 3, "radius": 2}})
        assert is_valid
        assert [e.severity for e in errors] == ["warning"]

    def test_unknown_overlay_type(self):
        is_valid, _ = validate_preset_data({"id": "x", "name": "x", "overlay": {"type": "sparkles", "intensity": 0.2}})
        assert not is_valid

    def test_nested_must_be_object(self):
        is_valid, _ = validate_preset_data({"id": "x", "name": "x", "toneCurve": [1, 2, 3, 4]})
        assert not is_valid

    def test_unknown_field_warns(self):
        is_valid, errors = validate_preset_data({"id": "x", "name": "x", "sparkle": 1})
        assert is_valid
        assert errors[0].severity == "warning"

    def test_not_a_dict(self):
        is_valid, _ = validate_preset_data(["id"])
        assert not is_valid

    def test_missing_file(self, tmp_path):
        is_valid, errors = validate_preset_file(str(tmp_path / "missing.json"))
        assert not is_valid
        assert errors[0].message == "File not found"
