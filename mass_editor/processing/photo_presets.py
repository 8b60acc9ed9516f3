# Photo preset management and parsing
import os
import re
import json
import glob
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import appdirs

from ..utils.errors import ErrorCategory, InvalidParameter, handle_errors
from ..utils.logger import get_logger
from ..utils.preset_validator import validate_preset_data

logger = get_logger(__name__)

# Filter operations understood by the base filter stage, with the amount used
# when the function is written without an argument.
FILTER_DEFAULTS = {
    "brightness": 1.0,
    "contrast": 1.0,
    "saturate": 1.0,
    "sepia": 1.0,
    "hue-rotate": 0.0,
    "grayscale": 1.0,
    "blur": 0.0,
}

_FUNCTION_RE = re.compile(r"([a-zA-Z-]+)\(\s*([^)]*?)\s*\)")
_AMOUNT_RE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*(%|deg|rad|grad|turn|px)?$")
_ANGLE_TO_DEG = {"deg": 1.0, "rad": 180.0 / math.pi, "grad": 0.9, "turn": 360.0}


@dataclass(frozen=True)
class FilterOp:
    """One step of a declarative base filter recipe, e.g. ``contrast(1.1)``."""
    operation: str
    amount: float

    def is_identity(self) -> bool:
        if self.operation in ("brightness", "contrast", "saturate"):
            return self.amount == 1.0
        return self.amount == 0.0


@dataclass(frozen=True)
class ColorBalance:
    temp: float = 0.0
    tint: float = 0.0


@dataclass(frozen=True)
class TonalRange:
    whites: float = 1.0
    blacks: float = 1.0
    highlights: float = 1.0
    shadows: float = 1.0
    dehaze: float = 0.0


@dataclass(frozen=True)
class ToneCurve:
    """Offsets (8-bit units) for the four parametric curve regions."""
    highlights: float = 0.0
    lights: float = 0.0
    darks: float = 0.0
    shadows: float = 0.0


@dataclass(frozen=True)
class FrequencySeparation:
    radius: float = 8.0
    intensity: float = 0.0
    tone_smoothing: bool = False


@dataclass(frozen=True)
class Glow:
    intensity: float = 0.0
    radius: float = 0.0


@dataclass(frozen=True)
class Overlay:
    type: str
    intensity: float = 0.0
    color: Optional[str] = None


@dataclass(frozen=True)
class Preset:
    """
    A named, reusable bundle of filter and adjustment parameters.

    Structured adjustments are optional records; ``None`` means the preset does
    not define them and each stage falls back to its own defaults.
    """
    id: str
    name: str
    category: str = ""
    filters: Tuple[FilterOp, ...] = field(default_factory=tuple)
    overlay: Optional[Overlay] = None
    ai_subject_only: bool = False
    frequency_separation: Optional[FrequencySeparation] = None
    tonal_range: Optional[TonalRange] = None
    tone_curve: Optional[ToneCurve] = None
    color_balance: Optional[ColorBalance] = None
    glow: Optional[Glow] = None

    @classmethod
    def default(cls) -> "Preset":
        """Identity preset: no recipe, no structured adjustments."""
        return cls(id="default", name="Default")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Preset":
        """Builds a preset from its JSON (camelCase) form."""
        def record(key, record_cls, mapping):
            raw = data.get(key)
            if raw is None:
                return None
            kwargs = {attr: raw[json_key] for json_key, attr in mapping.items() if json_key in raw}
            return record_cls(**kwargs)

        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", data.get("id", ""))),
            category=str(data.get("category", "")),
            filters=parse_filter_string(data.get("filters", "")),
            overlay=record("overlay", Overlay, {"type": "type", "intensity": "intensity", "color": "color"}),
            ai_subject_only=bool(data.get("aiSubjectOnly", False)),
            frequency_separation=record("frequencySeparation", FrequencySeparation, {
                "radius": "radius", "intensity": "intensity", "toneSmoothing": "tone_smoothing",
            }),
            tonal_range=record("tonalRange", TonalRange, {
                "whites": "whites", "blacks": "blacks", "highlights": "highlights",
                "shadows": "shadows", "dehaze": "dehaze",
            }),
            tone_curve=record("toneCurve", ToneCurve, {
                "highlights": "highlights", "lights": "lights", "darks": "darks", "shadows": "shadows",
            }),
            color_balance=record("colorBalance", ColorBalance, {"temp": "temp", "tint": "tint"}),
            glow=record("glow", Glow, {"intensity": "intensity", "radius": "radius"}),
        )


def _parse_amount(operation, raw):
    if raw == "":
        return FILTER_DEFAULTS[operation]
    match = _AMOUNT_RE.match(raw)
    if not match:
        raise InvalidParameter(f"Invalid amount {raw!r} for {operation}()", setting_name="filters")
    value, unit = float(match.group(1)), match.group(2)

    if operation == "hue-rotate":
        if unit in _ANGLE_TO_DEG:
            return value * _ANGLE_TO_DEG[unit]
        if unit is None and value == 0:
            return 0.0
        raise InvalidParameter(f"hue-rotate() needs an angle, got {raw!r}", setting_name="filters")
    if operation == "blur":
        if unit == "px" or (unit is None and value == 0):
            return value
        raise InvalidParameter(f"blur() needs a length in px, got {raw!r}", setting_name="filters")
    if unit == "%":
        return value / 100.0
    if unit is not None:
        raise InvalidParameter(f"Unexpected unit {unit!r} for {operation}()", setting_name="filters")
    return value


def parse_filter_string(filters) -> Tuple[FilterOp, ...]:
    """
    Parses a CSS filter string into an ordered recipe.

    >>> parse_filter_string("brightness(1.05) hue-rotate(-5deg)")
    (FilterOp(operation='brightness', amount=1.05), FilterOp(operation='hue-rotate', amount=-5.0))
    """
    if filters is None:
        return ()
    filters = filters.strip()
    if filters in ("", "none"):
        return ()

    ops = []
    for match in _FUNCTION_RE.finditer(filters):
        operation = match.group(1).lower()
        if operation not in FILTER_DEFAULTS:
            raise InvalidParameter(f"Unsupported filter function {operation}()", setting_name="filters")
        ops.append(FilterOp(operation, _parse_amount(operation, match.group(2))))

    leftover = _FUNCTION_RE.sub("", filters).strip()
    if leftover:
        raise InvalidParameter(f"Could not parse filter string near {leftover!r}", setting_name="filters")
    return tuple(ops)


class PhotoPresetManager:
    """Manages photo presets defined in JSON files."""
    def __init__(self, presets_file=None):
        if presets_file:
            # Allow overriding for testing or specific cases
            self.presets_file = presets_file
        else:
            data_dir = appdirs.user_data_dir("MassEditor", "MassEditor")
            os.makedirs(data_dir, exist_ok=True)
            self.presets_file = os.path.join(data_dir, "photo_presets.json")
            logger.debug("Using user preset file location: %s", self.presets_file)

        self.presets: Dict[str, Dict[str, Any]] = {}
        self.default_presets: Dict[str, Dict[str, Any]] = {}
        self._parsed: Dict[str, Preset] = {}
        self.load_presets()

    @staticmethod
    def default_presets_dir():
        script_dir = os.path.dirname(__file__)
        return os.path.abspath(os.path.join(script_dir, "..", "config", "presets", "photo"))

    @staticmethod
    @handle_errors(fallback_value=None, category=ErrorCategory.CONFIGURATION)
    def _read_json(file_path):
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _accept(self, preset_data, source):
        """Validates and parses one preset dict. Returns the Preset or None."""
        is_valid, errors = validate_preset_data(preset_data, source)
        for error in errors:
            if error.severity == "warning":
                logger.debug("%s", error)
            else:
                logger.warning("%s", error)
        if not is_valid:
            return None
        try:
            return Preset.from_dict(preset_data)
        except InvalidParameter as e:
            logger.warning("Skipping preset from %s: %s", source, e)
            return None

    def load_presets(self):
        """Load bundled default presets and the user's preset list."""
        default_presets = {}
        user_presets = {}
        parsed = {}

        # 1. Bundled defaults, one preset per file
        default_dir = self.default_presets_dir()
        if os.path.isdir(default_dir):
            for file_path in sorted(glob.glob(os.path.join(default_dir, "*.json"))):
                preset_data = self._read_json(file_path)
                if preset_data is None:
                    continue
                preset = self._accept(preset_data, os.path.basename(file_path))
                if preset is not None:
                    default_presets[preset.id] = preset_data
                    parsed[preset.id] = preset
            logger.debug("Loaded %d default photo presets from %s.", len(default_presets), default_dir)
        else:
            logger.warning("Default presets directory not found: %s", default_dir)

        # 2. User presets (a JSON list)
        if os.path.isfile(self.presets_file):
            user_preset_list = self._read_json(self.presets_file)
            if isinstance(user_preset_list, list):
                for index, preset_data in enumerate(user_preset_list):
                    preset = self._accept(preset_data, f"{self.presets_file}[{index}]")
                    if preset is not None:
                        user_presets[preset.id] = preset_data
                        parsed[preset.id] = preset
                logger.debug("Loaded %d user photo presets from %s.", len(user_presets), self.presets_file)
            elif user_preset_list is not None:
                logger.warning("User presets file (%s) does not contain a JSON list.", self.presets_file)

        # 3. User presets override defaults with the same id
        self.default_presets = default_presets
        self.presets = dict(default_presets)
        self.presets.update(user_presets)
        self._parsed = parsed
        logger.info("Total photo presets available: %d", len(self.presets))

    def get_preset(self, preset_id) -> Optional[Preset]:
        """Retrieve a parsed preset by its ID."""
        return self._parsed.get(preset_id)

    def get_all_presets(self) -> Dict[str, Preset]:
        """Return a dictionary of all loaded presets, keyed by id."""
        return {preset_id: self._parsed[preset_id] for preset_id in self.presets}

    def _save_presets_to_file(self):
        """Persist presets that are new or differ from the bundled defaults."""
        user_presets_to_save = [
            preset_data for preset_id, preset_data in self.presets.items()
            if preset_id not in self.default_presets or preset_data != self.default_presets[preset_id]
        ]
        try:
            with open(self.presets_file, 'w', encoding='utf-8') as f:
                json.dump(user_presets_to_save, f, indent=2)
        except OSError:
            logger.exception("Error saving presets to %s", self.presets_file)
            return False
        logger.info("Saved %d presets to %s", len(user_presets_to_save), self.presets_file)
        return True

    def add_preset(self, preset_data):
        """Adds or updates a preset and saves the changes to the file."""
        preset = self._accept(preset_data, "add_preset")
        if preset is None:
            return False
        self.presets[preset.id] = preset_data
        self._parsed[preset.id] = preset
        logger.info("Preset '%s' added/updated.", preset.id)
        return self._save_presets_to_file()
