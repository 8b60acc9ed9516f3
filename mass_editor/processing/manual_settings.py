"""
Manual overrides and their merge with a preset into one effective parameter set.
"""

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from ..config import settings
from ..utils.errors import InvalidParameter
from ..utils.logger import get_logger
from .photo_presets import FilterOp, Glow, Overlay, Preset, ToneCurve

logger = get_logger(__name__)


class Section(Enum):
    """Adjustment panels that can be switched off per run."""
    BASIC = "basic"
    DETAIL = "detail"
    GRADING = "grading"
    EFFECTS = "effects"
    RETOUCH = "retouch"
    WATERMARK = "watermark"


@dataclass(frozen=True)
class ManualSettings:
    """Per-run overrides. Every default is a no-op for its operation."""
    exposure: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0
    highlights: float = 1.0
    shadows: float = 1.0
    whites: float = 1.0
    blacks: float = 1.0
    vibrance: float = 1.0
    sharpness: float = 0.0
    texture: float = 0.0
    clarity: float = 0.0
    dehaze: float = 0.0
    curves: float = 0.0
    temp: float = 0.0
    tint: float = 0.0
    skin_softening: float = 0.0
    dodge_burn: float = 0.0
    vignette: float = 0.0
    grain: float = 0.0
    white_overlay: float = 0.0
    black_overlay: float = 0.0
    sharpen_radius: float = 1.0
    sharpen_detail: float = 25.0
    hue: float = 0.0
    levels_black: float = 0.0
    levels_white: float = 255.0
    tint_shadows: str = ""
    tint_highlights: str = ""
    watermark_text: str = ""
    watermark_opacity: float = 0.8
    watermark_size: float = 20.0
    watermark_color: str = "#ffffff"
    disabled_sections: FrozenSet[Section] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept the same {name: bool} mapping or iterable of names as from_dict
        object.__setattr__(self, "disabled_sections", parse_disabled_sections(self.disabled_sections))

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ManualSettings":
        """
        Builds settings from the camelCase mapping used by presets and callers.

        Unknown keys are ignored. ``disabledSections`` maps section names to
        booleans; unknown section names are ignored with a warning.
        """
        if not data:
            return cls()
        known = {_camel(f.name): f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = known.get(key)
            if name is None and key in known.values():
                name = key
            if name is None:
                logger.debug("Ignoring unknown manual setting '%s'", key)
                continue
            if name == "disabled_sections":
                value = parse_disabled_sections(value)
            kwargs[name] = value
        return cls(**kwargs)

    def is_disabled(self, section: Section) -> bool:
        return section in self.disabled_sections


def _camel(name):
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def parse_disabled_sections(value) -> FrozenSet[Section]:
    """Converts a {section_name: bool} mapping (or an iterable of sections) to a frozenset."""
    if value is None:
        return frozenset()
    if isinstance(value, Mapping):
        names = [name for name, disabled in value.items() if disabled]
    else:
        names = list(value)

    sections = set()
    for name in names:
        if isinstance(name, Section):
            sections.add(name)
            continue
        try:
            sections.add(Section(name))
        except ValueError:
            logger.warning("Ignoring unknown section '%s' in disabledSections", name)
    return frozenset(sections)


def _checked_number(name, value):
    """Returns the value clamped into its documented domain."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameter(f"Setting '{name}' must be a number, got {value!r}", setting_name=name)
    if not math.isfinite(value):
        raise InvalidParameter(f"Setting '{name}' must be finite, got {value}", setting_name=name)
    low, high = settings.PARAMETER_DOMAINS[name]
    if value < low or value > high:
        clamped = min(max(value, low), high)
        logger.warning("Setting '%s'=%s outside [%s, %s], clamped to %s", name, value, low, high, clamped)
        return float(clamped)
    return float(value)


def _checked_text(name, value):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidParameter(f"Setting '{name}' must be a string, got {value!r}", setting_name=name)
    return value


@dataclass(frozen=True)
class EffectiveParameters:
    """
    Preset + manual settings + defaults, resolved once at the start of a run.

    Tonal values already include the preset's tonalRange; temp and tint include
    its colorBalance; vignette and grain include a matching preset overlay.
    """
    disabled_sections: FrozenSet[Section]
    filters: Tuple[FilterOp, ...]
    # Tone
    temp: float
    tint: float
    exposure: float
    whites: float
    blacks: float
    highlights: float
    shadows: float
    dehaze: float
    # Detail / presence / vibrance
    sharpness: float
    sharpen_radius: float
    sharpen_detail: float
    texture: float
    clarity: float
    vibrance: float
    # Retouch
    skin_softening: float
    dodge_burn: float
    fs_radius: float
    fs_intensity: float
    ai_subject_only: bool
    # Grading
    tone_curve: Optional[ToneCurve]
    curves: float
    levels_black: float
    levels_white: float
    hue: float
    tint_shadows: str
    tint_highlights: str
    # Effects
    vignette: float
    grain: float
    white_overlay: float
    black_overlay: float
    glow: Optional[Glow]
    overlay: Optional[Overlay]
    # Watermark
    watermark_text: str
    watermark_opacity: float
    watermark_size: float
    watermark_color: str

    def is_enabled(self, section: Section) -> bool:
        return section not in self.disabled_sections

    @property
    def wants_segmentation(self) -> bool:
        """True when the preset asks for an external subject mask."""
        return self.ai_subject_only or (self.overlay is not None and self.overlay.type == "neural-bokeh")

    @classmethod
    def resolve(cls, preset: Optional[Preset] = None, manual=None) -> "EffectiveParameters":
        """
        Merges a preset with manual settings (a ManualSettings or a camelCase dict).

        Raises:
            InvalidParameter: A setting is non-numeric or not finite.
        """
        preset = preset or Preset.default()
        if manual is None:
            manual = ManualSettings()
        elif not isinstance(manual, ManualSettings):
            manual = ManualSettings.from_dict(manual)

        n = {name: _checked_number(name, getattr(manual, name)) for name in settings.PARAMETER_DOMAINS}

        balance = preset.color_balance
        tonal = preset.tonal_range
        overlay = preset.overlay
        fs = preset.frequency_separation

        vignette = n["vignette"]
        grain = n["grain"]
        if overlay is not None and overlay.type == "vignette":
            vignette = min(1.0, vignette + overlay.intensity)
        elif overlay is not None and overlay.type == "grain":
            grain = min(1.0, grain + overlay.intensity)

        # A missing or zero radius means the engine default
        fs_radius = (fs.radius if fs is not None else 0) or settings.ENGINE_DEFAULTS["fs_blur_radius"]
        if fs_radius < 0:
            logger.warning("Frequency separation radius %s clamped to 0", fs_radius)
            fs_radius = 0.0

        filters = tuple(preset.filters) + (
            FilterOp("contrast", n["contrast"]),
            FilterOp("saturate", n["saturation"]),
        )

        return cls(
            disabled_sections=frozenset(manual.disabled_sections),
            filters=filters,
            temp=(balance.temp if balance else 0.0) + n["temp"],
            tint=(balance.tint if balance else 0.0) + n["tint"],
            exposure=n["exposure"],
            whites=n["whites"] * (tonal.whites if tonal else 1.0),
            blacks=n["blacks"] * (tonal.blacks if tonal else 1.0),
            highlights=n["highlights"] * (tonal.highlights if tonal else 1.0),
            shadows=n["shadows"] * (tonal.shadows if tonal else 1.0),
            dehaze=n["dehaze"] + (tonal.dehaze if tonal else 0.0),
            sharpness=n["sharpness"],
            sharpen_radius=n["sharpen_radius"],
            sharpen_detail=n["sharpen_detail"],
            texture=n["texture"],
            clarity=n["clarity"],
            vibrance=n["vibrance"],
            skin_softening=n["skin_softening"],
            dodge_burn=n["dodge_burn"],
            fs_radius=float(fs_radius),
            fs_intensity=fs.intensity if fs is not None else 0.0,
            ai_subject_only=preset.ai_subject_only,
            tone_curve=preset.tone_curve,
            curves=n["curves"],
            levels_black=n["levels_black"],
            levels_white=n["levels_white"],
            hue=n["hue"],
            tint_shadows=_checked_text("tint_shadows", manual.tint_shadows),
            tint_highlights=_checked_text("tint_highlights", manual.tint_highlights),
            vignette=vignette,
            grain=grain,
            white_overlay=n["white_overlay"],
            black_overlay=n["black_overlay"],
            glow=preset.glow,
            overlay=overlay,
            watermark_text=_checked_text("watermark_text", manual.watermark_text),
            watermark_opacity=n["watermark_opacity"],
            watermark_size=n["watermark_size"],
            watermark_color=_checked_text("watermark_color", manual.watermark_color) or "#ffffff",
        )
