# Preset validation utilities
"""
JSON schema validation for preset files.
"""

from typing import Dict, List, Any, Tuple
from dataclasses import dataclass
import json
import os

from .logger import get_logger

logger = get_logger(__name__)

NUMBER = (int, float)


@dataclass
class ValidationError:
    """A validation error with location and message."""
    path: str
    field: str
    message: str
    severity: str = "error"  # "error" or "warning"

    def __str__(self) -> str:
        return f"{self.severity.upper()}: {self.path} - {self.field}: {self.message}"


PRESET_SCHEMA = {
    "required": ["id", "name"],
    "optional": ["category", "description", "filters", "aiSubjectOnly"],
    "types": {
        "id": str,
        "name": str,
        "category": str,
        "description": str,
        "filters": str,
        "aiSubjectOnly": bool,
    },
    "nested": {
        "colorBalance": {
            "required": ["temp", "tint"],
            "types": {"temp": NUMBER, "tint": NUMBER},
            "ranges": {"temp": (-100, 100), "tint": (-100, 100)},
        },
        "tonalRange": {
            "required": ["whites", "blacks", "highlights", "shadows"],
            "optional": ["dehaze"],
            "types": {
                "whites": NUMBER, "blacks": NUMBER,
                "highlights": NUMBER, "shadows": NUMBER, "dehaze": NUMBER,
            },
            "ranges": {
                "whites": (0, 2), "blacks": (0, 2),
                "highlights": (0, 2), "shadows": (0, 2), "dehaze": (-1, 1),
            },
        },
        "toneCurve": {
            "required": ["highlights", "lights", "darks", "shadows"],
            "types": {
                "highlights": NUMBER, "lights": NUMBER,
                "darks": NUMBER, "shadows": NUMBER,
            },
            "ranges": {
                "highlights": (-64, 64), "lights": (-64, 64),
                "darks": (-64, 64), "shadows": (-64, 64),
            },
        },
        "frequencySeparation": {
            "required": ["radius", "intensity"],
            "optional": ["toneSmoothing"],
            "types": {"radius": NUMBER, "intensity": NUMBER, "toneSmoothing": bool},
            "ranges": {"radius": (0, 100), "intensity": (0, 1)},
        },
        "glow": {
            "required": ["intensity", "radius"],
            "types": {"intensity": NUMBER, "radius": NUMBER},
            "ranges": {"intensity": (0, 1), "radius": (0, 100)},
        },
        "overlay": {
            "required": ["type", "intensity"],
            "optional": ["color"],
            "types": {"type": str, "intensity": NUMBER, "color": str},
            "ranges": {"intensity": (0, 1)},
            "choices": {"type": ("grain", "vignette", "volumetric", "neural-bokeh")},
        },
    },
}


def validate_type(value: Any, expected_type: Any) -> str:
    """
    Validate that a value matches the expected type.

    Returns:
        Error message or an empty string if valid.
    """
    # bool is an int subclass; a flag is never a valid number
    if expected_type is NUMBER and isinstance(value, bool):
        return "Expected int or float, got bool"
    if isinstance(expected_type, tuple):
        if not isinstance(value, expected_type):
            type_names = " or ".join(t.__name__ for t in expected_type)
            return f"Expected {type_names}, got {type(value).__name__}"
    elif not isinstance(value, expected_type):
        return f"Expected {expected_type.__name__}, got {type(value).__name__}"
    return ""


def validate_range(value: Any, min_val: float, max_val: float) -> str:
    """Validate that a numeric value is within range."""
    if isinstance(value, NUMBER) and not isinstance(value, bool):
        if value < min_val or value > max_val:
            return f"Value {value} out of range [{min_val}, {max_val}]"
    return ""


def validate_preset(
    data: Dict[str, Any],
    schema: Dict[str, Any] = PRESET_SCHEMA,
    file_path: str = ""
) -> List[ValidationError]:
    """
    Validate a preset against a schema.

    Args:
        data: Preset data dictionary.
        schema: Schema to validate against.
        file_path: Source description for error messages.

    Returns:
        List of validation errors.
    """
    errors = []

    for field in schema.get("required", []):
        if field not in data:
            errors.append(ValidationError(path=file_path, field=field, message="Required field missing"))

    for field, expected_type in schema.get("types", {}).items():
        if field in data:
            error = validate_type(data[field], expected_type)
            if error:
                errors.append(ValidationError(path=file_path, field=field, message=error))

    # Out-of-range values are clamped at run time, so they only warn
    for field, (min_val, max_val) in schema.get("ranges", {}).items():
        if field in data:
            error = validate_range(data[field], min_val, max_val)
            if error:
                errors.append(ValidationError(path=file_path, field=field, message=error, severity="warning"))

    for field, choices in schema.get("choices", {}).items():
        if field in data and data[field] not in choices:
            errors.append(ValidationError(
                path=file_path, field=field,
                message=f"Expected one of {', '.join(choices)}, got {data[field]!r}",
            ))

    nested = schema.get("nested", {})
    for field, nested_schema in nested.items():
        if field not in data:
            continue
        if not isinstance(data[field], dict):
            errors.append(ValidationError(path=file_path, field=field, message="Expected object"))
            continue
        errors.extend(validate_preset(data[field], nested_schema, f"{file_path}.{field}"))

    known_fields = set(schema.get("required", [])) | set(schema.get("optional", [])) | set(schema.get("types", {}))
    for field in data:
        if field not in known_fields and field not in nested:
            errors.append(ValidationError(path=file_path, field=field, message="Unknown field", severity="warning"))

    return errors


def validate_preset_data(data: Any, source: str = "") -> Tuple[bool, List[ValidationError]]:
    """
    Validate one preset dictionary.

    Returns:
        Tuple of (is_valid, list of errors). Warnings do not make a preset invalid.
    """
    if not isinstance(data, dict):
        return False, [ValidationError(path=source, field="preset", message="Expected object")]
    errors = validate_preset(data, PRESET_SCHEMA, source)
    is_valid = not any(e.severity == "error" for e in errors)
    return is_valid, errors


def validate_preset_file(file_path: str) -> Tuple[bool, List[ValidationError]]:
    """
    Validate a preset JSON file.

    Returns:
        Tuple of (is_valid, list of errors).
    """
    if not os.path.exists(file_path):
        return False, [ValidationError(path=file_path, field="file", message="File not found")]

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        return False, [ValidationError(path=file_path, field="json", message=f"Invalid JSON: {e}")]
    except OSError as e:
        return False, [ValidationError(path=file_path, field="file", message=f"Error reading file: {e}")]

    return validate_preset_data(data, file_path)
