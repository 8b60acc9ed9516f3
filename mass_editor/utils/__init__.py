# This file makes the 'utils' directory a Python package.

from .errors import (
    AppError,
    FileIOError,
    ConfigurationError,
    DecodeFailure,
    EncodeFailure,
    InvalidParameter,
    ErrorCategory,
    handle_errors,
    format_user_error,
)
from .preset_validator import (
    ValidationError,
    validate_preset_data,
    validate_preset_file,
)
