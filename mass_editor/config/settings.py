# Application settings

# --- Engine Parameters ---
ENGINE_DEFAULTS = {
    # Blur radii (px, Gaussian standard deviation)
    "fine_blur_radius": 2.0,      # Texture
    "medium_blur_radius": 12.0,   # Clarity, subject bokeh
    "fs_blur_radius": 8.0,        # Frequency separation when the preset has none

    # Presence gains
    "texture_gain": 0.8,
    "clarity_gain": 0.5,

    # Tone
    "blacks_offset_scale": 50.0,
    "dehaze_contrast_scale": 0.3,
    "dehaze_lift": 15.0,

    # Retouch
    "skin_softening_weight": 0.6,
    "retouch_blend_scale": 0.8,
    "dodge_burn_scale": 0.4,

    # Vignette gradient stops (fractions of the gradient radius)
    "vignette_inner_stop": 0.4,
    "vignette_radius_factor": 0.8,  # Gradient radius = factor * max(width, height)

    # Overlays
    "white_overlay_scale": 0.3,
    "volumetric_color": "#ffecc8",
    "volumetric_scale": 0.5,
    "bokeh_blur_radius": 12.0,

    # Grain
    "grain_seed": 1337,
    "grain_size": 1.5,
    "grain_strength": 60.0,  # Peak-to-peak noise in 8-bit units at grain=1

    # Split toning
    "split_tone_strength": 0.3,
}

# Documented domains for manual settings. Values outside are clamped.
PARAMETER_DOMAINS = {
    "exposure": (0.0, 2.0),
    "contrast": (0.0, 2.0),
    "saturation": (0.0, 2.0),
    "highlights": (0.0, 2.0),
    "shadows": (0.0, 2.0),
    "whites": (0.0, 2.0),
    "blacks": (0.0, 2.0),
    "vibrance": (0.0, 2.0),
    "sharpness": (0.0, 2.0),
    "texture": (-1.0, 1.0),
    "clarity": (-1.0, 1.0),
    "dehaze": (-1.0, 1.0),
    "curves": (-1.0, 1.0),
    "temp": (-50.0, 50.0),
    "tint": (-50.0, 50.0),
    "skin_softening": (0.0, 1.0),
    "dodge_burn": (0.0, 1.0),
    "vignette": (0.0, 1.0),
    "grain": (0.0, 1.0),
    "white_overlay": (0.0, 1.0),
    "black_overlay": (0.0, 1.0),
    "sharpen_radius": (0.5, 3.0),
    "sharpen_detail": (0.0, 100.0),
    "hue": (-180.0, 180.0),
    "levels_black": (0.0, 100.0),
    "levels_white": (155.0, 255.0),
    "watermark_opacity": (0.0, 1.0),
    "watermark_size": (1.0, 100.0),
}

# --- Export ---
EXPORT_DEFAULTS = {
    "jpeg_quality": 95,
    "output_prefix": "edited_",
    "output_format": ".jpg",
}

# --- Logging ---
LOGGING_LEVEL = "INFO" # Options: DEBUG, INFO, WARNING, ERROR
