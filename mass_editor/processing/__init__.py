# Processing package initialization
from .pixel_buffer import PixelBuffer
from .photo_presets import (
    Preset, FilterOp, ColorBalance, TonalRange, ToneCurve, FrequencySeparation, Glow, Overlay,
    PhotoPresetManager, parse_filter_string,
)
from .manual_settings import Section, ManualSettings, EffectiveParameters
from .blur import blur, BlurCache
from .subject_mask import Segmenter, SubjectMask, HeuristicSkinMask, SegmentationMask, select_subject_mask
from .adjustments import (
    ImageAdjustments, AdvancedAdjustments,
    apply_tone, apply_base_filter, apply_detail, apply_presence, apply_vibrance, apply_grading,
)
from .retouch import apply_retouch
from .effects import Effects, apply_effects
from .watermark import apply_watermark
from .pipeline import process_image, render
from .batch import process_batch
