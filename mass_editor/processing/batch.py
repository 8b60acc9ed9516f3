# Batch processing handler
import os
import concurrent.futures

from .pipeline import process_image
from ..config import settings
from ..utils.errors import AppError, format_user_error
from ..utils.logger import get_logger

logger = get_logger(__name__)


def output_path_for(file_path, output_dir):
    """``<output_dir>/edited_<stem>.jpg``"""
    stem = os.path.splitext(os.path.basename(file_path))[0]
    name = f"{settings.EXPORT_DEFAULTS['output_prefix']}{stem}{settings.EXPORT_DEFAULTS['output_format']}"
    return os.path.join(output_dir, name)


# Top-level so it can be pickled by ProcessPoolExecutor
def _process_single_file_worker(file_path, output_dir, preset, manual, quality):
    """Runs one independent pipeline and writes the result."""
    if not os.path.isfile(file_path):
        return (file_path, False, "File not found")
    try:
        data = process_image(file_path, preset, manual, quality=quality)
        output_path = output_path_for(file_path, output_dir)
        with open(output_path, 'wb') as f:
            f.write(data)
    except AppError as e:
        return (file_path, False, format_user_error(e, context="processing image"))
    except OSError as e:
        return (file_path, False, format_user_error(e, context="writing output"))
    return (file_path, True, None)


def process_batch(file_paths, output_dir, preset=None, manual=None, max_workers=None, quality=None):
    """Process multiple images in parallel, one pipeline run per image.

    Args:
        file_paths (list): Paths to input image files.
        output_dir (str): Directory to save the processed images.
        preset (Preset): Preset applied to every image.
        manual (ManualSettings or dict): Manual overrides applied to every image.
        max_workers (int): Worker processes. Defaults to the CPU count.
        quality (int): JPEG quality. Defaults to 95.

    Returns:
        list: Tuples of (file_path, success_status (bool), error_message (str or None)),
              sorted by file path. Failures are reported, never raised.
    """
    if not os.path.exists(output_dir):
        try:
            os.makedirs(output_dir)
        except OSError as e:
            logger.error("Error creating output directory %s: %s", output_dir, e)
            return [(fp, False, f"Output directory creation failed: {e}") for fp in file_paths]

    if not file_paths:
        return []

    max_workers = max_workers or os.cpu_count() or 1
    logger.info("Processing %d files with %d worker processes", len(file_paths), max_workers)

    results = []
    with concurrent.futures.ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_file = {
            executor.submit(_process_single_file_worker, file_path, output_dir, preset, manual, quality): file_path
            for file_path in file_paths
        }

        processed_count = 0
        total_files = len(file_paths)
        for future in concurrent.futures.as_completed(future_to_file):
            processed_count += 1
            file_path = future_to_file[future]
            try:
                result = future.result()
            except Exception as exc:
                # Worker crashed or its arguments could not be pickled
                logger.error("(%d/%d) Exception for %s: %s", processed_count, total_files, file_path, exc)
                result = (file_path, False, format_user_error(exc, context="processing image"))
            results.append(result)
            if result[1]:
                logger.info("(%d/%d) Processed: %s", processed_count, total_files, file_path)
            else:
                logger.warning("(%d/%d) Failed: %s - %s", processed_count, total_files, file_path, result[2])

    return sorted(results, key=lambda x: x[0])  # Sort results by original file path
