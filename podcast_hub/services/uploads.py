"""Upload validation, object naming and audio duration probing."""

import logging
import math
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024
COVER_MAX_BYTES = 5 * BYTES_PER_MB
AUDIO_MAX_BYTES = 100 * BYTES_PER_MB

# Roughly one minute of audio per megabyte
SECONDS_PER_MB = 60


class UploadValidationError(ValueError):
    """Raised when an uploaded file is rejected. The message is shown to the user."""


@dataclass
class UploadedFile:
    """A file received from a form, independent of the web framework."""

    filename: str
    content_type: str
    size: int
    fileobj: BinaryIO

    @property
    def extension(self) -> str:
        """Lowercase extension without the dot, or an empty string."""
        return os.path.splitext(self.filename or "")[1].lstrip(".").lower()

    def rewind(self) -> None:
        self.fileobj.seek(0)


def validate_cover_image(upload: UploadedFile, max_bytes: int = COVER_MAX_BYTES) -> None:
    """
    Check that a cover upload is an image no larger than `max_bytes`.

    Raises:
        UploadValidationError: With the user-facing reason.
    """
    if not (upload.content_type or "").startswith("image/"):
        raise UploadValidationError("Please upload an image file")
    if upload.size > max_bytes:
        raise UploadValidationError(
            f"Image size should be less than {max_bytes // BYTES_PER_MB}MB"
        )


def validate_audio_file(
    upload: Optional[UploadedFile], max_bytes: int = AUDIO_MAX_BYTES
) -> None:
    """
    Check that an audio upload is present, is audio and is no larger than `max_bytes`.

    Raises:
        UploadValidationError: With the user-facing reason.
    """
    if upload is None or not upload.filename:
        raise UploadValidationError("Please upload an audio file")
    if not (upload.content_type or "").startswith("audio/"):
        raise UploadValidationError("Please upload an audio file")
    if upload.size > max_bytes:
        raise UploadValidationError(
            f"Audio file size should be less than {max_bytes // BYTES_PER_MB}MB"
        )


def build_object_path(prefix: str, filename: str) -> str:
    """
    Build a collision-resistant object path: `<prefix>/<random>.<ext>`.

    The original file name is discarded apart from its extension.
    """
    extension = os.path.splitext(filename or "")[1].lstrip(".").lower()
    token = uuid.uuid4().hex
    name = f"{token}.{extension}" if extension else token
    return f"{prefix}/{name}"


def estimate_duration_from_size(size_bytes: int) -> int:
    """Estimate audio length in seconds from its size (about 1 MB per minute)."""
    return round(size_bytes / BYTES_PER_MB * SECONDS_PER_MB)


def read_audio_duration(file_path: str) -> Optional[float]:
    """
    Read the duration reported by the audio file's own metadata.

    Returns:
        float | None: Length in seconds, or None if the format is unrecognised.
    """
    from mutagen import File as MutagenFile

    try:
        audio = MutagenFile(file_path)
    except Exception as e:
        logger.debug(f"Could not read audio metadata from {file_path}: {e}")
        return None

    if audio is None or audio.info is None:
        return None
    length = getattr(audio.info, "length", None)
    if not length or not math.isfinite(length) or length <= 0:
        return None
    return float(length)


def probe_duration(upload: UploadedFile) -> int:
    """
    Derive an episode duration in whole seconds for an audio upload.

    The upload is copied to a transient file so its metadata can be decoded;
    when that yields nothing usable the size-based estimate is used instead.
    The result is always at least one second.
    """
    suffix = f".{upload.extension}" if upload.extension else ""
    tmp_path = None
    duration = None
    try:
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
            tmp_path = tmp.name
            upload.rewind()
            shutil.copyfileobj(upload.fileobj, tmp)
        duration = read_audio_duration(tmp_path)
    except OSError as e:
        logger.warning(f"Could not stage audio for duration probing: {e}")
    finally:
        upload.rewind()
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)

    if duration is None:
        logger.info(f"Audio metadata unavailable for {upload.filename}, estimating from size")
        return max(1, estimate_duration_from_size(upload.size))
    return max(1, round(duration))
