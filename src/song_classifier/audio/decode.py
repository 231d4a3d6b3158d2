"""Audio decoding: encoded bytes or files -> AudioBuffer.

Decoding goes through soundfile (libsndfile), which handles WAV, FLAC,
OGG/Vorbis and, with libsndfile >= 1.1, MP3.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

import soundfile as sf

from song_classifier.audio.buffer import AudioBuffer
from song_classifier.errors import DecodeError

logger = logging.getLogger(__name__)

# Extensions accepted for upload (audio/mpeg, audio/ogg, audio/*)
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".ogg", ".oga", ".aiff", ".aif"}
)


def decode_audio(data: bytes, *, name: Optional[str] = None) -> AudioBuffer:
    """Decode an in-memory encoded file.

    Args:
        data: Raw file bytes as uploaded.
        name: Optional file name, used in error messages only.

    Returns:
        AudioBuffer with all channels, float32 in [-1, 1].

    Raises:
        DecodeError: Empty, malformed or unsupported input.
    """
    label = repr(name) if name else "audio data"
    if not data:
        raise DecodeError(f"Cannot decode {label}: no data")
    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, sf.LibsndfileError, TypeError, ValueError) as exc:
        raise DecodeError(f"Failed to decode {label}: {exc}") from exc
    buffer = AudioBuffer.from_array(samples, sample_rate, channels_last=True)
    logger.debug(
        "Decoded %s: %d channel(s), %d samples at %d Hz",
        label,
        buffer.channels,
        buffer.n_samples,
        buffer.sample_rate,
    )
    return buffer


def load_audio_file(path: str | Path) -> AudioBuffer:
    """Read and decode an audio file from disk.

    Raises:
        FileNotFoundError: File does not exist.
        DecodeError: Unsupported extension or undecodable content.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")
    if file_path.suffix.lower() not in AUDIO_EXTENSIONS:
        raise DecodeError(
            f"Unsupported audio format {file_path.suffix!r}. "
            f"Supported: {sorted(AUDIO_EXTENSIONS)}"
        )
    return decode_audio(file_path.read_bytes(), name=file_path.name)
