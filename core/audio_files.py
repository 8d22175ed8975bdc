"""
FlashDeck – Audio asset manager
================================
Copies user-selected or CSV-referenced audio files into the private audio
directory under a generated name and resolves stored names back to paths.

Stored names look like ``1718031234567_k3j9x0a2b.mp3``: a millisecond
timestamp, a random suffix and the original (lower-cased) extension.
"""

from __future__ import annotations

import logging
import secrets
import shutil
import string
import time
from dataclasses import dataclass
from pathlib import Path

from core.errors import AudioImportError, AudioNotFoundError, InvalidAudioFormatError

log = logging.getLogger(__name__)

SUPPORTED_AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a", ".aac")

AUDIO_MIME_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
}

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LEN = 9


@dataclass(frozen=True)
class CopiedAudio:
    id: str
    internal_path: str   # file name relative to the audio directory


def generate_audio_id() -> str:
    """Millisecond timestamp plus a random base-36 suffix."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LEN))
    return f"{int(time.time() * 1000)}_{suffix}"


def get_audio_mime_type(path: str | Path) -> str:
    return AUDIO_MIME_TYPES.get(Path(path).suffix.lower(), "audio/mpeg")


class AudioFileManager:
    """Owns the private audio directory; created lazily on first copy."""

    def __init__(self, audio_dir: str | Path) -> None:
        self._audio_dir = Path(audio_dir)

    @property
    def audio_dir(self) -> Path:
        return self._audio_dir

    def _ensure_dir(self) -> None:
        if not self._audio_dir.exists():
            self._audio_dir.mkdir(parents=True, exist_ok=True)
            log.info("Created audio directory %s", self._audio_dir)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate_audio_file(path: str | Path) -> bool:
        """Supported extension, exists, is a regular file, and is not empty."""
        path = Path(path)
        if path.suffix.lower() not in SUPPORTED_AUDIO_EXTENSIONS:
            return False
        try:
            return path.is_file() and path.stat().st_size > 0
        except OSError:
            return False

    # ------------------------------------------------------------------
    # Copy / delete
    # ------------------------------------------------------------------

    def copy_audio_file(self, source_path: str | Path) -> CopiedAudio:
        """Copy *source_path* into the audio directory under a new name.

        Raises
        ------
        AudioNotFoundError
            The source does not exist.
        InvalidAudioFormatError
            Unsupported extension, or an empty / unreadable file.
        AudioImportError
            The source cannot be accessed or the copy itself failed.
        """
        source = Path(source_path)
        try:
            found = source.exists()
        except OSError as exc:
            raise AudioImportError(f"Cannot access audio file {source}: {exc}") from exc
        if not found:
            raise AudioNotFoundError(f"Audio file not found: {source}")
        if not self.validate_audio_file(source):
            raise InvalidAudioFormatError(f"Invalid audio file format: {source}")

        audio_id = generate_audio_id()
        internal_name = f"{audio_id}{source.suffix.lower()}"
        target = self._audio_dir / internal_name
        try:
            self._ensure_dir()
            shutil.copyfile(source, target)
        except OSError as exc:
            target.unlink(missing_ok=True)
            raise AudioImportError(f"Could not copy audio file {source}: {exc}") from exc

        log.info("Copied audio file %s → %s", source, target)
        return CopiedAudio(id=audio_id, internal_path=internal_name)

    def delete_audio_file(self, audio_file_name: str) -> None:
        """Remove a stored file; missing files are only logged."""
        full_path = self.get_audio_file_path(audio_file_name)
        try:
            full_path.unlink()
            log.info("Deleted audio file %s", full_path)
        except FileNotFoundError:
            log.warning("Audio file already gone: %s", full_path)
        except OSError as exc:
            log.warning("Could not delete audio file %s: %s", full_path, exc)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_audio_file_path(self, audio_file_name: str) -> Path:
        """Absolute path of a stored name (directory parts are ignored)."""
        return (self._audio_dir / Path(audio_file_name).name).resolve()

    def audio_file_exists(self, audio_file_name: str) -> bool:
        if not audio_file_name:
            return False
        return self.get_audio_file_path(audio_file_name).is_file()
