"""
Content fingerprinting for duplicate candidates.

A fingerprint is a cheap digest used to bucket files that are likely to be
identical. Two providers implement it: one decodes the image and hashes a
tiny greyscale thumbnail of its pixels, the other hashes the raw file bytes.
The provider is picked once per run and the results are memoized in a
per-run cache.
"""

import hashlib
import io
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from PIL import Image
from tqdm import tqdm

logger = logging.getLogger(__name__)

FINGERPRINT_METHODS = ("auto", "pixels", "bytes")

_READ_CHUNK = 64 * 1024


class FingerprintProvider(ABC):
    """Computes a fingerprint for a single file."""

    name = "abstract"

    @abstractmethod
    def fingerprint(self, path: Path) -> str:
        """
        Compute the fingerprint of a file.

        Args:
            path: File to fingerprint

        Returns:
            Hex digest string

        Raises:
            OSError: If the file cannot be read
        """


class RawBytesFingerprintProvider(FingerprintProvider):
    """MD5 of the file's stored bytes. Not format-insensitive."""

    name = "bytes"

    def fingerprint(self, path: Path) -> str:
        md5 = hashlib.md5()
        with open(path, "rb") as f:
            # Read in chunks for memory efficiency
            for chunk in iter(lambda: f.read(_READ_CHUNK), b""):
                md5.update(chunk)
        return md5.hexdigest()


class PixelFingerprintProvider(FingerprintProvider):
    """
    MD5 of a downsampled greyscale rendering of the image.

    Pixel-identical images stored in different lossless containers share a
    fingerprint. Files Pillow cannot decode are hashed by their raw bytes
    instead.
    """

    name = "pixels"

    def __init__(self, grid_size: int = 8, fallback: Optional[FingerprintProvider] = None):
        """
        Initialize the pixel fingerprint provider.

        Args:
            grid_size: Edge length of the square thumbnail that gets hashed
            fallback: Provider used when decoding fails
        """
        self.grid_size = grid_size
        self.fallback = fallback or RawBytesFingerprintProvider()

    def fingerprint(self, path: Path) -> str:
        try:
            pixels = self._thumbnail_bytes(path)
        except (
            OSError, ValueError, SyntaxError, EOFError, Image.DecompressionBombError
        ) as e:
            logger.debug(f"Could not decode {path} ({e}), hashing raw bytes")
            return self.fallback.fingerprint(path)

        return hashlib.md5(pixels).hexdigest()

    def _thumbnail_bytes(self, path: Path) -> bytes:
        with Image.open(path) as img:
            img.load()
            thumb = (
                img.convert("RGB")
                .resize((self.grid_size, self.grid_size), Image.Resampling.LANCZOS)
                .convert("L")
            )
            return thumb.tobytes()


def probe_image_decoding() -> bool:
    """
    Check that Pillow can round-trip an image in this environment.

    Returns:
        True if encoding and decoding a tiny PNG works
    """
    try:
        buffer = io.BytesIO()
        Image.new("L", (1, 1)).save(buffer, format="PNG")
        buffer.seek(0)
        with Image.open(buffer) as img:
            img.load()
    except (OSError, ValueError) as e:
        logger.warning(f"Image decoding unavailable ({e}), using raw-bytes fingerprints")
        return False
    return True


def select_provider(method: str = "auto", grid_size: int = 8) -> FingerprintProvider:
    """
    Pick the fingerprint provider for a run.

    Args:
        method: 'auto', 'pixels' or 'bytes'
        grid_size: Thumbnail size for the pixel provider

    Returns:
        Provider instance

    Raises:
        ValueError: If the method is unknown
    """
    method = method.lower()
    if method not in FINGERPRINT_METHODS:
        raise ValueError(
            f"Unknown fingerprint method '{method}' "
            f"(expected one of: {', '.join(FINGERPRINT_METHODS)})"
        )

    if method == "bytes" or (method == "auto" and not probe_image_decoding()):
        provider: FingerprintProvider = RawBytesFingerprintProvider()
    else:
        provider = PixelFingerprintProvider(grid_size=grid_size)

    logger.info(f"Using {provider.name} fingerprints")
    return provider


class FingerprintCache:
    """
    Path to fingerprint mapping for the lifetime of one run.

    Each key has its own lock so a path is fingerprinted at most once even
    when several threads ask for it.
    """

    def __init__(self):
        self._values: Dict[Path, Optional[str]] = {}
        self._key_locks: Dict[Path, threading.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, path: Path) -> bool:
        return path in self._values

    def get_or_compute(
        self, path: Path, compute: Callable[[Path], Optional[str]]
    ) -> Optional[str]:
        """
        Return the cached fingerprint for a path, computing it on first use.

        Args:
            path: Cache key
            compute: Called with the path on a miss

        Returns:
            Cached or freshly computed value (None is cached too)
        """
        if path in self._values:
            return self._values[path]

        with self._lock:
            key_lock = self._key_locks.setdefault(path, threading.Lock())

        with key_lock:
            if path not in self._values:
                self._values[path] = compute(path)
            return self._values[path]


class FingerprintEngine:
    """Memoizing front end over a fingerprint provider."""

    def __init__(
        self,
        provider: FingerprintProvider,
        cache: Optional[FingerprintCache] = None,
        show_progress: bool = False,
    ):
        """
        Initialize the fingerprint engine.

        Args:
            provider: Provider that does the hashing
            cache: Cache scoped to the current run (a new one if omitted)
            show_progress: Show a progress bar in fingerprint_many
        """
        self.provider = provider
        self.cache = cache if cache is not None else FingerprintCache()
        self.show_progress = show_progress

    def fingerprint(self, path: Path) -> Optional[str]:
        """
        Fingerprint a file.

        Args:
            path: Absolute file path

        Returns:
            Hex digest, or None if the file could not be read
        """
        return self.cache.get_or_compute(path, self._compute)

    def fingerprint_many(
        self,
        paths: Iterable[Path],
        workers: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dict[Path, Optional[str]]:
        """
        Fingerprint many files, optionally on a thread pool.

        Args:
            paths: Files to fingerprint
            workers: Number of worker threads (1 runs sequentially)
            cancel_event: Stops scheduling new files once set

        Returns:
            Dictionary mapping each processed path to its fingerprint
        """
        path_list: List[Path] = list(paths)
        results: Dict[Path, Optional[str]] = {}

        progress = tqdm(
            total=len(path_list),
            desc="Fingerprinting",
            unit="file",
            disable=not self.show_progress,
        )

        def work(path: Path) -> Optional[str]:
            if cancel_event is not None and cancel_event.is_set():
                return None
            value = self.fingerprint(path)
            progress.update(1)
            return value

        try:
            if workers <= 1:
                for path in path_list:
                    if cancel_event is not None and cancel_event.is_set():
                        break
                    results[path] = work(path)
            else:
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    for path, value in zip(path_list, executor.map(work, path_list)):
                        if path in self.cache:
                            results[path] = value
        finally:
            progress.close()

        return results

    def _compute(self, path: Path) -> Optional[str]:
        try:
            return self.provider.fingerprint(path)
        except OSError as e:
            logger.warning(f"Skipping unreadable file {path}: {e}")
            return None
