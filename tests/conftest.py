"""Shared fixtures for the test suite."""

import logging
from pathlib import Path
from typing import Callable, Tuple

import pytest
from PIL import Image


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attached so later tests do not log to closed streams."""
    yield
    logger = logging.getLogger("duplicate_finder")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_image() -> Callable[..., Path]:
    """Return a helper that writes a solid-colour image and returns its path."""

    def _make(
        path: Path,
        color: Tuple[int, int, int] = (255, 0, 0),
        size: Tuple[int, int] = (32, 32),
        fmt: str = "PNG",
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color=color).save(path, fmt)
        return path

    return _make


@pytest.fixture
def make_pattern_image() -> Callable[..., Path]:
    """Return a helper that writes an image with a non-uniform pixel pattern."""

    def _make(path: Path, seed: int = 0, fmt: str = "PNG") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new("RGB", (32, 32))
        img.putdata(
            [((x * 7 + seed) % 256, (y * 13 + seed) % 256, (x * y + seed) % 256)
             for y in range(32) for x in range(32)]
        )
        img.save(path, fmt)
        return path

    return _make
