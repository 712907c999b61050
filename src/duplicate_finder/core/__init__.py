"""Core functionality for duplicate image detection and relocation."""

from duplicate_finder.core.finder import DuplicateFinder
from duplicate_finder.core.fingerprint import FingerprintEngine, select_provider
from duplicate_finder.core.grouper import DuplicateGrouper
from duplicate_finder.core.relocator import Relocator
from duplicate_finder.core.scanner import ImageScanner
from duplicate_finder.core.verifier import ExactVerifier

__all__ = [
    "DuplicateFinder",
    "DuplicateGrouper",
    "ExactVerifier",
    "FingerprintEngine",
    "ImageScanner",
    "Relocator",
    "select_provider",
]
