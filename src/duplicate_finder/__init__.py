"""
Duplicate Finder - Find byte-identical images and move the extra copies aside.

Images are bucketed by a cheap pixel fingerprint, confirmed byte for byte,
and every duplicate is moved into a quarantine folder next to it while the
first copy stays in place.
"""

__version__ = "1.0.0"
__author__ = "Duplicate Finder Contributors"

from duplicate_finder.core.finder import DuplicateFinder
from duplicate_finder.core.relocator import Relocator
from duplicate_finder.core.scanner import ImageScanner

__all__ = ["DuplicateFinder", "ImageScanner", "Relocator", "__version__"]
