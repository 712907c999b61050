"""
End-to-end demo script to showcase the complete workflow.

Creates a handful of sample images (exact copies, re-encoded copies and
near-identical colours), previews the moves with a dry run, then applies them.
"""

import shutil
from pathlib import Path
from tempfile import TemporaryDirectory

from PIL import Image

from duplicate_finder.core.finder import DuplicateFinder
from duplicate_finder.core.scanner import ImageScanner
from duplicate_finder.utils.config import Config


def create_demo_images(demo_dir: Path) -> None:
    """
    Create sample images for demonstration.

    Args:
        demo_dir: Directory to create images in
    """
    print(f"Creating demo images in: {demo_dir}")

    red = demo_dir / "red-square.png"
    Image.new("RGB", (10, 10), color=(255, 0, 0)).save(red, "PNG")
    Image.new("RGB", (10, 10), color=(0, 0, 255)).save(demo_dir / "blue-square.png", "PNG")
    Image.new("RGB", (10, 10), color=(0, 255, 0)).save(demo_dir / "green-square.png", "PNG")

    # Exact copy, in the same folder and in a sub-folder
    shutil.copy(red, demo_dir / "red-square-duplicate.png")
    (demo_dir / "album").mkdir(exist_ok=True)
    shutil.copy(red, demo_dir / "album" / "red-square.png")

    # Same picture re-encoded as JPEG: not a byte-identical duplicate
    Image.new("RGB", (10, 10), color=(255, 0, 0)).save(demo_dir / "red-square.jpg", "JPEG")

    # Slightly different red: different pixels altogether
    Image.new("RGB", (10, 10), color=(254, 0, 0)).save(
        demo_dir / "red-square-similar.png", "PNG"
    )

    print("✓ Created 7 images (2 exact copies of red-square.png)")


def main():
    """Run the demo."""
    print("=" * 70)
    print("DUPLICATE FINDER - END-TO-END DEMO")
    print("=" * 70)
    print()

    with TemporaryDirectory() as temp_dir:
        demo_dir = Path(temp_dir) / "demo"
        demo_dir.mkdir()

        print("STEP 1: Creating demo images")
        print("-" * 70)
        create_demo_images(demo_dir)
        print()

        print("STEP 2: Scanning for images")
        print("-" * 70)
        config = Config()
        scanner = ImageScanner(config)
        image_paths = scanner.scan_directory(demo_dir, recursive=True)
        root = demo_dir.resolve()
        print(f"✓ Found {len(image_paths)} images")
        for path in image_paths:
            print(f"  - {path.relative_to(root)}")
        print()

        print("STEP 3: Dry run")
        print("-" * 70)
        finder = DuplicateFinder(config)
        report = finder.run(image_paths, dry_run=True)
        for result in report.results:
            print(f"  {result.duplicate.relative_to(root)} (copy of {result.original.name})")
            print(f"    → would move to {result.destination.relative_to(root)}")
        print(f"✓ {report.duplicate_count} duplicate(s) would be moved")
        print()

        print("STEP 4: Moving duplicates")
        print("-" * 70)
        report = finder.run(image_paths)
        for result in report.results:
            if result.moved:
                print(f"  ✓ {result.destination.relative_to(root)}")
            else:
                print(f"  ✗ {result.duplicate.relative_to(root)}: {result.error}")
        print()

        print("STEP 5: Re-scanning")
        print("-" * 70)
        remaining = scanner.scan_directory(demo_dir, recursive=True)
        again = finder.run(remaining, dry_run=True)
        print(f"✓ {len(remaining)} images left, {again.duplicate_count} duplicate(s) found")
        print()
        print("=" * 70)


if __name__ == "__main__":
    main()
