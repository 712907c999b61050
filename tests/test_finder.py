"""End-to-end tests for the duplicate detection pipeline."""

import shutil
import threading
from pathlib import Path
from typing import List
from unittest.mock import patch

import pytest

from duplicate_finder.core.finder import DuplicateFinder
from duplicate_finder.core.fingerprint import (
    FingerprintProvider,
    PixelFingerprintProvider,
    RawBytesFingerprintProvider,
)
from duplicate_finder.core.models import DuplicatePair
from duplicate_finder.core.scanner import ImageScanner
from duplicate_finder.utils.config import Config


class ConstantProvider(FingerprintProvider):
    """Gives every file the same fingerprint to force collisions."""

    name = "constant"

    def fingerprint(self, path: Path) -> str:
        return "0" * 32


def _snapshot(root: Path) -> List[Path]:
    return sorted(p.relative_to(root) for p in root.rglob("*"))


def _scan(root: Path, config: Config = None) -> List[Path]:
    return ImageScanner(config or Config()).scan_directory(root)


@pytest.fixture
def finder():
    return DuplicateFinder(Config(), provider=PixelFingerprintProvider())


class TestFindDuplicates:
    """Detection without relocation."""

    def test_two_identical_one_distinct(self, tmp_path, finder, make_image):
        make_image(tmp_path / "a.png", color=(10, 20, 30))
        make_image(tmp_path / "b.png", color=(10, 20, 30))
        make_image(tmp_path / "c.png", color=(200, 100, 0))
        root = tmp_path.resolve()

        pairs = finder.find_duplicates(_scan(tmp_path))

        assert pairs == [DuplicatePair(root / "a.png", root / "b.png")]

    def test_png_and_jpg_of_same_picture(self, tmp_path, finder, make_image):
        make_image(tmp_path / "photo.png", color=(10, 20, 30))
        make_image(tmp_path / "photo.jpg", color=(10, 20, 30), fmt="JPEG")

        assert finder.find_duplicates(_scan(tmp_path)) == []

    def test_same_pixels_lossless_containers(self, tmp_path, finder, make_pattern_image):
        """Matching fingerprints alone never make a duplicate."""
        make_pattern_image(tmp_path / "a.png")
        make_pattern_image(tmp_path / "b.bmp", fmt="BMP")

        assert finder.find_duplicates(_scan(tmp_path)) == []

    def test_three_copies_all_pair_with_first(self, tmp_path, finder, make_pattern_image):
        source = make_pattern_image(tmp_path / "A.png")
        shutil.copy(source, tmp_path / "B.png")
        shutil.copy(source, tmp_path / "C.png")
        root = tmp_path.resolve()

        pairs = finder.find_duplicates(_scan(tmp_path))

        assert pairs == [
            DuplicatePair(root / "A.png", root / "B.png"),
            DuplicatePair(root / "A.png", root / "C.png"),
        ]

    def test_fingerprint_collision_resolved_by_verifier(self, tmp_path, make_image):
        make_image(tmp_path / "a.png", color=(1, 2, 3))
        make_image(tmp_path / "b.png", color=(4, 5, 6))
        shutil.copy(tmp_path / "a.png", tmp_path / "c.png")
        root = tmp_path.resolve()

        finder = DuplicateFinder(Config(), provider=ConstantProvider())
        pairs = finder.find_duplicates(_scan(tmp_path))

        assert pairs == [DuplicatePair(root / "a.png", root / "c.png")]

    def test_raw_bytes_fallback_finds_copies(self, tmp_path, make_pattern_image):
        source = make_pattern_image(tmp_path / "a.png")
        shutil.copy(source, tmp_path / "b.png")
        (tmp_path / "broken.jpg").write_bytes(b"not an image")
        (tmp_path / "broken_copy.jpg").write_bytes(b"not an image")

        for provider in (PixelFingerprintProvider(), RawBytesFingerprintProvider()):
            finder = DuplicateFinder(Config(), provider=provider)
            names = {(p.original.name, p.duplicate.name) for p in finder.find_duplicates(_scan(tmp_path))}

            assert names == {("a.png", "b.png"), ("broken.jpg", "broken_copy.jpg")}

    def test_unreadable_file_excluded(self, tmp_path, finder, make_image):
        make_image(tmp_path / "a.png")
        shutil.copy(tmp_path / "a.png", tmp_path / "b.png")

        pairs = finder.find_duplicates([tmp_path / "missing.png", tmp_path / "a.png", tmp_path / "b.png"])

        assert pairs == [DuplicatePair(tmp_path / "a.png", tmp_path / "b.png")]

    def test_empty_input(self, finder):
        assert finder.find_duplicates([]) == []

    def test_parallel_fingerprinting(self, tmp_path, make_pattern_image):
        for i in range(5):
            source = make_pattern_image(tmp_path / f"img{i}.png", seed=i)
            shutil.copy(source, tmp_path / f"img{i}_copy.png")

        config = Config({"fingerprint": {"workers": 4}})
        finder = DuplicateFinder(config, provider=PixelFingerprintProvider())
        pairs = finder.find_duplicates(_scan(tmp_path))

        assert [(p.original.name, p.duplicate.name) for p in pairs] == [
            (f"img{i}.png", f"img{i}_copy.png") for i in range(5)
        ]

    def test_each_call_uses_a_fresh_cache(self, tmp_path, finder):
        (tmp_path / "a.png").write_bytes(b"one")
        (tmp_path / "b.png").write_bytes(b"two")
        paths = [tmp_path / "a.png", tmp_path / "b.png"]

        assert finder.find_duplicates(paths) == []

        (tmp_path / "b.png").write_bytes(b"one")

        assert finder.find_duplicates(paths) == [DuplicatePair(paths[0], paths[1])]

    def test_cancelled_before_start(self, tmp_path, finder, make_image):
        make_image(tmp_path / "a.png")
        shutil.copy(tmp_path / "a.png", tmp_path / "b.png")
        cancel_event = threading.Event()
        cancel_event.set()

        assert finder.find_duplicates(_scan(tmp_path), cancel_event=cancel_event) == []

    def test_repeated_and_aliased_paths(self, tmp_path, finder, make_pattern_image):
        source = make_pattern_image(tmp_path / "a.png")
        shutil.copy(source, tmp_path / "b.png")
        shutil.copy(source, tmp_path / "c.png")
        alias = tmp_path / "alias.png"
        alias.symlink_to(tmp_path / "b.png")
        a, b, c = (tmp_path / name for name in ("a.png", "b.png", "c.png"))
        paths = [a, b, a, alias, c, c]

        pairs = finder.find_duplicates(paths)

        assert pairs == [DuplicatePair(a, b), DuplicatePair(a, c)]
        duplicates = [p.duplicate.resolve() for p in pairs]
        assert len(duplicates) == len(set(duplicates))
        for pair in pairs:
            assert pair.original.resolve() != pair.duplicate.resolve()
            assert paths.index(pair.original) < paths.index(pair.duplicate)


class TestRun:
    """Full pipeline including relocation."""

    def test_duplicate_is_quarantined(self, tmp_path, finder, make_image):
        make_image(tmp_path / "a.png", color=(10, 20, 30))
        make_image(tmp_path / "b.png", color=(10, 20, 30))
        make_image(tmp_path / "c.png", color=(200, 100, 0))
        root = tmp_path.resolve()

        report = finder.run(_scan(tmp_path))

        assert report.image_count == 3
        assert report.duplicate_count == 1
        assert report.moved_count == 1
        assert report.failed_count == 0
        assert not report.cancelled
        assert (root / "a.png").exists()
        assert not (root / "b.png").exists()
        assert (root / "duplicate" / "b.png").exists()
        assert report.results[0].destination == root / "duplicate" / "b.png"

    def test_existing_quarantine_name_gets_suffix(self, tmp_path, finder, make_image):
        make_image(tmp_path / "a.png", color=(1, 1, 1))
        make_image(tmp_path / "x.png", color=(1, 1, 1))
        quarantine = tmp_path / "duplicate"
        quarantine.mkdir()
        (quarantine / "x.png").write_bytes(b"previously quarantined")

        report = finder.run(_scan(tmp_path))

        assert report.results[0].destination == tmp_path.resolve() / "duplicate" / "x_1.png"
        assert (quarantine / "x.png").read_bytes() == b"previously quarantined"
        assert (quarantine / "x_1.png").exists()

    def test_dry_run_changes_nothing(self, tmp_path, finder, make_pattern_image):
        source = make_pattern_image(tmp_path / "a.png")
        for i in range(5):
            shutil.copy(source, tmp_path / f"copy{i}.png")
        before = _snapshot(tmp_path)

        report = finder.run(_scan(tmp_path), dry_run=True)

        assert report.duplicate_count == 5
        assert report.moved_count == 0
        assert all(r.destination is not None for r in report.results)
        assert _snapshot(tmp_path) == before

    def test_rerun_does_not_reflag_quarantined_files(self, tmp_path, finder, make_image):
        make_image(tmp_path / "a.png")
        make_image(tmp_path / "b.png")

        first = finder.run(_scan(tmp_path))
        second = finder.run(_scan(tmp_path))

        assert first.moved_count == 1
        assert second.duplicate_count == 0
        assert (tmp_path / "duplicate" / "b.png").exists()

    def test_custom_quarantine_folder(self, tmp_path, make_image):
        make_image(tmp_path / "a.png")
        make_image(tmp_path / "b.png")
        config = Config({"quarantine_dir": "dupes"})
        finder = DuplicateFinder(config, provider=PixelFingerprintProvider())

        finder.run(_scan(tmp_path, config))

        assert (tmp_path / "dupes" / "b.png").exists()
        assert finder.run(_scan(tmp_path, config)).duplicate_count == 0

    def test_failed_move_does_not_stop_others(self, tmp_path, finder, make_pattern_image):
        source = make_pattern_image(tmp_path / "a.png")
        shutil.copy(source, tmp_path / "b.png")
        shutil.copy(source, tmp_path / "c.png")
        root = tmp_path.resolve()

        original_relocate = finder.relocator.relocate

        def flaky(path):
            if path.name == "b.png":
                raise PermissionError("denied")
            return original_relocate(path)

        with patch.object(finder.relocator, "relocate", side_effect=flaky):
            report = finder.run(_scan(tmp_path))

        assert report.duplicate_count == 2
        assert report.moved_count == 1
        assert report.failed_count == 1
        assert "denied" in report.results[0].error
        assert (root / "b.png").exists()
        assert (root / "duplicate" / "c.png").exists()

    def test_cancel_between_moves(self, tmp_path, finder, make_pattern_image):
        source = make_pattern_image(tmp_path / "a.png")
        for name in ("b.png", "c.png", "d.png"):
            shutil.copy(source, tmp_path / name)

        cancel_event = threading.Event()
        pairs = finder.find_duplicates(_scan(tmp_path))
        results = []
        for result in finder.relocate_duplicates(pairs, cancel_event=cancel_event):
            results.append(result)
            cancel_event.set()

        assert len(results) == 1
        assert results[0].moved
        assert (tmp_path / "c.png").exists()
        assert (tmp_path / "d.png").exists()

    def test_file_listed_twice_stays_in_place(self, tmp_path, finder, make_image):
        photo = make_image(tmp_path / "a.png")

        report = finder.run([photo, photo])

        assert report.pairs == []
        assert report.results == []
        assert photo.exists()
        assert not (tmp_path / "duplicate").exists()

    def test_dry_run_destinations_match_real_run(self, tmp_path, finder, make_pattern_image):
        source = make_pattern_image(tmp_path / "a.png")
        shutil.copy(source, tmp_path / "x.png")
        shutil.copy(source, tmp_path / "x_1.png")
        quarantine = tmp_path / "duplicate"
        quarantine.mkdir()
        (quarantine / "x.png").write_bytes(b"previously quarantined")
        root = tmp_path.resolve()

        preview = finder.run(_scan(tmp_path), dry_run=True)
        real = finder.run(_scan(tmp_path))

        expected = [root / "duplicate" / "x_1.png", root / "duplicate" / "x_1_1.png"]
        assert [r.destination for r in preview.results] == expected
        assert [r.destination for r in real.results] == expected

    def test_provider_selected_from_config(self):
        finder = DuplicateFinder(Config({"fingerprint": {"method": "bytes"}}))

        assert isinstance(finder.provider, RawBytesFingerprintProvider)
        assert finder.relocator.quarantine_dir_name == "duplicate"
