import os
import zipfile

import pytest

from swank import swank_locator
from swank.swank_datatypes import FileLocation, LocationNotFound, SearchRoot, ZipLocation
from swank.swank_locator import locate


def write(path, text="x = 1\n"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def make_zip(path, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name in entries:
            zf.writestr(name, "x = 1\n")
    return path


def test_absolute_path_is_returned_without_roots(tmp_path):
    target = str(tmp_path / "nowhere" / "mod.py")
    assert locate(target, []) == FileLocation(target)
    assert locate(target, [SearchRoot(str(tmp_path))]) == FileLocation(target)


def test_file_in_directory_root(tmp_path):
    write(tmp_path / "app" / "core.py")
    found = locate("app/core.py", [SearchRoot(str(tmp_path))])
    assert found == FileLocation(os.path.join(str(tmp_path), "app/core.py"))
    assert found.line is None


def test_entry_in_archive_root(tmp_path):
    archive = make_zip(tmp_path / "lib.zip", ["app/core.py"])
    found = locate("app/core.py", [SearchRoot(str(archive))])
    assert found == ZipLocation(str(archive), "app/core.py")


def test_first_root_wins(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    write(first / "mod.py")
    write(second / "mod.py")
    archive = make_zip(tmp_path / "lib.zip", ["mod.py"])
    roots = [SearchRoot(str(archive)), SearchRoot(str(first)), SearchRoot(str(second))]
    assert locate("mod.py", roots) == ZipLocation(str(archive), "mod.py")
    roots = [SearchRoot(str(second)), SearchRoot(str(first))]
    assert locate("mod.py", roots) == FileLocation(os.path.join(str(second), "mod.py"))


def test_directory_hit_never_opens_root_as_archive(tmp_path, monkeypatch):
    write(tmp_path / "src" / "mod.py")
    junk = tmp_path / "broken.jar"
    junk.write_bytes(b"definitely not a zip")
    opened = []
    real_open = swank_locator._open_archive

    def spy(path):
        opened.append(path)
        return real_open(path)

    monkeypatch.setattr(swank_locator, "_open_archive", spy)
    found = locate("mod.py", [SearchRoot(str(tmp_path / "src")), SearchRoot(str(junk))])
    assert found == FileLocation(os.path.join(str(tmp_path / "src"), "mod.py"))
    assert opened == []


def test_unreadable_roots_are_skipped(tmp_path):
    junk = tmp_path / "broken.jar"
    junk.write_bytes(b"definitely not a zip")
    archive = make_zip(tmp_path / "lib.zip", ["pkg/mod.py"])
    roots = [
        SearchRoot(str(tmp_path / "missing-dir")),
        SearchRoot(str(junk)),
        SearchRoot(str(tmp_path)),
        SearchRoot(str(archive)),
    ]
    assert locate("pkg/mod.py", roots) == ZipLocation(str(archive), "pkg/mod.py")


def test_archive_entry_name_must_match_exactly(tmp_path):
    archive = make_zip(tmp_path / "lib.zip", ["pkg/mod.py"])
    assert isinstance(locate("mod.py", [SearchRoot(str(archive))]), LocationNotFound)


def test_not_found_marker(tmp_path):
    found = locate("app/core.py", [SearchRoot(str(tmp_path))])
    assert isinstance(found, LocationNotFound)
    assert "app/core.py" in found.reason
    assert isinstance(locate("app/core.py", []), LocationNotFound)


@pytest.mark.parametrize("hit", [True, False])
def test_archives_are_closed_on_every_path(tmp_path, monkeypatch, hit):
    archive = make_zip(tmp_path / "lib.zip", ["mod.py" if hit else "other.py"])
    opened = []

    class TrackingZipFile(zipfile.ZipFile):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            opened.append(self)

    monkeypatch.setattr(swank_locator.zipfile, "ZipFile", TrackingZipFile)
    locate("mod.py", [SearchRoot(str(archive))])
    assert len(opened) == 1
    assert opened[0].fp is None


def unsupported_zip(path):
    """An archive whose entries claim a zip version newer than zipfile can read."""
    make_zip(path, ["m.py"])
    data = bytearray(path.read_bytes())
    central = data.find(b"PK\x01\x02")
    data[central + 6:central + 8] = (114).to_bytes(2, "little")
    path.write_bytes(bytes(data))
    return path


def test_archive_of_unsupported_version_is_no_match(tmp_path):
    archive = unsupported_zip(tmp_path / "future.zip")
    with pytest.raises(NotImplementedError):
        zipfile.ZipFile(archive)
    write(tmp_path / "src" / "m.py")
    roots = [SearchRoot(str(archive)), SearchRoot(str(tmp_path / "src"))]
    assert locate("m.py", roots) == FileLocation(os.path.join(str(tmp_path / "src"), "m.py"))
    assert isinstance(locate("m.py", [SearchRoot(str(archive))]), LocationNotFound)


def test_any_failure_opening_an_archive_is_no_match(tmp_path, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("unreadable")

    write(tmp_path / "src" / "m.py")
    monkeypatch.setattr(swank_locator.zipfile, "ZipFile", explode)
    roots = [SearchRoot(str(tmp_path / "lib.zip")), SearchRoot(str(tmp_path / "src"))]
    assert locate("m.py", roots) == FileLocation(os.path.join(str(tmp_path / "src"), "m.py"))
