import os
from datetime import datetime
from types import SimpleNamespace

from zimbuild.resources import (
    Provider,
    Resource,
    Resources,
    hash_file,
    last_modified,
    match_resources,
)


class FakeResource(Resource):
    def __init__(self, path, on_fs=True, modified=datetime(2020, 1, 1)):
        self._path = path
        self._on_fs = on_fs
        self._modified = modified

    def name(self):
        return os.path.basename(self._path)

    def path(self):
        return self._path

    def exists(self):
        return True

    def hash(self):
        return "h"

    def last_modified(self):
        return self._modified

    def on_filesystem(self):
        return self._on_fs

    def cacheable(self):
        return self._on_fs

    def as_file(self):
        return self._path


class FakeProvider(Provider):
    def __init__(self):
        self.patterns = []

    def init(self, options):
        pass

    def name(self):
        return "fake"

    def new(self, path):
        return FakeResource(path)

    def match(self, pattern):
        self.patterns.append(pattern)
        return Resources([self.new(pattern)])


def test_hash_file_empty(tmp_path):
    target = tmp_path / "empty"
    target.write_bytes(b"")
    assert hash_file(str(target)) == "da39a3ee5e6b4b0d3255bfef95601890afd80709"


def test_hash_file_abc(tmp_path):
    target = tmp_path / "abc"
    target.write_bytes(b"abc")
    assert hash_file(str(target)) == "a9993e364706816aba3e25717850c26c9cd0d89d"


def test_hash_file_changes_with_content(tmp_path):
    target = tmp_path / "f"
    target.write_bytes(b"one")
    first = hash_file(str(target))
    target.write_bytes(b"two")
    assert hash_file(str(target)) != first and len(first) == 40


def test_paths():
    rs = Resources([FakeResource("/a/b"), FakeResource("/a/c")])
    assert rs.paths() == ["/a/b", "/a/c"]


def test_relative_paths_keeps_off_disk_paths():
    rs = Resources(
        [FakeResource("/repo/artifacts/foo"), FakeResource("s3://bucket/x", on_fs=False)]
    )
    assert rs.relative_paths("/repo") == [
        os.path.join("artifacts", "foo"),
        "s3://bucket/x",
    ]


def test_relative_paths_upward():
    rs = Resources([FakeResource("/repo/artifacts/foo")])
    assert rs.relative_paths("/repo/src/foo") == [
        os.path.join("..", "..", "artifacts", "foo")
    ]


def test_last_modified_picks_latest():
    early = datetime(2019, 5, 1)
    late = datetime(2021, 5, 1)
    rs = Resources([FakeResource("a", modified=early), FakeResource("b", modified=late)])
    assert rs.last_modified() == late
    assert last_modified(list(rs)) == late


def test_last_modified_empty():
    assert Resources().last_modified() == datetime.min


def test_match_resources_joins_rel_path():
    provider = FakeProvider()
    component = SimpleNamespace(rel_path="src/foo")
    result = match_resources(component, provider, ["main.go", "*.txt"])
    assert provider.patterns == ["src/foo/main.go", "src/foo/*.txt"]
    assert result.paths() == ["src/foo/main.go", "src/foo/*.txt"]
    assert isinstance(result, Resources)


def test_match_resources_no_patterns():
    provider = FakeProvider()
    component = SimpleNamespace(rel_path="src")
    assert match_resources(component, provider, None) == []
    assert provider.patterns == []