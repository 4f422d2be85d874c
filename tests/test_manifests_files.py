"""Tests for bounded file access."""

from pathlib import Path

from deployplan.manifests.files import (
    iter_source_files,
    read_json,
    read_json_object,
    read_text,
    read_toml,
    read_yaml,
    sorted_glob,
)


class TestReadText:
    """Test read_text size and existence gates."""

    def test_missing_file_is_none(self, tmp_path):
        """Missing files read as None."""
        assert read_text(tmp_path / "nope.txt") is None

    def test_directory_is_none(self, tmp_path):
        """Directories are not files."""
        (tmp_path / "dir").mkdir()
        assert read_text(tmp_path / "dir") is None

    def test_oversized_file_is_none(self, tmp_path):
        """Files above the ceiling are treated as absent."""
        path = tmp_path / "big.txt"
        path.write_text("x" * 100)
        assert read_text(path, max_bytes=10) is None

    def test_reads_within_ceiling(self, tmp_path):
        """Files within the ceiling are returned verbatim."""
        path = tmp_path / "small.txt"
        path.write_text("hello")
        assert read_text(path, max_bytes=10) == "hello"

    def test_default_ceiling_from_settings(self, tmp_path, monkeypatch):
        """Without an explicit ceiling the manifest setting applies."""
        from deployplan.settings import get_settings

        monkeypatch.setenv("DEPLOYPLAN_MANIFEST_MAX_BYTES", "4")
        get_settings.cache_clear()
        path = tmp_path / "f.txt"
        path.write_text("12345")
        assert read_text(path) is None


class TestStructuredReads:
    """Malformed input is a recoverable None, never an exception."""

    def test_malformed_json(self, tmp_path):
        """Broken JSON reads as absent."""
        path = tmp_path / "package.json"
        path.write_text("{not json")
        assert read_json(path) is None

    def test_malformed_yaml(self, tmp_path):
        """Broken YAML reads as absent."""
        path = tmp_path / "x.yaml"
        path.write_text("key: [unclosed")
        assert read_yaml(path) is None

    def test_malformed_toml(self, tmp_path):
        """Broken TOML reads as absent."""
        path = tmp_path / "Cargo.toml"
        path.write_text("[package\nname = ")
        assert read_toml(path) is None

    def test_valid_toml(self, tmp_path):
        """Valid TOML parses to a dict."""
        path = tmp_path / "Cargo.toml"
        path.write_text('[dependencies]\naxum = "0.7"\n')
        assert read_toml(path) == {"dependencies": {"axum": "0.7"}}

    def test_json_object_rejects_list(self, tmp_path):
        """read_json_object only accepts a top-level object."""
        path = tmp_path / "a.json"
        path.write_text("[1, 2]")
        assert read_json(path) == [1, 2]
        assert read_json_object(path) is None


class TestGlobbing:
    """Test sorted, deterministic enumeration."""

    def test_sorted_glob_dirs_only(self, tmp_path):
        """Directory globs skip files and sort by name."""
        for name in ("zeta", "alpha", "mid"):
            (tmp_path / "apps" / name).mkdir(parents=True)
        (tmp_path / "apps" / "README.md").write_text("x")

        result = sorted_glob(tmp_path, "apps/*", dirs_only=True)

        assert [p.name for p in result] == ["alpha", "mid", "zeta"]

    def test_sorted_glob_files(self, tmp_path):
        """File globs skip directories and sort by name."""
        (tmp_path / "b.py").write_text("")
        (tmp_path / "a.py").write_text("")
        (tmp_path / "pkg").mkdir()

        assert [p.name for p in sorted_glob(tmp_path, "*")] == ["a.py", "b.py"]

    def test_iter_source_files_skips_vendor_dirs(self, tmp_path: Path):
        """node_modules and hidden directories are never descended into."""
        (tmp_path / "node_modules" / "lib").mkdir(parents=True)
        (tmp_path / "node_modules" / "lib" / "index.js").write_text("")
        (tmp_path / ".cache").mkdir()
        (tmp_path / ".cache" / "x.js").write_text("")
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.js").write_text("")
        (tmp_path / "index.js").write_text("")

        found = [p.relative_to(tmp_path).as_posix() for p in iter_source_files(tmp_path, (".js",), 10)]

        assert found == ["index.js", "src/app.js"]

    def test_iter_source_files_is_capped(self, tmp_path):
        """The walk stops at the file limit."""
        for i in range(5):
            (tmp_path / f"f{i}.py").write_text("")

        found = list(iter_source_files(tmp_path, (".py",), 3))

        assert [p.name for p in found] == ["f0.py", "f1.py", "f2.py"]
