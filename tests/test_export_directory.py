"""Tests for the live/pending export directories."""

from pathlib import Path

import pytest
from pagemark.storage.export_directory import HTACCESS_CONTENT, ExportDirectory


@pytest.fixture
def directory(tmp_path):
    return ExportDirectory(tmp_path, ["post", "page"])


def write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class TestSetup:
    """Tests for directory creation."""

    def test_setup_pending_creates_type_dirs(self, directory):
        """Test the root and one subdirectory per type."""
        root = directory.setup_pending()

        assert root == directory.pending
        assert (root / "post").is_dir()
        assert (root / "page").is_dir()
        assert not directory.live.exists()

    def test_protection_files(self, directory):
        """Test every created directory is guarded."""
        directory.setup_live()

        for path in (directory.live, directory.live / "post", directory.live / "page"):
            assert (path / ".htaccess").read_text(encoding="utf-8") == HTACCESS_CONTENT
            assert (path / "index.html").read_text(encoding="utf-8") == ""

    def test_unprotected(self, tmp_path):
        """Test protect=False writes no guard files."""
        directory = ExportDirectory(tmp_path, ["post"], protect=False)
        directory.setup_pending()
        assert not (directory.pending / ".htaccess").exists()
        assert not (directory.pending / "post" / "index.html").exists()

    def test_setup_is_idempotent(self, directory):
        """Test a second setup keeps existing files."""
        directory.setup_pending()
        write(directory.pending / "post" / "post-a-1.md", "x")

        directory.setup_pending()

        assert (directory.pending / "post" / "post-a-1.md").read_text(encoding="utf-8") == "x"

    def test_setup_with_batch_types(self, directory):
        """Test extra types get guarded directories next to the configured ones."""
        directory.setup_pending(["note", "post"])

        for name in ("post", "page", "note"):
            assert (directory.pending / name / ".htaccess").is_file()

    @pytest.mark.parametrize("item_type", ["../x", "a/b", ".."])
    def test_setup_rejects_path_types(self, directory, item_type):
        """Test type names that are not plain directory names."""
        with pytest.raises(ValueError):
            directory.setup_pending([item_type])
        assert not directory.pending.exists()

    def test_custom_names(self, tmp_path):
        """Test configurable tree names."""
        directory = ExportDirectory(tmp_path, ["post"], live_name="md", pending_name="md-next")
        assert directory.live == tmp_path / "md"
        assert directory.pending == tmp_path / "md-next"


class TestWritePath:
    """Tests for artifact paths."""

    def test_paths_per_role(self, directory):
        """Test live and pending paths."""
        assert directory.write_path("pending", "post", "post-a-1.md") == directory.pending / "post" / "post-a-1.md"
        assert directory.write_path("live", "page", "page-b-2.md") == directory.live / "page" / "page-b-2.md"

    def test_unknown_role(self, directory):
        """Test roles other than live/pending are rejected."""
        with pytest.raises(ValueError):
            directory.write_path("staging", "post", "x.md")

    @pytest.mark.parametrize(
        "item_type,filename",
        [("post", "../x.md"), ("post", "a/b.md"), ("../post", "x.md")],
    )
    def test_rejects_escaping_paths(self, directory, item_type, filename):
        """Test paths outside the tree are rejected."""
        with pytest.raises(ValueError):
            directory.write_path("pending", item_type, filename)


class TestSwap:
    """Tests for publishing pending as live."""

    def test_without_pending(self, directory):
        """Test swap fails when there is nothing to publish."""
        directory.setup_live()
        write(directory.live / "post" / "post-a-1.md", "old")

        assert directory.swap() is False
        assert (directory.live / "post" / "post-a-1.md").read_text(encoding="utf-8") == "old"

    def test_first_publish(self, directory):
        """Test swap without an existing live tree."""
        directory.setup_pending()
        write(directory.pending / "post" / "post-a-1.md", "new")

        assert directory.swap() is True
        assert (directory.live / "post" / "post-a-1.md").read_text(encoding="utf-8") == "new"
        assert not directory.pending.exists()

    def test_replaces_live_entirely(self, directory):
        """Test the old tree is gone, not merged."""
        directory.setup_live()
        write(directory.live / "post" / "post-old-1.md", "old")
        directory.setup_pending()
        write(directory.pending / "post" / "post-new-2.md", "new")

        assert directory.swap() is True

        assert sorted(p.name for p in (directory.live / "post").glob("*.md")) == ["post-new-2.md"]
        assert not directory.pending.exists()
        assert not directory.live.with_name(f"{directory.live.name}-old").exists()

    def test_rename_failure_restores_live(self, directory, monkeypatch):
        """Test a failed rename keeps live and pending for a retry."""
        directory.setup_live()
        write(directory.live / "post" / "post-old-1.md", "old")
        directory.setup_pending()
        write(directory.pending / "post" / "post-new-2.md", "new")

        original_rename = Path.rename
        pending = directory.pending

        def failing_rename(self, target):
            if self == pending:
                raise OSError("device busy")
            return original_rename(self, target)

        monkeypatch.setattr(Path, "rename", failing_rename)

        assert directory.swap() is False
        assert (directory.live / "post" / "post-old-1.md").read_text(encoding="utf-8") == "old"
        assert (directory.pending / "post" / "post-new-2.md").read_text(encoding="utf-8") == "new"


class TestCleanup:
    """Tests for removing the pending tree."""

    def test_removes_tree(self, directory):
        """Test cleanup removes pending recursively."""
        directory.setup_pending()
        write(directory.pending / "post" / "post-a-1.md", "x")

        directory.cleanup_pending()

        assert not directory.pending.exists()

    def test_noop_without_pending(self, directory):
        """Test cleanup is safe when pending is absent."""
        directory.cleanup_pending()
        assert not directory.pending.exists()


class TestListing:
    """Tests for listing published files."""

    def test_list_files(self, directory):
        """Test files are listed by type with ids parsed from names."""
        directory.setup_live()
        write(directory.live / "post" / "post-hello-12.md", "abc")
        write(directory.live / "page" / "page-about-3.md", "x")
        write(directory.live / "post" / "notes.md", "ignored")

        files = directory.list_files()

        assert [(f.type, f.id, f.filename) for f in files] == [
            ("post", 12, "post-hello-12.md"),
            ("page", 3, "page-about-3.md"),
        ]
        assert files[0].size == 3

    def test_list_files_by_type(self, directory):
        """Test filtering by type."""
        directory.setup_live()
        write(directory.live / "post" / "post-hello-12.md", "abc")
        write(directory.live / "page" / "page-about-3.md", "x")

        assert [f.id for f in directory.list_files(["page"])] == [3]

    def test_find_file(self, directory):
        """Test lookup by item id."""
        directory.setup_live()
        write(directory.live / "page" / "page-about-3.md", "x")

        assert directory.find_file(3).path == directory.live / "page" / "page-about-3.md"
        assert directory.find_file(4) is None

    def test_no_live_tree(self, directory):
        """Test listing before the first publish."""
        assert directory.list_files() == []
