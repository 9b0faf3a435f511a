"""Tests for the pagemark command line."""

import pytest
import yaml
from conftest import item_record, write_items
from pagemark.cli import create_parser, main


@pytest.fixture
def config_file(tmp_path):
    """Config pointing every path into tmp_path, with two posts to export."""
    write_items(tmp_path / "content", [item_record(1), item_record(2)])
    path = tmp_path / "pagemark.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "source": {"directory": str(tmp_path / "content")},
                "output": {"directory": str(tmp_path / "export")},
                "export": {"export_post_types": ["post"], "chunk_delay": 0},
                "state_dir": str(tmp_path / "state"),
            }
        ),
        encoding="utf-8",
    )
    return path


def live_dir(tmp_path):
    return tmp_path / "export" / "pagemark-export"


class TestParser:
    """Tests for argument parsing."""

    def test_export_options(self):
        """Test export flags."""
        args = create_parser().parse_args(["export", "--background", "--types", "post", "page", "--limit", "5"])
        assert args.command == "export"
        assert args.background is True
        assert args.wait is False
        assert args.types == ["post", "page"]
        assert args.limit == 5

    def test_command_required(self):
        """Test a command must be given."""
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_verbose_and_quiet_exclusive(self):
        """Test -v and -q cannot be combined."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["-v", "-q", "status"])


class TestCommands:
    """Tests for command execution."""

    def test_export(self, tmp_path, config_file, capsys):
        """Test an immediate export."""
        assert main(["-c", str(config_file), "export"]) == 0

        assert (live_dir(tmp_path) / "post" / "post-item-1-1.md").is_file()
        assert "Exported 2 items" in capsys.readouterr().out

    def test_background_with_ticks(self, tmp_path, config_file, capsys):
        """Test a background export driven by tick commands."""
        assert main(["-c", str(config_file), "-q", "export", "--background"]) == 0
        assert not live_dir(tmp_path).exists()

        main(["-c", str(config_file), "status"])
        assert "running" in capsys.readouterr().out

        for _ in range(5):
            assert main(["-c", str(config_file), "-q", "tick"]) == 0

        assert (live_dir(tmp_path) / "post" / "post-item-2-2.md").is_file()

        main(["-c", str(config_file), "status"])
        out = capsys.readouterr().out
        assert "No export running" in out
        assert "Last export" in out

    def test_background_wait(self, tmp_path, config_file, capsys):
        """Test --wait processes chunks until the export ends."""
        assert main(["-c", str(config_file), "export", "--background", "--wait"]) == 0

        assert (live_dir(tmp_path) / "post" / "post-item-1-1.md").is_file()
        assert "Exported 2 items" in capsys.readouterr().out

    def test_cancel(self, tmp_path, config_file):
        """Test cancelling a started export and cancelling nothing."""
        assert main(["-c", str(config_file), "cancel"]) == 1

        main(["-c", str(config_file), "-q", "export", "--background"])
        assert main(["-c", str(config_file), "cancel"]) == 0
        assert not (tmp_path / "export" / "pagemark-export-pending").exists()

    def test_files_and_show(self, config_file, capsys):
        """Test listing and printing published files."""
        main(["-c", str(config_file), "-q", "export"])
        capsys.readouterr()

        assert main(["-c", str(config_file), "files"]) == 0
        assert "post-item-1-1.md" in capsys.readouterr().out

        assert main(["-c", str(config_file), "show", "2"]) == 0
        assert "# Item 2" in capsys.readouterr().out

        assert main(["-c", str(config_file), "show", "99"]) == 1

    def test_invalid_config(self, tmp_path, capsys):
        """Test configuration errors exit with 1."""
        path = tmp_path / "bad.yaml"
        path.write_text("export:\n  chunk_size: 5\n", encoding="utf-8")

        assert main(["-c", str(path), "status"]) == 1
        assert "Configuration error" in capsys.readouterr().out
