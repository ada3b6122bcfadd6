"""Integration tests for CLI commands."""

import json
import sys
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from uepm.cli.main import app

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX symlinks")


@pytest.fixture
def runner():
    """Get a CLI test runner."""
    return CliRunner()


class TestVersionCommand:
    """Tests for 'uepm version' command."""

    def test_version_shows_version(self, runner: CliRunner):
        """Version command shows version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "uepm" in result.output


class TestInitCommand:
    """Tests for 'uepm init' command."""

    def test_init_creates_settings(self, runner: CliRunner, temp_project: Path):
        """Init writes uepm.yaml."""
        result = runner.invoke(app, ["init", "--path", str(temp_project)])

        assert result.exit_code == 0
        config = yaml.safe_load((temp_project / "uepm.yaml").read_text())
        assert config["link_mode"] == "auto"

    def test_init_with_options(self, runner: CliRunner, temp_project: Path):
        """Init stores mode and plugins directory."""
        result = runner.invoke(
            app,
            ["init", "--mode", "copy", "--plugins-dir", "Plugins/Npm", "--path", str(temp_project)],
        )

        assert result.exit_code == 0
        config = yaml.safe_load((temp_project / "uepm.yaml").read_text())
        assert config["link_mode"] == "copy"
        assert config["plugins_dir"] == "Plugins/Npm"

    def test_init_rejects_unknown_mode(self, runner: CliRunner, temp_project: Path):
        """Init fails for an unknown link mode."""
        result = runner.invoke(app, ["init", "--mode", "hardlink", "--path", str(temp_project)])

        assert result.exit_code == 1
        assert not (temp_project / "uepm.yaml").exists()

    def test_init_fails_for_existing_project(self, runner: CliRunner, temp_project: Path):
        """Init fails if uepm.yaml already exists."""
        (temp_project / "uepm.yaml").write_text("link_mode: auto\n")

        result = runner.invoke(app, ["init", "--path", str(temp_project)])

        assert result.exit_code == 1
        assert "already initialized" in result.output.lower()

    def test_init_missing_directory(self, runner: CliRunner, temp_dir: Path):
        """Init fails for a missing directory."""
        result = runner.invoke(app, ["init", "--path", str(temp_dir / "missing")])
        assert result.exit_code == 1


@posix_only
class TestSyncCommand:
    """Tests for 'uepm sync' command."""

    def test_sync_links_plugins(self, runner: CliRunner, temp_project: Path, install_package):
        """Sync links discovered plugins."""
        install_package("pkg-a", {"Foo.uplugin": "{}"})

        result = runner.invoke(app, ["sync", "--path", str(temp_project)])

        assert result.exit_code == 0
        assert "Linked Foo" in result.output
        assert (temp_project / "Plugins" / "Foo").is_symlink()

    def test_sync_nothing_to_do(self, runner: CliRunner, temp_project: Path):
        """Sync without plugins reports nothing to do."""
        result = runner.invoke(app, ["sync", "--path", str(temp_project)])

        assert result.exit_code == 0
        assert "Nothing to link" in result.output

    def test_sync_copy_mode_and_dest(
        self, runner: CliRunner, temp_project: Path, install_package, temp_dir: Path
    ):
        """--mode and --dest override the settings."""
        install_package("pkg-a", {"Foo.uplugin": "{}"})
        dest = temp_dir / "Out"

        result = runner.invoke(
            app, ["sync", "--mode", "copy", "--dest", str(dest), "--path", str(temp_project)]
        )

        assert result.exit_code == 0
        assert (dest / "Foo").is_dir() and not (dest / "Foo").is_symlink()
        links = json.loads((dest / ".uepm_links.json").read_text())["links"]
        assert [r["pluginName"] for r in links] == ["Foo"]

    def test_sync_shows_warnings(self, runner: CliRunner, temp_project: Path, install_package):
        """Warnings are printed and do not fail the command."""
        install_package("pkg-a", {"Foo.uplugin": "{}"})
        (temp_project / "Plugins" / "Foo").mkdir(parents=True)

        result = runner.invoke(app, ["sync", "--path", str(temp_project)])

        assert result.exit_code == 0
        assert "Skipping" in result.output

    def test_sync_fatal_error(
        self, runner: CliRunner, temp_project: Path, install_package, temp_dir: Path
    ):
        """An uncreatable destination fails the command."""
        install_package("pkg-a", {"Foo.uplugin": "{}"})
        blocker = temp_dir / "blocker"
        blocker.write_text("file")

        result = runner.invoke(
            app, ["sync", "--dest", str(blocker / "Plugins"), "--path", str(temp_project)]
        )

        assert result.exit_code == 1

    def test_sync_unknown_mode(self, runner: CliRunner, temp_project: Path):
        """An unknown --mode fails."""
        result = runner.invoke(app, ["sync", "--mode", "nope", "--path", str(temp_project)])
        assert result.exit_code == 1

    def test_sync_not_a_project(self, runner: CliRunner, temp_dir: Path):
        """Sync outside a project fails."""
        plain = temp_dir / "plain"
        plain.mkdir()

        result = runner.invoke(app, ["sync", "--path", str(plain)])

        assert result.exit_code == 1


@posix_only
class TestListCommand:
    """Tests for 'uepm list' command."""

    def test_list_no_plugins(self, runner: CliRunner, temp_project: Path):
        """List reports when nothing is found."""
        result = runner.invoke(app, ["list", "--path", str(temp_project)])

        assert result.exit_code == 0
        assert "No plugins found" in result.output

    def test_list_shows_plugins(self, runner: CliRunner, temp_project: Path, install_package):
        """List shows plugins and their state."""
        install_package("pkg-a", {"Foo.uplugin": "{}"})
        runner.invoke(app, ["sync", "--path", str(temp_project)])

        result = runner.invoke(app, ["list", "--path", str(temp_project)])

        assert result.exit_code == 0
        assert "Foo" in result.output
        assert "pkg-a" in result.output
        assert "linked" in result.output


@posix_only
class TestCleanCommand:
    """Tests for 'uepm clean' command."""

    def test_clean_removes_links(self, runner: CliRunner, temp_project: Path, install_package):
        """Clean removes managed links."""
        pkg_a = install_package("pkg-a", {"Foo.uplugin": "{}"})
        runner.invoke(app, ["sync", "--path", str(temp_project)])

        result = runner.invoke(app, ["clean", "--path", str(temp_project)])

        assert result.exit_code == 0
        assert "Removed Foo" in result.output
        assert not (temp_project / "Plugins" / "Foo").exists()
        assert (pkg_a / "Foo.uplugin").exists()

    def test_clean_nothing_to_remove(self, runner: CliRunner, temp_project: Path):
        """Clean without managed links does nothing."""
        result = runner.invoke(app, ["clean", "--path", str(temp_project)])

        assert result.exit_code == 0
        assert "Nothing to remove" in result.output
