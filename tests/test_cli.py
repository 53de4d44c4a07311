"""Unit tests for the command-line interface."""

from unittest.mock import patch

import pytest

from fnmdesk import cli
from fnmdesk.managers.fnm_output import EnvironmentConfig, NodeVersion


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("fnmdesk.cli.configure_logging") as configure:
        yield configure


def nm(name):
    return f"fnmdesk.managers.node_manager.{name}"


class TestDispatch:
    """Test that subcommands reach the right operation."""

    def test_list_prints_output(self, capsys):
        with patch(nm("list_installed_node_versions"), return_value=(True, "* v20.12.2 default\n")):
            assert cli.main(["list"]) == 0
        assert capsys.readouterr().out == "* v20.12.2 default\n"

    def test_list_remote_options(self):
        with patch(nm("list_remote_node_versions"), return_value=(True, "v18.20.8")) as op:
            assert cli.main(["list-remote", "--lts", "--filter", "18"]) == 0
        op.assert_called_once_with(lts_only=True, filter_keyword="18")

    def test_list_parsed_prints_tagged_lines(self, capsys):
        versions = [
            NodeVersion("v20.12.2", is_installed=True, is_default=True, is_current=True, is_lts=True, lts_name="Iron"),
            NodeVersion("v18.20.8", is_installed=True, aliases=["work"]),
        ]
        with patch(nm("get_installed_node_versions"), return_value=(True, versions)) as op, \
                patch(nm("list_installed_node_versions")) as raw:
            assert cli.main(["list", "--parsed"]) == 0
        op.assert_called_once_with()
        raw.assert_not_called()
        assert capsys.readouterr().out == (
            "v20.12.2 (Iron) [installed, default, current]\n"
            "v18.20.8 [installed, work]\n"
        )


class TestListRemoteRefinement:
    """Test list-remote narrowing over parsed versions."""

    REMOTE = [
        NodeVersion("v22.21.1"),
        NodeVersion("v20.12.2", is_installed=True, is_lts=True, lts_name="Iron"),
        NodeVersion("v20.11.0", is_installed=True, is_lts=True, lts_name="Iron"),
        NodeVersion("v18.20.8", is_lts=True, lts_name="Hydrogen"),
    ]

    def test_installed_only(self, capsys):
        with patch(nm("get_remote_node_versions"), return_value=(True, list(self.REMOTE))) as op, \
                patch(nm("list_remote_node_versions")) as raw:
            assert cli.main(["list-remote", "--installed-only"]) == 0
        op.assert_called_once_with(lts_only=False, filter_keyword=None)
        raw.assert_not_called()
        assert capsys.readouterr().out.splitlines() == [
            "v20.12.2 (Iron) [installed]",
            "v20.11.0 (Iron) [installed]",
        ]

    def test_keyword_matches_lts_codename(self, capsys):
        """KW is matched against the codename as well as the version name."""
        with patch(nm("get_remote_node_versions"), return_value=(True, list(self.REMOTE))):
            assert cli.main(["list-remote", "--keyword", "hydro"]) == 0
        assert capsys.readouterr().out.splitlines() == ["v18.20.8 (Hydrogen)"]

    def test_latest_per_major(self, capsys):
        with patch(nm("get_remote_node_versions"), return_value=(True, list(self.REMOTE))):
            assert cli.main(["list-remote", "--latest-per-major"]) == 0
        names = [line.split()[0] for line in capsys.readouterr().out.splitlines()]
        assert names == ["v22.21.1", "v20.12.2", "v18.20.8"]

    def test_combines_with_fnm_side_options(self):
        """--lts and --filter are still handed to fnm."""
        with patch(nm("get_remote_node_versions"), return_value=(True, list(self.REMOTE))) as op:
            assert cli.main(["list-remote", "--lts", "--filter", "20", "--latest-per-major"]) == 0
        op.assert_called_once_with(lts_only=True, filter_keyword="20")

    def test_failure_is_reported(self, capsys):
        with patch(nm("get_remote_node_versions"), return_value=(False, "error: network unreachable")):
            assert cli.main(["list-remote", "--installed-only"]) == 1
        assert "network unreachable" in capsys.readouterr().err


class TestVersionCommands:
    """Test subcommands that act on one version."""

    def test_install_goes_through_worker(self):
        with patch("fnmdesk.cli.run_task_blocking", return_value=(True, "Installed")) as run:
            assert cli.main(["install", "20"]) == 0
        run.assert_called_once_with("install_node", {"version": "20"})

    @pytest.mark.parametrize("command, target", [
        ("uninstall", "uninstall_node_version"),
        ("use", "use_node_version"),
        ("default", "set_default_node_version"),
    ])
    def test_version_commands(self, command, target):
        with patch(nm(target), return_value=(True, "")) as op:
            assert cli.main([command, "18.20.8"]) == 0
        op.assert_called_once_with("18.20.8")

    def test_current(self, capsys):
        with patch(nm("get_current_node_version"), return_value=(True, "v20.12.2")):
            assert cli.main(["current"]) == 0
        assert capsys.readouterr().out.strip() == "v20.12.2"

    def test_env_prints_export_lines(self, capsys):
        env_config = EnvironmentConfig(fnm_dir="/srv/fnm", arch="x64")
        with patch(nm("get_fnm_environment"), return_value=(True, env_config)):
            assert cli.main(["env"]) == 0
        out = capsys.readouterr().out
        assert 'export FNM_DIR="/srv/fnm"' in out
        assert 'export FNM_COREPACK_ENABLED="false"' in out

    def test_dir_and_version_dir(self):
        with patch(nm("get_fnm_dir"), return_value=(True, "/srv/fnm")) as fnm_dir, \
                patch(nm("get_node_version_dir"), return_value=(True, "/srv/fnm/node-versions/v20/installation")) as version_dir:
            assert cli.main(["dir"]) == 0
            assert cli.main(["dir", "--version", "v20"]) == 0
        fnm_dir.assert_called_once_with()
        version_dir.assert_called_once_with("v20")

    def test_open(self):
        with patch(nm("open_fnm_dir"), return_value=(True, "Opened")) as open_dir, \
                patch(nm("open_node_version_dir"), return_value=(True, "Opened")) as open_version:
            assert cli.main(["open"]) == 0
            assert cli.main(["open", "--version", "v20"]) == 0
        open_dir.assert_called_once_with()
        open_version.assert_called_once_with("v20")

    def test_debug(self, capsys):
        with patch(nm("debug_fnm_lookup"), return_value=(True, "Possible fnm paths:")):
            assert cli.main(["debug"]) == 0
        assert "Possible fnm paths:" in capsys.readouterr().out


class TestExitCodes:
    """Test failure reporting."""

    def test_failure_goes_to_stderr(self, capsys):
        with patch(nm("use_node_version"), return_value=(False, "error: Requested version v99 is not currently installed")):
            assert cli.main(["use", "99"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "not currently installed" in captured.err

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_verbose_flag(self, no_logging_setup):
        with patch(nm("get_current_node_version"), return_value=(True, "none")):
            cli.main(["--verbose", "current"])
        no_logging_setup.assert_called_once_with(verbose=True)
