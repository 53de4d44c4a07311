"""Unit tests for the environment fnm is launched with."""

from pathlib import Path, PureWindowsPath

from fnmdesk.managers.fnm_environment import build_fnm_environment


class TestPath:
    """Test PATH augmentation."""

    def test_prepends_executable_dir_and_extra_dirs(self, linux_profile, linux_env):
        """Executable dir first, then common dirs, skipping ones already on PATH."""
        result = build_fnm_environment(Path("/opt/fnm/fnm"), linux_profile, linux_env)
        assert result["PATH"] == ":".join([
            "/opt/fnm",
            "/usr/local/bin",
            "/home/dev/.cargo/bin",
            "/home/dev/.fnm",
            "/home/dev/.local/bin",
            "/usr/bin",
            "/bin",
        ])

    def test_no_duplicates_when_already_present(self, linux_profile):
        env = {"HOME": "/home/dev", "PATH": "/home/dev/.cargo/bin:/usr/bin"}
        result = build_fnm_environment(Path("/home/dev/.cargo/bin/fnm"), linux_profile, env)
        entries = result["PATH"].split(":")
        assert entries.count("/home/dev/.cargo/bin") == 1
        assert entries.count("/usr/bin") == 1

    def test_inherited_path_kept_verbatim(self, other_profile):
        """Empty entries (current directory on POSIX) survive untouched."""
        env = {"PATH": "/a::/b:"}
        result = build_fnm_environment(Path("/opt/fnm/fnm"), other_profile, env)
        assert result["PATH"] == "/opt/fnm:/a::/b:"

    def test_duplicate_check_ignores_empty_entries(self, linux_profile):
        env = {"HOME": "/home/dev", "PATH": ":/usr/bin:"}
        result = build_fnm_environment(Path("/usr/bin/fnm"), linux_profile, env)
        assert result["PATH"] == "/usr/local/bin:/home/dev/.cargo/bin:/home/dev/.fnm:/home/dev/.local/bin::/usr/bin:"
        assert result["PATH"].split(":").count("/usr/bin") == 1

    def test_missing_path_is_created(self, linux_profile):
        result = build_fnm_environment(Path("/opt/fnm/fnm"), linux_profile, {"HOME": "/home/dev"})
        assert result["PATH"].startswith("/opt/fnm:")

    def test_windows_path_key_is_case_insensitive(self, windows_profile):
        """An existing 'Path' key is extended instead of adding 'PATH'."""
        env = {
            "Path": "C:\\Windows",
            "USERPROFILE": "C:\\Users\\dev",
            "LOCALAPPDATA": "C:\\Users\\dev\\AppData\\Local",
        }
        result = build_fnm_environment(PureWindowsPath("C:\\tools\\fnm\\fnm.exe"), windows_profile, env)
        assert "PATH" not in result
        assert result["Path"].split(";") == [
            "C:\\tools\\fnm",
            "C:\\Users\\dev\\.cargo\\bin",
            "C:\\Users\\dev\\scoop\\shims",
            "C:\\Windows",
        ]

    def test_unknown_platform_only_adds_executable_dir(self, other_profile):
        result = build_fnm_environment(Path("/opt/fnm/fnm"), other_profile, {"HOME": "/home/dev", "PATH": "/bin"})
        assert result["PATH"] == "/opt/fnm:/bin"


class TestFnmDir:
    """Test FNM_DIR defaulting."""

    def test_sets_platform_default(self, linux_profile, linux_env):
        result = build_fnm_environment(Path("/opt/fnm/fnm"), linux_profile, linux_env)
        assert result["FNM_DIR"] == "/home/dev/.local/share/fnm"

    def test_existing_value_is_kept(self, linux_profile, linux_env):
        """A user-chosen FNM_DIR is never overridden."""
        env = dict(linux_env, FNM_DIR="/custom/fnm")
        result = build_fnm_environment(Path("/opt/fnm/fnm"), linux_profile, env)
        assert result["FNM_DIR"] == "/custom/fnm"

    def test_empty_value_is_replaced(self, linux_profile, linux_env):
        env = dict(linux_env, FNM_DIR="")
        result = build_fnm_environment(Path("/opt/fnm/fnm"), linux_profile, env)
        assert result["FNM_DIR"] == "/home/dev/.local/share/fnm"

    def test_windows_default(self, windows_profile):
        env = {"USERPROFILE": "C:\\Users\\dev", "LOCALAPPDATA": "C:\\Users\\dev\\AppData\\Local"}
        result = build_fnm_environment(PureWindowsPath("C:\\tools\\fnm.exe"), windows_profile, env)
        assert result["FNM_DIR"] == "C:\\Users\\dev\\AppData\\Local\\fnm"

    def test_no_default_leaves_it_unset(self, other_profile):
        result = build_fnm_environment(Path("/opt/fnm/fnm"), other_profile, {"PATH": "/bin"})
        assert "FNM_DIR" not in result


class TestPreservation:
    """Test that the input environment is copied, not changed."""

    def test_other_keys_survive(self, linux_profile, linux_env):
        env = dict(linux_env, NODE_OPTIONS="--max-old-space-size=4096", FNM_LOGLEVEL="quiet")
        result = build_fnm_environment(Path("/opt/fnm/fnm"), linux_profile, env)
        for key, value in env.items():
            if key != "PATH":
                assert result[key] == value

    def test_input_is_not_mutated(self, linux_profile, linux_env):
        original = dict(linux_env)
        build_fnm_environment(Path("/opt/fnm/fnm"), linux_profile, linux_env)
        assert linux_env == original
