import os
from pathlib import Path
import logging
from typing import Dict, List, Mapping, Optional, Tuple, Union

from ..core import config
from ..core.errors import FnmDeskError, PathResolutionError
from ..core.platform_profile import PlatformProfile, detect_platform_profile
from ..core.system_utils import ProcessOutcome, run_fnm, open_in_file_browser
from .fnm_locator import resolve_fnm_path, candidate_report
from .fnm_environment import build_fnm_environment
from .fnm_output import (
    EnvironmentConfig, NodeVersion, parse_env_assignments, resolve_environment_config,
    resolve_default_version, parse_installed_versions, parse_remote_versions,
)

logger = logging.getLogger(__name__)

EnvSnapshot = Optional[Mapping[str, str]]


# --- Helpers to Run fnm Commands ---

def _context(profile: Optional[PlatformProfile], env: EnvSnapshot) -> Tuple[PlatformProfile, Dict[str, str]]:
    profile = profile or detect_platform_profile()
    snapshot = dict(env if env is not None else os.environ)
    return profile, snapshot


def _prepare_fnm(profile: PlatformProfile, env: Mapping[str, str]) -> Tuple[Path, Dict[str, str]]:
    """
    Resolves the fnm executable and the environment to run it with.
    The executable is resolved on every call, never cached.

    Raises:
        FnmNotFoundError: If fnm cannot be located.
    """
    executable = resolve_fnm_path(profile, env)
    return executable, build_fnm_environment(executable, profile, env)


def _run_fnm_command(args: List[str], profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    """
    Runs `fnm <args>` once.

    Returns:
        tuple: (success (bool), output (str))
               Output is stdout on success; on failure it is fnm's stderr
               (stdout if stderr is empty) or the resolution/launch error.
    """
    profile, snapshot = _context(profile, env)
    try:
        executable, fnm_env = _prepare_fnm(profile, snapshot)
        outcome = run_fnm(executable, args, fnm_env)
    except FnmDeskError as e:
        logger.error(f"NODE_MANAGER: Could not run 'fnm {' '.join(args)}': {e}")
        return False, str(e)

    if outcome.success:
        return True, outcome.stdout
    error_output = outcome.error_text
    logger.error(f"NODE_MANAGER: 'fnm {' '.join(args)}' failed. Output:\n{error_output}")
    return False, error_output


def _require_version(version: Optional[str], action: str) -> Optional[str]:
    """Error message if version is empty, else None."""
    if version is None or not str(version).strip():
        msg = f"No version specified for {action}."
        logger.error(f"NODE_MANAGER: {msg}")
        return msg
    return None


# --- Public API ---

def list_installed_node_versions(profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    """Raw `fnm list` output."""
    logger.debug("NODE_MANAGER: Fetching installed Node versions with 'fnm list'...")
    return _run_fnm_command(["list"], profile, env)


def list_remote_node_versions(
    lts_only: bool = False,
    filter_keyword: Optional[str] = None,
    profile: Optional[PlatformProfile] = None,
    env: EnvSnapshot = None,
) -> Tuple[bool, str]:
    """
    Raw `fnm list-remote` output, newest first.

    Args:
        lts_only (bool): Only list LTS releases.
        filter_keyword (str): Passed to fnm's --filter (e.g. "18").
    """
    command = ["list-remote", "--sort", "desc"]
    if lts_only:
        command.append("--lts")
    if filter_keyword:
        command.extend(["--filter", filter_keyword])
    return _run_fnm_command(command, profile, env)


def install_node_version(version: str, profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    """
    Installs a Node.js version with fnm. Can take minutes; GUI callers run it
    through the worker thread.

    Args:
        version (str): Anything fnm accepts, e.g. "20.11.0", "18", "lts-latest".

    Returns:
        tuple: (success (bool), output/error_message (str))
    """
    error = _require_version(version, "installation")
    if error:
        return False, error
    logger.info(f"NODE_MANAGER: Attempting to install Node.js version '{version}'...")
    return _run_fnm_command(["install", version], profile, env)


def uninstall_node_version(version: str, profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    error = _require_version(version, "uninstallation")
    if error:
        return False, error
    logger.info(f"NODE_MANAGER: Attempting to uninstall Node.js version '{version}'...")
    return _run_fnm_command(["uninstall", version], profile, env)


def use_node_version(version: str, profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    error = _require_version(version, "use")
    if error:
        return False, error
    logger.info(f"NODE_MANAGER: Switching to Node.js version '{version}'...")
    return _run_fnm_command(["use", version], profile, env)


def set_default_node_version(version: str, profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    error = _require_version(version, "default")
    if error:
        return False, error
    logger.info(f"NODE_MANAGER: Setting default Node.js version to '{version}'...")
    return _run_fnm_command(["default", version], profile, env)


def get_current_node_version(profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    """
    The active Node.js version.

    A process launched from a desktop shell has no fnm session, so `fnm current`
    often fails or reports nothing. In that case the default alias in the data
    directory is read instead.

    Returns:
        tuple: (success (bool), version or "none" / error_message (str))
    """
    profile, snapshot = _context(profile, env)
    try:
        executable, fnm_env = _prepare_fnm(profile, snapshot)
        outcome = run_fnm(executable, ["current"], fnm_env)
    except FnmDeskError as e:
        logger.error(f"NODE_MANAGER: Could not run 'fnm current': {e}")
        return False, str(e)

    version = outcome.stdout.strip()
    if outcome.success and version and version != config.NO_DEFAULT_VERSION:
        return True, version

    data_dir = fnm_env.get(config.FNM_DIR_VAR, "")
    fallback = resolve_default_version(data_dir) if data_dir else config.NO_DEFAULT_VERSION
    if fallback != config.NO_DEFAULT_VERSION:
        logger.info(f"NODE_MANAGER: 'fnm current' gave no version; using default alias '{fallback}'.")
        return True, fallback

    if not outcome.success:
        error_output = outcome.error_text
        logger.error(f"NODE_MANAGER: 'fnm current' failed and no default alias exists. Output:\n{error_output}")
        return False, error_output
    return True, config.NO_DEFAULT_VERSION


def _env_output(profile: PlatformProfile, snapshot: Mapping[str, str]) -> Tuple[bool, str]:
    ok, output = _run_fnm_command(["env"], profile, snapshot)
    if not ok:
        logger.warning(f"NODE_MANAGER: 'fnm env' failed, falling back to environment/defaults: {output}")
    return ok, output


def get_fnm_environment(profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, Union[EnvironmentConfig, str]]:
    """
    fnm's effective configuration.

    Returns:
        tuple: (success (bool), EnvironmentConfig or error_message (str))
    """
    profile, snapshot = _context(profile, env)
    ok, output = _run_fnm_command(["env"], profile, snapshot)
    if not ok:
        return False, output
    return True, resolve_environment_config(output, snapshot, profile)


def _resolve_fnm_dir(profile: PlatformProfile, snapshot: Mapping[str, str]) -> str:
    """
    FNM_DIR reported by `fnm env`, else the FNM_DIR variable, else the
    platform default.

    Raises:
        PathResolutionError: If none of these yields a directory.
    """
    ok, output = _env_output(profile, snapshot)
    if ok:
        fnm_dir = parse_env_assignments(output).get(config.FNM_DIR_VAR)
        if fnm_dir:
            return fnm_dir

    fnm_dir = snapshot.get(config.FNM_DIR_VAR) or profile.default_data_dir(snapshot)
    if not fnm_dir:
        raise PathResolutionError(
            f"Could not determine the fnm data directory on platform '{profile.kind.value}'. "
            f"Set {config.FNM_DIR_VAR} explicitly."
        )
    return fnm_dir


def get_fnm_dir(profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    profile, snapshot = _context(profile, env)
    try:
        return True, _resolve_fnm_dir(profile, snapshot)
    except PathResolutionError as e:
        logger.error(f"NODE_MANAGER: {e}")
        return False, str(e)


def _version_dir(fnm_dir: str, version: str) -> str:
    return os.path.join(fnm_dir, config.NODE_VERSIONS_SUBDIR, version, config.VERSION_INSTALLATION_SUBDIR)


def get_node_version_dir(version: str, profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    """
    Installation directory of a version: <fnm_dir>/node-versions/<version>/installation.
    Does NOT check that the version is installed.
    """
    error = _require_version(version, "version directory lookup")
    if error:
        return False, error
    ok, fnm_dir = get_fnm_dir(profile, env)
    if not ok:
        return False, fnm_dir
    return True, _version_dir(fnm_dir, version)


def open_fnm_dir(profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    profile, snapshot = _context(profile, env)
    ok, fnm_dir = get_fnm_dir(profile, snapshot)
    if not ok:
        return False, fnm_dir
    return open_in_file_browser(fnm_dir, profile)


def open_node_version_dir(version: str, profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    profile, snapshot = _context(profile, env)
    ok, version_dir = get_node_version_dir(version, profile, snapshot)
    if not ok:
        return False, version_dir
    return open_in_file_browser(version_dir, profile)


def _describe_outcome(outcome: ProcessOutcome) -> List[str]:
    return [
        f"exit status: {outcome.returncode}",
        f"stdout: {outcome.stdout.strip()}",
        f"stderr: {outcome.stderr.strip()}",
    ]


def debug_fnm_lookup(profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, str]:
    """
    Troubleshooting report: home directory, every candidate location, the
    resolution result, and the outcome of `fnm --version`, `fnm list` and
    `fnm current`. Always succeeds; problems are part of the report.
    """
    profile, snapshot = _context(profile, env)
    lines: List[str] = [
        f"Platform: {profile.kind.value} (machine: {profile.machine or 'unknown'})",
        f"Home directory: {profile.home_dir(snapshot)}",
        f"{config.FNM_DIR_VAR} env var: {snapshot.get(config.FNM_DIR_VAR)}",
        "",
        "Possible fnm paths:",
    ]
    for path, exists, is_file in candidate_report(profile, snapshot):
        lines.append(f"  {path} - exists: {exists}, is_file: {is_file}")

    try:
        executable, fnm_env = _prepare_fnm(profile, snapshot)
    except FnmDeskError as e:
        lines.append("")
        lines.append(f"fnm lookup failed: {e}")
        return True, "\n".join(lines)

    lines.append("")
    lines.append(f"Resolved fnm path: {executable}")
    for args in (["--version"], ["list"], ["current"]):
        lines.append("")
        lines.append(f"--- fnm {' '.join(args)} ---")
        try:
            lines.extend(_describe_outcome(run_fnm(executable, args, fnm_env)))
        except FnmDeskError as e:
            lines.append(f"Failed to run fnm {' '.join(args)}: {e}")
    return True, "\n".join(lines)


# --- Parsed Version Lists ---

def get_installed_node_versions(profile: Optional[PlatformProfile] = None, env: EnvSnapshot = None) -> Tuple[bool, Union[List[NodeVersion], str]]:
    """Installed versions, newest first as fnm lists them, flagged default/current."""
    profile, snapshot = _context(profile, env)
    ok, output = list_installed_node_versions(profile, snapshot)
    if not ok:
        return False, output
    current_ok, current = get_current_node_version(profile, snapshot)
    versions = parse_installed_versions(output, current if current_ok else "")
    logger.debug(f"NODE_MANAGER: Parsed {len(versions)} installed Node versions.")
    return True, versions


def get_remote_node_versions(
    lts_only: bool = False,
    filter_keyword: Optional[str] = None,
    profile: Optional[PlatformProfile] = None,
    env: EnvSnapshot = None,
) -> Tuple[bool, Union[List[NodeVersion], str]]:
    """Remote versions, with is_installed set from `fnm list`."""
    profile, snapshot = _context(profile, env)
    ok, output = list_remote_node_versions(lts_only, filter_keyword, profile, snapshot)
    if not ok:
        return False, output
    installed_ok, installed_output = list_installed_node_versions(profile, snapshot)
    installed_names = [v.name for v in parse_installed_versions(installed_output)] if installed_ok else []
    versions = parse_remote_versions(output, installed_names)
    logger.debug(f"NODE_MANAGER: Parsed {len(versions)} remote Node versions.")
    return True, versions
