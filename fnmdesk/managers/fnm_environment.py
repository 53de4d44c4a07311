import os
from pathlib import Path
import logging
from typing import Dict, List, Mapping, Optional

from ..core import config
from ..core.platform_profile import PlatformProfile, detect_platform_profile

logger = logging.getLogger(__name__)


def _path_key(env: Mapping[str, str], profile: PlatformProfile) -> str:
    """Name of the PATH variable as it appears in env (Windows keys are case-insensitive)."""
    if profile.is_windows:
        for key in env:
            if key.upper() == "PATH":
                return key
    return "PATH"


def build_fnm_environment(
    executable: Optional[Path],
    profile: Optional[PlatformProfile] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Builds the environment fnm is launched with.

    Apps started from a desktop launcher often inherit a minimal PATH and no
    FNM_DIR, which makes fnm misbehave. The returned dict is a copy of env with:
      - PATH prefixed by the fnm executable's directory and the platform's
        common binary directories (entries already on PATH are not repeated)
      - FNM_DIR set to the platform default, unless it is already set
    No existing variable is removed.
    """
    profile = profile or detect_platform_profile()
    base_env: Dict[str, str] = dict(env if env is not None else os.environ)

    path_key = _path_key(base_env, profile)
    current_path = base_env.get(path_key, "")
    existing = [p for p in current_path.split(profile.path_separator) if p]

    additions: List[str] = []
    if executable is not None:
        additions.append(str(executable.parent))
    additions.extend(profile.extra_path_dirs(base_env))

    prefix: List[str] = []
    for directory in additions:
        if directory not in existing and directory not in prefix:
            prefix.append(directory)

    if prefix:
        # Inherited PATH is kept verbatim, empty entries included
        new_path = profile.path_separator.join(prefix)
        if current_path:
            new_path = f"{new_path}{profile.path_separator}{current_path}"
        base_env[path_key] = new_path
        logger.debug(f"FNM_ENVIRONMENT: Prepended to {path_key}: {prefix}")

    if not base_env.get(config.FNM_DIR_VAR):
        data_dir = profile.default_data_dir(base_env)
        if data_dir:
            base_env[config.FNM_DIR_VAR] = data_dir
            logger.debug(f"FNM_ENVIRONMENT: {config.FNM_DIR_VAR} set to default {data_dir}")
        else:
            logger.warning(f"FNM_ENVIRONMENT: Could not determine a default {config.FNM_DIR_VAR} for platform '{profile.kind.value}'.")

    return base_env
