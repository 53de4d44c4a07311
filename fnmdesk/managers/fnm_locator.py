import os
from pathlib import Path
import logging
from typing import Callable, List, Mapping, Optional, Tuple

from ..core import config
from ..core.errors import FnmNotFoundError
from ..core.platform_profile import PlatformProfile, detect_platform_profile
from ..core.system_utils import lookup_executable

logger = logging.getLogger(__name__)


def _is_regular_file(path: Path) -> bool:
    # is_file() follows symlinks, so a dangling link is rejected here
    return path.is_file()


def resolve_fnm_path(
    profile: Optional[PlatformProfile] = None,
    env: Optional[Mapping[str, str]] = None,
    is_file: Optional[Callable[[Path], bool]] = None,
    lookup: Optional[Callable[[PlatformProfile, Mapping[str, str]], Optional[str]]] = None,
) -> Path:
    """
    Finds the fnm executable.

    Priority:
    1. Known install locations for the platform, in order
    2. The system lookup utility (which / where), only if no candidate exists

    Args:
        profile: Platform conventions (detected if omitted)
        env: Environment snapshot (os.environ copy if omitted)
        is_file: Existence check, overridable for tests
        lookup: PATH lookup, overridable for tests

    Returns:
        Path to the fnm executable

    Raises:
        FnmNotFoundError: If nothing resolves
    """
    profile = profile or detect_platform_profile()
    env = env if env is not None else dict(os.environ)
    is_file = is_file or _is_regular_file
    lookup = lookup or lookup_executable

    for candidate in profile.candidate_paths(env):
        if is_file(candidate):
            logger.debug(f"FNM_LOCATOR: Found fnm at candidate path {candidate}")
            return candidate
        logger.debug(f"FNM_LOCATOR: Candidate not present: {candidate}")

    logger.info(f"FNM_LOCATOR: No known install location has fnm. Trying '{profile.lookup_command}'...")
    looked_up = lookup(profile, env)
    if looked_up:
        looked_up_path = Path(looked_up)
        if is_file(looked_up_path):
            logger.info(f"FNM_LOCATOR: Found fnm via PATH lookup at {looked_up_path}")
            return looked_up_path
        logger.warning(f"FNM_LOCATOR: PATH lookup returned '{looked_up}', but it does not exist.")

    logger.error("FNM_LOCATOR: fnm executable could not be located.")
    raise FnmNotFoundError(config.FNM_INSTALL_HINT)


def candidate_report(
    profile: Optional[PlatformProfile] = None,
    env: Optional[Mapping[str, str]] = None,
) -> List[Tuple[Path, bool, bool]]:
    """(path, exists, is_file) for every candidate location, for troubleshooting."""
    profile = profile or detect_platform_profile()
    env = env if env is not None else dict(os.environ)
    return [(p, p.exists(), p.is_file()) for p in profile.candidate_paths(env)]
