import os
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

# --- Base Directories ---
CONFIG_DIR = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config')) / 'fnmdesk'
LOG_DIR = CONFIG_DIR / 'logs'
LOG_FILE_NAME = 'fnmdesk.log'

# --- fnm Executable ---
FNM_EXECUTABLE_NAME = "fnm"
FNM_EXECUTABLE_NAME_WINDOWS = "fnm.exe"

# Shown when no fnm binary can be found anywhere
FNM_INSTALL_HINT = (
    "fnm was not found. Please make sure fnm is installed.\n\n"
    "Install it with:\n"
    "  macOS:   brew install fnm\n"
    "  Windows: winget install Schniz.fnm\n"
    "  Linux:   curl -fsSL https://fnm.vercel.app/install | bash"
)

# --- fnm Environment Variables ---
FNM_DIR_VAR = "FNM_DIR"
FNM_NODE_DIST_MIRROR_VAR = "FNM_NODE_DIST_MIRROR"
FNM_VERSION_FILE_STRATEGY_VAR = "FNM_VERSION_FILE_STRATEGY"
FNM_COREPACK_ENABLED_VAR = "FNM_COREPACK_ENABLED"
FNM_RESOLVE_ENGINES_VAR = "FNM_RESOLVE_ENGINES"
FNM_ARCH_VAR = "FNM_ARCH"
FNM_LOGLEVEL_VAR = "FNM_LOGLEVEL"

# --- fnm Environment Defaults ---
DEFAULT_FNM_DIR = ""
DEFAULT_NODE_DIST_MIRROR = "https://nodejs.org/dist"
DEFAULT_VERSION_FILE_STRATEGY = "local"
DEFAULT_COREPACK_ENABLED = False
DEFAULT_RESOLVE_ENGINES = True
DEFAULT_ARCH = ""
DEFAULT_LOGLEVEL = "info"

# Values accepted as "true" for boolean fnm settings (compared lower-cased)
TRUE_VALUES = ("true", "1")

# --- fnm Data Directory Layout ---
ALIASES_SUBDIR = "aliases"
DEFAULT_ALIAS_NAME = "default"
NODE_VERSIONS_SUBDIR = "node-versions"
VERSION_INSTALLATION_SUBDIR = "installation"
NO_DEFAULT_VERSION = "none"

# --- Architecture Tokens (fnm naming) ---
ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}
UNKNOWN_ARCH = "unknown"

# --- Misc ---
APP_NAME = "fnmdesk"


def ensure_dir(path: Path):
    """Creates a directory if it doesn't exist. Returns True on success."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {path}")
        return True
    except OSError as e:
        logger.error(f"CONFIG_ERROR: Error creating directory {path}: {e}", exc_info=True)
        return False
