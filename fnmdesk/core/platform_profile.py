"""
Per-OS conventions for locating and running fnm.

A PlatformProfile is picked once at startup (detect_platform_profile) and passed
to the locator, environment builder and node manager along with a snapshot of
the environment variables. Nothing in here reads os.environ directly.
"""
import sys
import platform
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import List, Mapping, Optional

from . import config

logger = logging.getLogger(__name__)


class PlatformKind(Enum):
    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"
    OTHER = "other"


# Machines on which Homebrew lives under /usr/local rather than /opt/homebrew
_INTEL_MACHINES = ("x86_64", "amd64", "i386", "i686")


@dataclass(frozen=True)
class PlatformProfile:
    kind: PlatformKind
    executable_name: str
    path_separator: str
    lookup_command: Optional[str]
    file_browser_command: Optional[str]
    machine: str = ""

    @property
    def is_windows(self) -> bool:
        return self.kind is PlatformKind.WINDOWS

    def _join(self, base: str, *parts: str) -> Path:
        pure_cls = PureWindowsPath if self.is_windows else PurePosixPath
        return Path(str(pure_cls(base, *parts)))

    def home_dir(self, env: Mapping[str, str]) -> Optional[str]:
        """Home directory from the env snapshot, or None when it is not set."""
        if self.is_windows:
            home = env.get("USERPROFILE") or env.get("HOME")
        else:
            home = env.get("HOME")
        return home or None

    def candidate_paths(self, env: Mapping[str, str]) -> List[Path]:
        """Known fnm install locations, highest priority first."""
        home = self.home_dir(env)
        candidates: List[Path] = []

        if self.kind is PlatformKind.MACOS:
            homebrew = ["/opt/homebrew/bin/fnm", "/usr/local/bin/fnm"]
            if self.machine.lower() in _INTEL_MACHINES:
                homebrew.reverse()
            candidates.extend(Path(p) for p in homebrew)
            if home:
                candidates.append(self._join(home, ".cargo", "bin", "fnm"))
                candidates.append(self._join(home, ".fnm", "fnm"))
                candidates.append(self._join(home, ".local", "bin", "fnm"))

        elif self.kind is PlatformKind.LINUX:
            candidates.append(Path("/usr/bin/fnm"))
            candidates.append(Path("/usr/local/bin/fnm"))
            if home:
                candidates.append(self._join(home, ".cargo", "bin", "fnm"))
                candidates.append(self._join(home, ".fnm", "fnm"))
                candidates.append(self._join(home, ".local", "bin", "fnm"))
                # Default target of the official install script
                candidates.append(self._join(home, ".local", "share", "fnm", "fnm"))

        elif self.is_windows:
            local_appdata = env.get("LOCALAPPDATA")
            program_files = env.get("ProgramFiles")
            if home:
                candidates.append(self._join(home, ".cargo", "bin", "fnm.exe"))
                candidates.append(self._join(home, "scoop", "shims", "fnm.exe"))
            if local_appdata:
                candidates.append(self._join(local_appdata, "fnm", "fnm.exe"))
                candidates.append(self._join(local_appdata, "Microsoft", "WinGet", "Links", "fnm.exe"))
            if program_files:
                candidates.append(self._join(program_files, "fnm", "fnm.exe"))

        return candidates

    def extra_path_dirs(self, env: Mapping[str, str]) -> List[str]:
        """Directories a GUI-launched process usually lacks on its PATH."""
        home = self.home_dir(env)
        dirs: List[str] = []

        if self.kind is PlatformKind.MACOS:
            dirs.extend(["/opt/homebrew/bin", "/usr/local/bin"])
        elif self.kind is PlatformKind.LINUX:
            dirs.extend(["/usr/bin", "/usr/local/bin"])

        if home and self.kind in (PlatformKind.MACOS, PlatformKind.LINUX):
            dirs.append(str(self._join(home, ".cargo", "bin")))
            dirs.append(str(self._join(home, ".fnm")))
            dirs.append(str(self._join(home, ".local", "bin")))
        elif home and self.is_windows:
            dirs.append(str(self._join(home, ".cargo", "bin")))
            dirs.append(str(self._join(home, "scoop", "shims")))

        return dirs

    def default_data_dir(self, env: Mapping[str, str]) -> Optional[str]:
        """fnm's default data directory on this platform, or None if it cannot be built."""
        home = self.home_dir(env)

        if self.kind is PlatformKind.MACOS and home:
            return str(self._join(home, "Library", "Application Support", "fnm"))
        if self.kind is PlatformKind.LINUX:
            xdg_data_home = env.get("XDG_DATA_HOME")
            if xdg_data_home:
                return str(self._join(xdg_data_home, "fnm"))
            if home:
                return str(self._join(home, ".local", "share", "fnm"))
        if self.is_windows:
            local_appdata = env.get("LOCALAPPDATA")
            if local_appdata:
                return str(self._join(local_appdata, "fnm"))
        return None

    def host_arch(self) -> str:
        """Architecture token in fnm's naming (x64, arm64)."""
        return config.ARCH_ALIASES.get(self.machine.lower(), config.UNKNOWN_ARCH)


def make_platform_profile(kind: PlatformKind, machine: str = "") -> PlatformProfile:
    if kind is PlatformKind.WINDOWS:
        return PlatformProfile(kind, config.FNM_EXECUTABLE_NAME_WINDOWS, ";", "where", "explorer", machine)
    if kind is PlatformKind.MACOS:
        return PlatformProfile(kind, config.FNM_EXECUTABLE_NAME, ":", "which", "open", machine)
    if kind is PlatformKind.LINUX:
        return PlatformProfile(kind, config.FNM_EXECUTABLE_NAME, ":", "which", "xdg-open", machine)
    # Unknown POSIX flavour: PATH lookup still works, nothing else is assumed
    return PlatformProfile(kind, config.FNM_EXECUTABLE_NAME, ":", "which", "xdg-open", machine)


def detect_platform_profile(sys_platform: Optional[str] = None, machine: Optional[str] = None) -> PlatformProfile:
    sys_platform = sys_platform if sys_platform is not None else sys.platform
    machine = machine if machine is not None else platform.machine()

    if sys_platform == "darwin":
        kind = PlatformKind.MACOS
    elif sys_platform.startswith("win") or sys_platform == "cygwin":
        kind = PlatformKind.WINDOWS
    elif sys_platform.startswith("linux"):
        kind = PlatformKind.LINUX
    else:
        kind = PlatformKind.OTHER
        logger.warning(f"PLATFORM: Unrecognized platform '{sys_platform}'. Only PATH lookup will be used for fnm.")

    logger.debug(f"PLATFORM: Detected {kind.value} (machine={machine or 'unknown'})")
    return make_platform_profile(kind, machine)
