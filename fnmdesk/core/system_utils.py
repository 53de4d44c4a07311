import subprocess
import shlex
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
import logging
from typing import List, Mapping, Optional, Tuple

from .errors import FnmLaunchError
from .platform_profile import PlatformProfile

logger = logging.getLogger(__name__)


@dataclass
class ProcessOutcome:
    """Result of one finished fnm invocation."""
    success: bool
    returncode: int
    stdout: str
    stderr: str

    @property
    def error_text(self) -> str:
        """What fnm said about a failure; fnm sometimes reports on stdout only."""
        return self.stderr.strip() or self.stdout.strip() or f"fnm exited with code {self.returncode}"


def _creation_flags() -> int:
    # Keeps a console window from flashing up when launched from a GUI on Windows
    if sys.platform == "win32":
        return getattr(subprocess, "CREATE_NO_WINDOW", 0)
    return 0


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def run_command(command_list: List[str], env: Optional[Mapping[str, str]] = None) -> Tuple[int, str, str]:
    """Runs a system command and captures output/return code."""
    joined_command = shlex.join(command_list)
    logger.debug(f"SYSTEM_UTILS: Running command: {joined_command}")
    try:
        result = subprocess.run(
            command_list,
            capture_output=True,
            text=True,
            check=False,
            encoding='utf-8',
            errors='replace',
            env=dict(env) if env is not None else None,
            creationflags=_creation_flags()
        )
        if result.returncode != 0:
            log_message = (
                f"SYSTEM_UTILS: Command failed (Code: {result.returncode}): {joined_command}\n"
                f"  Stdout: {result.stdout.strip()}\n"
                f"  Stderr: {result.stderr.strip()}"
            )
            logger.warning(log_message)
        return result.returncode, result.stdout.strip(), result.stderr.strip()
    except FileNotFoundError:
        msg = f"SYSTEM_UTILS: Command not found: {command_list[0]}"
        logger.error(msg)
        return -1, "", msg
    except (OSError, ValueError) as e:
        msg = f"SYSTEM_UTILS: Error running command '{joined_command}': {e}"
        logger.error(msg, exc_info=True)
        return -2, "", msg


def run_fnm(executable: Path, args: List[str], env: Mapping[str, str]) -> ProcessOutcome:
    """
    Runs fnm synchronously and waits for it to finish.

    A non-zero exit is returned as an outcome with success=False. Only a
    failure to start the process at all raises FnmLaunchError.
    """
    command: List[str] = [str(executable)] + list(args)
    joined_command = shlex.join(command)
    logger.info(f"SYSTEM_UTILS: Running fnm: {joined_command}")
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            env=dict(env),
            creationflags=_creation_flags()
        )
    except (OSError, ValueError) as e:
        # ValueError: arguments subprocess refuses, e.g. an embedded NUL
        msg = f"Failed to launch fnm at '{executable}': {e}"
        logger.error(f"SYSTEM_UTILS: {msg}")
        raise FnmLaunchError(msg) from e

    outcome = ProcessOutcome(
        success=result.returncode == 0,
        returncode=result.returncode,
        stdout=_decode(result.stdout),
        stderr=_decode(result.stderr),
    )
    logger.debug(f"SYSTEM_UTILS: fnm finished. Exit Code: {outcome.returncode}")
    if outcome.stderr:
        logger.debug(f"SYSTEM_UTILS: fnm stderr:\n{outcome.stderr}")
    if not outcome.success:
        logger.warning(f"SYSTEM_UTILS: fnm command failed (Code: {outcome.returncode}): {joined_command}")
    return outcome


def lookup_executable(profile: PlatformProfile, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Asks the system lookup utility (which / where) for fnm.
    Returns the first line of its output, or None if the lookup failed.
    """
    if not profile.lookup_command:
        return None
    ret_code, stdout, _ = run_command([profile.lookup_command, profile.executable_name], env=env)
    if ret_code != 0:
        logger.debug(f"SYSTEM_UTILS: '{profile.lookup_command} {profile.executable_name}' found nothing (code {ret_code}).")
        return None
    for line in stdout.splitlines():
        line = line.strip()
        if line:
            return line
    return None


def open_in_file_browser(path: str, profile: PlatformProfile) -> Tuple[bool, str]:
    """
    Opens a directory in the platform file browser. Fire-and-forget: the
    call returns once the browser is spawned. A daemon thread reaps the
    process so it does not linger as a zombie.
    """
    if not profile.file_browser_command:
        msg = f"No file browser command known for platform '{profile.kind.value}'."
        logger.error(f"SYSTEM_UTILS: {msg}")
        return False, msg

    command = [profile.file_browser_command, path]
    logger.info(f"SYSTEM_UTILS: Opening directory: {shlex.join(command)}")
    try:
        process = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            creationflags=_creation_flags()
        )
    except (OSError, ValueError) as e:
        msg = f"Failed to open directory '{path}': {e}"
        logger.error(f"SYSTEM_UTILS: {msg}")
        return False, msg
    threading.Thread(target=process.wait, name="file-browser-reaper", daemon=True).start()
    return True, f"Opened {path}"
