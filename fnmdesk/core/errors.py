"""Errors raised inside the fnm core. The node manager turns them into (False, message) tuples."""


class FnmDeskError(Exception):
    """Base class for fnmdesk errors."""


class FnmNotFoundError(FnmDeskError):
    """No candidate path and no PATH lookup produced an fnm executable."""


class FnmLaunchError(FnmDeskError):
    """fnm was found but the process could not be spawned."""


class PathResolutionError(FnmDeskError):
    """A required directory could not be determined (e.g. HOME is unset)."""
