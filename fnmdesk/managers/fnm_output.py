"""
Parsers for fnm's text output and on-disk alias entries.

Everything here is best effort: text that does not look as expected leaves
defaults in place rather than raising.
"""
import os
import functools
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
import logging
from typing import Dict, List, Mapping, Optional

from ..core import config
from ..core.platform_profile import PlatformProfile

logger = logging.getLogger(__name__)


@dataclass
class EnvironmentConfig:
    fnm_dir: str = config.DEFAULT_FNM_DIR
    node_dist_mirror: str = config.DEFAULT_NODE_DIST_MIRROR
    version_file_strategy: str = config.DEFAULT_VERSION_FILE_STRATEGY
    corepack_enabled: bool = config.DEFAULT_COREPACK_ENABLED
    resolve_engines: bool = config.DEFAULT_RESOLVE_ENGINES
    arch: str = config.DEFAULT_ARCH
    loglevel: str = config.DEFAULT_LOGLEVEL

    def to_env_text(self) -> str:
        """Serializes to `export KEY="value"` lines, the shape `fnm env` prints on POSIX shells."""
        lines = []
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool):
                value = "true" if value else "false"
            lines.append(f'export {ENV_VAR_FOR_FIELD[f.name]}="{value}"')
        return "\n".join(lines) + "\n"


# Field name -> environment variable printed by `fnm env`
ENV_VAR_FOR_FIELD: Dict[str, str] = {
    "fnm_dir": config.FNM_DIR_VAR,
    "node_dist_mirror": config.FNM_NODE_DIST_MIRROR_VAR,
    "version_file_strategy": config.FNM_VERSION_FILE_STRATEGY_VAR,
    "corepack_enabled": config.FNM_COREPACK_ENABLED_VAR,
    "resolve_engines": config.FNM_RESOLVE_ENGINES_VAR,
    "arch": config.FNM_ARCH_VAR,
    "loglevel": config.FNM_LOGLEVEL_VAR,
}
_BOOL_FIELDS = ("corepack_enabled", "resolve_engines")

# export KEY=..., set KEY=..., $env:KEY = ..., or bare KEY=...
_ASSIGNMENT_TEMPLATE = r'^\s*(?i:export\s+|set\s+|\$env:)?{key}\s*=(.*)$'
_ENV_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    var: re.compile(_ASSIGNMENT_TEMPLATE.format(key=re.escape(var)))
    for var in ENV_VAR_FOR_FIELD.values()
}


def _clean_value(raw: str) -> str:
    value = raw.strip().rstrip(";").strip()
    return value.strip("\"'")


def parse_bool(value: str) -> bool:
    """'true' (any case) and '1' are true; everything else is false."""
    return value.strip().lower() in config.TRUE_VALUES


def parse_env_assignments(text: str) -> Dict[str, str]:
    """
    Extracts the known fnm variables from `fnm env` output.

    For each variable the first line that assigns it wins. Unknown lines and
    unknown variables are ignored.

    Returns:
        dict: variable name -> unquoted value, only for variables that were found.
    """
    lines = (text or "").splitlines()
    found: Dict[str, str] = {}
    for var, pattern in _ENV_PATTERNS.items():
        for line in lines:
            match = pattern.match(line)
            if match:
                found[var] = _clean_value(match.group(1))
                break
    logger.debug(f"FNM_OUTPUT: Parsed env assignments: {found}")
    return found


def _config_from_values(values: Mapping[str, str]) -> EnvironmentConfig:
    env_config = EnvironmentConfig()
    for field_name, var in ENV_VAR_FOR_FIELD.items():
        if var not in values:
            continue
        raw = values[var]
        if field_name in _BOOL_FIELDS:
            setattr(env_config, field_name, parse_bool(raw))
        else:
            setattr(env_config, field_name, raw)
    return env_config


def parse_env(text: str) -> EnvironmentConfig:
    """Parses `fnm env` output into an EnvironmentConfig; unparsed fields keep their defaults."""
    return _config_from_values(parse_env_assignments(text))


def resolve_environment_config(
    text: str,
    env: Mapping[str, str],
    profile: PlatformProfile,
) -> EnvironmentConfig:
    """
    Builds the effective fnm configuration.

    Per field: value parsed from `fnm env` output, else the process environment
    variable, else the default. An fnm_dir or arch that is still empty is then
    filled with the platform default data dir / host architecture.
    """
    values: Dict[str, str] = {}
    parsed = parse_env_assignments(text)
    for var in ENV_VAR_FOR_FIELD.values():
        if parsed.get(var):
            values[var] = parsed[var]
        elif env.get(var):
            values[var] = env[var]

    env_config = _config_from_values(values)
    if not env_config.fnm_dir:
        env_config.fnm_dir = profile.default_data_dir(env) or ""
    if not env_config.arch:
        env_config.arch = profile.host_arch()
    return env_config


def _version_from_link_target(target: str) -> str:
    segments = [s for s in re.split(r"[\\/]+", target) if s]
    if segments and segments[-1] == config.VERSION_INSTALLATION_SUBDIR:
        segments.pop()
    return segments[-1] if segments else config.NO_DEFAULT_VERSION


def _is_link(path: Path) -> bool:
    if path.is_symlink():
        return True
    # Windows may materialize aliases as junctions
    isjunction = getattr(os.path, "isjunction", None)
    return bool(isjunction and isjunction(path))


def resolve_default_version(data_dir: str) -> str:
    """
    Reads the default alias from fnm's data directory.

    `<data_dir>/aliases/default` is a symlink on POSIX and may be a plain file
    on some Windows setups.

    Returns:
        str: The version name, or "none" if no default alias exists.
    """
    alias_path = Path(data_dir) / config.ALIASES_SUBDIR / config.DEFAULT_ALIAS_NAME

    if _is_link(alias_path):
        try:
            target = os.readlink(alias_path)
        except OSError as e:
            logger.warning(f"FNM_OUTPUT: Could not read default alias link {alias_path}: {e}")
            return config.NO_DEFAULT_VERSION
        version = _version_from_link_target(str(target))
        logger.debug(f"FNM_OUTPUT: Default alias {alias_path} -> {target} ({version})")
        return version

    if alias_path.is_file():
        try:
            content = alias_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning(f"FNM_OUTPUT: Could not read default alias file {alias_path}: {e}")
            return config.NO_DEFAULT_VERSION
        return content or config.NO_DEFAULT_VERSION

    logger.debug(f"FNM_OUTPUT: No default alias at {alias_path}")
    return config.NO_DEFAULT_VERSION


# --- Version Lists ---

@dataclass
class NodeVersion:
    name: str
    is_installed: bool = False
    is_default: bool = False
    is_current: bool = False
    is_lts: bool = False
    lts_name: Optional[str] = None
    aliases: List[str] = field(default_factory=list)


_REMOTE_LINE = re.compile(r"^(v[\d.]+)(?:\s+\(([^)]+)\))?")
_VERSION_NUMBERS = re.compile(r"v?(\d+)\.(\d+)\.(\d+)")
_MAJOR = re.compile(r"v?(\d+)")


def _same_version(a: str, b: str) -> bool:
    return bool(a) and bool(b) and a.lstrip("v") == b.lstrip("v")


def parse_installed_versions(output: str, current_version: str = "") -> List[NodeVersion]:
    """
    Parses `fnm list` output, e.g.:

        * v22.21.1 default
        * v20.12.2 lts-latest
        * v18.20.8
        * system

    The `system` entry is skipped.
    """
    versions: List[NodeVersion] = []
    for line in (output or "").splitlines():
        if not line.strip() or "system" in line:
            continue
        clean_line = re.sub(r"^\*\s*", "", line.strip())
        parts = [p.strip(",") for p in clean_line.split()]
        parts = [p for p in parts if p]
        if not parts:
            continue
        name, tags = parts[0], parts[1:]
        lts_tags = [t for t in tags if "lts" in t.lower()]
        versions.append(NodeVersion(
            name=name,
            is_installed=True,
            is_default="default" in tags,
            is_current=_same_version(name, current_version),
            is_lts=bool(lts_tags),
            lts_name=lts_tags[0] if lts_tags else None,
            aliases=[t for t in tags if t != "default" and "lts" not in t.lower()],
        ))
    return versions


def parse_remote_versions(output: str, installed_versions: Optional[List[str]] = None) -> List[NodeVersion]:
    """
    Parses `fnm list-remote` output, e.g. `v22.21.1` or `v20.12.2 (Iron)`.
    A parenthesised codename marks an LTS release.
    """
    installed = installed_versions or []
    versions: List[NodeVersion] = []
    for line in (output or "").splitlines():
        match = _REMOTE_LINE.match(line.strip())
        if not match:
            continue
        name, lts_name = match.group(1), match.group(2)
        versions.append(NodeVersion(
            name=name,
            is_installed=any(_same_version(name, v) for v in installed),
            is_lts=bool(lts_name),
            lts_name=lts_name,
        ))
    return versions


def version_key(name: str):
    match = _VERSION_NUMBERS.search(name)
    if not match:
        return (0, 0, 0)
    return tuple(int(g) for g in match.groups())


def compare_versions(a: str, b: str) -> int:
    """Negative if a is older than b, positive if newer, 0 if equal."""
    key_a, key_b = version_key(a), version_key(b)
    return (key_a > key_b) - (key_a < key_b)


def sort_versions(versions: List[NodeVersion], newest_first: bool = True) -> List[NodeVersion]:
    by_name = functools.cmp_to_key(compare_versions)
    return sorted(versions, key=lambda v: by_name(v.name), reverse=newest_first)


def group_versions_by_major(versions: List[NodeVersion]) -> Dict[int, List[NodeVersion]]:
    groups: Dict[int, List[NodeVersion]] = {}
    for version in versions:
        match = _MAJOR.match(version.name)
        if match:
            groups.setdefault(int(match.group(1)), []).append(version)
    return groups


def latest_by_major(versions: List[NodeVersion]) -> List[NodeVersion]:
    """Newest release of each major line, majors in descending order."""
    groups = group_versions_by_major(versions)
    return [sort_versions(groups[major])[0] for major in sorted(groups, reverse=True)]


def filter_versions(
    versions: List[NodeVersion],
    lts_only: bool = False,
    installed_only: bool = False,
    keyword: Optional[str] = None,
) -> List[NodeVersion]:
    result = list(versions)
    if lts_only:
        result = [v for v in result if v.is_lts]
    if installed_only:
        result = [v for v in result if v.is_installed]
    if keyword:
        needle = keyword.lower()
        result = [
            v for v in result
            if needle in v.name.lower()
            or (v.lts_name and needle in v.lts_name.lower())
            or any(needle in a.lower() for a in v.aliases)
        ]
    return result
