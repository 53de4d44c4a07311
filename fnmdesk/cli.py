import sys
import argparse
import logging
from typing import Optional, List, Tuple, Any

from fnmdesk.core import config
from fnmdesk.core.log_setup import configure_logging
from fnmdesk.core.worker import run_task_blocking
from fnmdesk.managers import node_manager
from fnmdesk.managers.fnm_output import EnvironmentConfig, NodeVersion, filter_versions, latest_by_major

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=config.APP_NAME, description="Manage Node.js versions through fnm.")
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging on stderr.')
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    list_parser = subparsers.add_parser('list', help='List installed Node.js versions.')
    list_parser.add_argument('--parsed', action='store_true', help='One version per line with its tags.')
    remote = subparsers.add_parser('list-remote', help='List Node.js versions available for install.')
    remote.add_argument('--lts', action='store_true', help='Only LTS releases.')
    remote.add_argument('--filter', metavar='KEYWORD', help="Only versions matching KEYWORD (e.g. '18').")
    remote.add_argument('--installed-only', action='store_true', help='Only versions already installed.')
    remote.add_argument('--keyword', metavar='KW', help='Only versions whose name, LTS codename or alias contains KW.')
    remote.add_argument('--latest-per-major', action='store_true', help='Only the newest release of each major line.')

    for name, help_text in (
        ('install', 'Install a Node.js version.'),
        ('uninstall', 'Uninstall a Node.js version.'),
        ('use', 'Switch to a Node.js version.'),
        ('default', 'Set the default Node.js version.'),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('version', metavar='VERSION')

    subparsers.add_parser('current', help='Print the active Node.js version.')
    subparsers.add_parser('env', help="Print fnm's effective configuration.")

    dir_parser = subparsers.add_parser('dir', help='Print the fnm data directory (or a version directory).')
    dir_parser.add_argument('--version', metavar='VERSION', dest='node_version')
    open_parser = subparsers.add_parser('open', help='Open the fnm data directory (or a version directory).')
    open_parser.add_argument('--version', metavar='VERSION', dest='node_version')

    subparsers.add_parser('debug', help='Print a report on how fnm is being located.')
    return parser


def _dispatch(args: argparse.Namespace) -> Tuple[bool, Any]:
    command = args.command
    if command == 'list':
        if args.parsed:
            return node_manager.get_installed_node_versions()
        return node_manager.list_installed_node_versions()
    if command == 'list-remote':
        if args.installed_only or args.keyword or args.latest_per_major:
            return _refined_remote_versions(args)
        return node_manager.list_remote_node_versions(lts_only=args.lts, filter_keyword=args.filter)
    if command == 'install':
        # Long-running; goes through the worker thread like GUI callers do
        return run_task_blocking("install_node", {"version": args.version})
    if command == 'uninstall':
        return node_manager.uninstall_node_version(args.version)
    if command == 'use':
        return node_manager.use_node_version(args.version)
    if command == 'default':
        return node_manager.set_default_node_version(args.version)
    if command == 'current':
        return node_manager.get_current_node_version()
    if command == 'env':
        return node_manager.get_fnm_environment()
    if command == 'dir':
        if args.node_version:
            return node_manager.get_node_version_dir(args.node_version)
        return node_manager.get_fnm_dir()
    if command == 'open':
        if args.node_version:
            return node_manager.open_node_version_dir(args.node_version)
        return node_manager.open_fnm_dir()
    if command == 'debug':
        return node_manager.debug_fnm_lookup()
    return False, f"Unknown command: {command}"


def _refined_remote_versions(args: argparse.Namespace) -> Tuple[bool, Any]:
    ok, versions = node_manager.get_remote_node_versions(lts_only=args.lts, filter_keyword=args.filter)
    if not ok:
        return False, versions
    versions = filter_versions(versions, installed_only=args.installed_only, keyword=args.keyword)
    if args.latest_per_major:
        versions = latest_by_major(versions)
    return True, versions


def _format_version(version: NodeVersion) -> str:
    """e.g. `v20.12.2 (Iron) [installed, default, current]`"""
    text = version.name
    if version.lts_name:
        text += f" ({version.lts_name})"
    tags = [tag for tag, on in (
        ('installed', version.is_installed),
        ('default', version.is_default),
        ('current', version.is_current),
    ) if on]
    tags.extend(version.aliases)
    if tags:
        text += f" [{', '.join(tags)}]"
    return text


def _format_payload(payload: Any) -> str:
    if isinstance(payload, EnvironmentConfig):
        return payload.to_env_text().rstrip("\n")
    if isinstance(payload, list):
        return "\n".join(_format_version(v) for v in payload)
    return str(payload).rstrip("\n")


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    logger.debug(f"CLI: Dispatching command '{args.command}'")
    success, payload = _dispatch(args)
    text = _format_payload(payload)
    if success:
        if text:
            print(text)
        return 0
    print(text, file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
