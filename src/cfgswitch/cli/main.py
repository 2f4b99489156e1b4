"""
Command-line interface for cfgswitch.

This module provides the ``cfgswitch`` entry point: listing profiles and
their match status, switching the live configuration, managing profile
files, validating JSON and watching the configuration directory for
changes.
"""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

import toml

from .. import __version__
from ..config import SettingsManager
from ..models.profiles import CURRENT_PROFILE_ID
from ..orchestration import AppContext, SwitcherService, create_notifier, default_config_dir
from ..validation import ConfigIOError, SwitcherError, handle_cli_error

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Configure root logging for the CLI.

    Log records go to stderr so command output on stdout stays parseable.
    Without ``--verbose`` only warnings and errors are shown.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def _read_input_file(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigIOError(f"Cannot read {path}: {e}", path=path) from e


# ----------------------------------------------------------------------
# Subcommands
# ----------------------------------------------------------------------


def cmd_list(service: SwitcherService, args: argparse.Namespace) -> int:
    infos = service.list_profiles()
    if args.json:
        print(json.dumps([info.to_dict() for info in infos], indent=2))
        return 0

    snapshot = service.get_statuses()
    icons: Dict[str, str] = {p.name: s.icon for p, s in snapshot.items()}
    active = {p.name for p in snapshot.profiles if p.is_active}
    for info in infos:
        icon = icons.get(info.id, "")
        marker = "*" if info.id in active else " "
        modified = info.last_modified.strftime("%Y-%m-%d %H:%M") if info.last_modified else "-"
        print(f"{marker} {icon or '  ':2} {info.display_name:<24} {info.file_size:>8}  {modified}")
    return 0


def cmd_status(service: SwitcherService, args: argparse.Namespace) -> int:
    if args.profile:
        icon = service.get_status(args.profile)
        print(icon)
        return 0

    snapshot = service.get_statuses()
    for profile, status in snapshot.items():
        reason = f"  {status.reason}" if status.reason else ""
        print(f"{status.icon or '  ':2} {profile.name:<24} {status.kind.value}{reason}")
    return 0


def cmd_show(service: SwitcherService, args: argparse.Namespace) -> int:
    sys.stdout.write(service.read_content(args.profile))
    return 0


def cmd_switch(service: SwitcherService, args: argparse.Namespace) -> int:
    profile = service.switch(args.profile)
    print(f"Switched to profile '{profile.name}'")
    return 0


def cmd_create(service: SwitcherService, args: argparse.Namespace) -> int:
    if args.from_current:
        path = service.create_from_current(args.name)
    else:
        path = service.create(args.name, _read_input_file(args.from_file))
    print(f"Created profile '{args.name}' at {path}")
    return 0


def cmd_save(service: SwitcherService, args: argparse.Namespace) -> int:
    service.save_content(args.profile, _read_input_file(args.from_file))
    print(f"Saved profile '{args.profile}'")
    return 0


def cmd_delete(service: SwitcherService, args: argparse.Namespace) -> int:
    service.delete(args.profile)
    print(f"Deleted profile '{args.profile}'")
    return 0


def cmd_validate(service: SwitcherService, args: argparse.Namespace) -> int:
    result = service.validate_json(_read_input_file(args.file))
    if args.json:
        print(json.dumps(result, indent=2))
    elif result["is_valid"]:
        print(f"{args.file}: valid")
    else:
        for error in result["errors"]:
            print(
                f"{args.file}:{error['line']}:{error['column']}: "
                f"{error['error_type']} error: {error['message']}"
            )
    return 0 if result["is_valid"] else 1


def cmd_watch(service: SwitcherService, args: argparse.Namespace) -> int:
    stop_requested = threading.Event()

    def signal_handler(signum, frame):
        logger.info(f"Signal {signal.strsignal(signum)} received, stopping")
        stop_requested.set()

    original_sigint = signal.signal(signal.SIGINT, signal_handler)
    original_sigterm = signal.signal(signal.SIGTERM, signal_handler)
    try:
        if args.interval is not None:
            service.update_monitor_interval(args.interval)

        notifier = create_notifier(service.context.settings.current().show_notifications)
        service.add_status_listener(notifier)
        service.refresh()
        service.start_monitoring()
        print(
            f"Watching {service.store.config_dir} every "
            f"{service.context.watcher.interval_minutes} minutes (Ctrl+C to stop)"
        )
        while not stop_requested.wait(timeout=1.0):
            pass
    finally:
        service.shutdown()
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)
    return 0


def cmd_settings(service: SwitcherService, args: argparse.Namespace) -> int:
    manager = service.context.settings
    if args.reset:
        manager.reset_to_defaults()
    if args.interval is not None:
        service.update_monitor_interval(args.interval)
    if args.reset_ignored:
        service.reset_ignored_fields()
    if args.ignore is not None:
        service.update_ignored_fields(args.ignore)
    if args.auto_start is not None:
        manager.update_auto_start_monitoring(args.auto_start == "on")
    if args.notifications is not None:
        manager.update_show_notifications(args.notifications == "on")

    print(f"# {manager.settings_path}")
    print(toml.dumps({"settings": manager.current().to_dict()}), end="")
    return 0


COMMANDS: Dict[str, Callable[[SwitcherService, argparse.Namespace], int]] = {
    "list": cmd_list,
    "status": cmd_status,
    "show": cmd_show,
    "switch": cmd_switch,
    "create": cmd_create,
    "save": cmd_save,
    "delete": cmd_delete,
    "validate": cmd_validate,
    "watch": cmd_watch,
    "settings": cmd_settings,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cfgswitch",
        description="Switch a tool's JSON configuration between saved profiles.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help=f"Directory holding settings.json and the profiles (default: {default_config_dir()})",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Path of the cfgswitch settings file (TOML)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List the live configuration and all profiles.")
    p.add_argument("--json", action="store_true", help="Print the listing as JSON.")

    p = sub.add_parser("status", help="Show how the live configuration compares to profiles.")
    p.add_argument("profile", nargs="?", help="Only print the status icon of this profile.")

    p = sub.add_parser("show", help="Print a profile's content.")
    p.add_argument("profile", help=f"Profile name, or '{CURRENT_PROFILE_ID}' for the live file.")

    p = sub.add_parser("switch", help="Make a profile the live configuration.")
    p.add_argument("profile")

    p = sub.add_parser("create", help="Create a new profile.")
    p.add_argument("name")
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--from-file", help="Read the profile content from this file.")
    source.add_argument(
        "--from-current", action="store_true", help="Copy the live configuration."
    )

    p = sub.add_parser("save", help="Overwrite a profile's content.")
    p.add_argument("profile")
    p.add_argument("--from-file", required=True, help="Read the new content from this file.")

    p = sub.add_parser("delete", help="Delete a profile.")
    p.add_argument("profile")

    p = sub.add_parser("validate", help="Check that a file holds a valid configuration.")
    p.add_argument("file")
    p.add_argument("--json", action="store_true", help="Print the result as JSON.")

    p = sub.add_parser("watch", help="Watch for changes and report the match status.")
    p.add_argument("--interval", type=float, default=None, help="Polling interval in minutes.")

    p = sub.add_parser("settings", help="Show or change cfgswitch settings.")
    p.add_argument("--interval", type=float, default=None, help="Monitor interval in minutes.")
    p.add_argument(
        "--ignore",
        action="append",
        metavar="FIELD",
        help="Top-level field to ignore when comparing (repeatable; replaces the list).",
    )
    p.add_argument("--reset-ignored", action="store_true", help="Restore the default ignored fields.")
    p.add_argument("--auto-start", choices=["on", "off"], default=None)
    p.add_argument("--notifications", choices=["on", "off"], default=None)
    p.add_argument("--reset", action="store_true", help="Restore every setting to its default.")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one CLI command.

    Returns:
        Process exit code: 0 on success, 1 when the operation failed
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    settings = SettingsManager(args.settings)
    try:
        settings.load(strict=True)
    except SwitcherError as e:
        handle_cli_error(
            error=e,
            context="settings loading",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )

    context = AppContext.create(args.config_dir, settings)
    service = SwitcherService(context)

    try:
        if args.command not in ("validate", "settings"):
            service.store.scan()
        return COMMANDS[args.command](service, args)
    except SwitcherError as e:
        logger.debug(f"Command '{args.command}' failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main_cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
