"""Command line helpers for inspecting menus and editing user layouts."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Sequence, TextIO

from .config import MoreToolsConfig, load_config
from .errors import MoreToolsError, PackagingDefectError
from .layout_store import UserLayoutStore
from .menu import ConfigureDialogVisibility, MenuSection, namespace_for
from .presets import grouping_names, register_services_by_grouping_names
from .registry import ServiceLocatingMode, ServiceRegistry
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)


def configure_logging(config: MoreToolsConfig, *, debug: bool = False) -> Path:
    path = logging_utils.setup_logging(config, debug=debug or config.debug_logging, force=True)
    _LOGGER.debug("Logging to %s", path)
    return path


def main(argv: Sequence[str] | None = None, *, stdout: TextIO | None = None) -> int:
    """Entry point invoked by the ``moretools`` console script."""

    out = stdout or sys.stdout
    parser = _build_parser()
    args = parser.parse_args(argv)

    overrides: Dict[str, Any] = {}
    if args.data_dirs:
        overrides["data_dirs"] = args.data_dirs
    if args.layout_path:
        overrides["layout_path"] = args.layout_path
    config = load_config(overrides)
    configure_logging(config, debug=args.debug)

    try:
        if args.command == "show":
            return _cmd_show(args, config, out)
        if args.command == "place":
            return _cmd_place(args, config, out)
        if args.command == "reset":
            return _cmd_reset(args, config, out)
        if args.command == "presets":
            for name in grouping_names():
                print(name, file=out)
            return 0
    except PackagingDefectError as exc:
        print(f"Packaging defect: {exc}", file=sys.stderr)
        return 1
    except MoreToolsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    parser.print_usage(sys.stderr)
    return 2


def _cmd_show(args: argparse.Namespace, config: MoreToolsConfig, out: TextIO) -> int:
    registry = ServiceRegistry.from_config(args.unique_id, config)
    builder = registry.menu_builder(args.postfix)

    if args.presets:
        unknown = sorted(set(args.presets) - set(grouping_names()))
        if unknown:
            print(f"Unknown preset grouping(s): {', '.join(unknown)}", file=sys.stderr)
            return 2
        for record in register_services_by_grouping_names(registry, args.presets):
            builder.add_service(record)

    requests: list[tuple[str, MenuSection, ServiceLocatingMode]] = []
    requests.extend((name, MenuSection.MAIN, ServiceLocatingMode.DEFAULT) for name in args.main)
    requests.extend((name, MenuSection.MORE, ServiceLocatingMode.DEFAULT) for name in args.more)
    requests.extend((name, MenuSection.MAIN, ServiceLocatingMode.BY_PROVIDED_EXEC_LINE) for name in args.exec_line)
    for name, section, mode in requests:
        record = registry.register(name, args.subdir, mode)
        if record is None:
            print(f"Skipping {name}: not installed and no descriptor provided", file=sys.stderr)
            continue
        builder.add_service(record, section)

    visibility = ConfigureDialogVisibility(args.visibility)
    structure = builder.build(visibility, merge_with_user_config=not args.no_user_config)
    out.write(structure.as_text())
    return 0


def _cmd_place(args: argparse.Namespace, config: MoreToolsConfig, out: TextIO) -> int:
    store = UserLayoutStore(config.layout_path)
    namespace = namespace_for(args.unique_id, args.postfix)
    store.set_placement(namespace, args.item_id, MenuSection(args.section).value)
    print(f"{namespace}: {args.item_id} -> {args.section}", file=out)
    return 0


def _cmd_reset(args: argparse.Namespace, config: MoreToolsConfig, out: TextIO) -> int:
    store = UserLayoutStore(config.layout_path)
    namespace = namespace_for(args.unique_id, args.postfix)
    store.clear(namespace)
    print(f"{namespace}: layout reset", file=out)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moretools", description="Inspect user-configurable tool menus.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--data-dir",
        dest="data_dirs",
        action="append",
        default=[],
        help="Data directory to search (repeatable, replaces the XDG defaults).",
    )
    parser.add_argument("--layout-path", help="Path of the user layout JSON file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Print the menu structure for a set of tools.")
    show.add_argument("unique_id")
    show.add_argument("--postfix", default="", help="User config postfix of the menu builder.")
    show.add_argument("--subdir", default="", help="Bundled descriptor subdirectory (defaults to unique_id).")
    show.add_argument("--main", nargs="*", default=[], metavar="NAME", help="Tools placed in the main section.")
    show.add_argument("--more", nargs="*", default=[], metavar="NAME", help="Tools placed in the More submenu.")
    show.add_argument(
        "--exec-line",
        nargs="*",
        default=[],
        metavar="NAME",
        help="Tools located by the exec line of their bundled descriptor.",
    )
    show.add_argument("--preset", dest="presets", action="append", default=[], help="Preset grouping to add.")
    show.add_argument(
        "--visibility",
        choices=[mode.value for mode in ConfigureDialogVisibility],
        default=ConfigureDialogVisibility.ALWAYS.value,
    )
    show.add_argument("--no-user-config", action="store_true", help="Ignore persisted placements.")

    place = subparsers.add_parser("place", help="Persist the section of a menu item.")
    place.add_argument("unique_id")
    place.add_argument("item_id")
    place.add_argument("section", choices=[section.value for section in MenuSection])
    place.add_argument("--postfix", default="")

    reset = subparsers.add_parser("reset", help="Forget all persisted placements of a menu.")
    reset.add_argument("unique_id")
    reset.add_argument("--postfix", default="")

    subparsers.add_parser("presets", help="List preset grouping names.")
    return parser
