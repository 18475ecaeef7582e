"""CLI entrypoints for conveyor commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .errors import ConveyorError
from .logging import configure_logging, get_logger
from .pipeline import run_namespace
from .stores import ComponentRegistry


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_registry_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--registry-path",
        default=None,
        help="Directory holding component registries (defaults to ~/.conveyor/registry).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conveyor",
        description="Run test and build pipelines assembled from cooperating components.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run the pipeline for a namespace (unit, e2e) or a named component.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_registry_option(run_parser)
    run_parser.add_argument("name", help="Namespace (unit, e2e) or additional component name.")
    run_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory containing .conveyor.yml (defaults to current directory).",
    )
    run_parser.add_argument(
        "-s",
        "--skip-component",
        dest="disabled",
        action="append",
        default=[],
        help="Disable a builtin component. May be repeated.",
    )
    run_parser.add_argument(
        "-c",
        "--component",
        dest="additional",
        action="append",
        default=[],
        help="Enable an additional component by identifier. May be repeated.",
    )
    run_parser.add_argument(
        "--skip-modules",
        nargs="+",
        default=[],
        help="Module keys to leave out of this run.",
    )
    run_parser.add_argument(
        "--debug-component",
        dest="debug_components",
        action="append",
        default=[],
        help="Log a single component at DEBUG level. May be repeated.",
    )

    component_parser = subparsers.add_parser(
        "component",
        help="Manage registered additional components.",
    )
    _add_verbose_option(component_parser, suppress_default=True)
    component_sub = component_parser.add_subparsers(dest="action", required=True)

    add_parser = component_sub.add_parser("add", help="Register a component for a namespace.")
    _add_registry_option(add_parser)
    add_parser.add_argument("key", help="Component identifier.")
    add_parser.add_argument("--namespace", default="generic", help="Registry namespace.")
    add_parser.add_argument(
        "--config",
        dest="configs",
        action="append",
        default=[],
        help="Configuration file merged into runs of this namespace. May be repeated.",
    )

    remove_parser = component_sub.add_parser("remove", help="Unregister a component.")
    _add_registry_option(remove_parser)
    remove_parser.add_argument("key", help="Component identifier.")
    remove_parser.add_argument("--namespace", default="generic", help="Registry namespace.")

    list_parser = component_sub.add_parser("list", help="List registered components.")
    _add_registry_option(list_parser)
    list_parser.add_argument("--namespace", default="generic", help="Registry namespace.")

    return parser


async def _component_command(args: argparse.Namespace) -> list[str]:
    registry = ComponentRegistry.create(args.registry_path, args.namespace)
    await registry.load()
    if args.action == "add":
        configs = [str(Path(config).expanduser().resolve()) for config in args.configs]
        registry.add(args.key, configs)
        await registry.persist()
        return [f"Component {args.key} registered in {registry.namespace}"]
    if args.action == "remove":
        if not registry.remove(args.key):
            raise ConveyorError(f"Component {args.key} is not registered in {registry.namespace}")
        await registry.persist()
        return [f"Component {args.key} removed from {registry.namespace}"]
    lines = []
    for key in registry.list_keys():
        entry = registry.get(key)
        configs = ", ".join(entry.configs) if entry and entry.configs else "-"
        lines.append(f"{key}\t{configs}")
    return lines or [f"No components registered in {registry.namespace}"]


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for conveyor commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        debug_components=getattr(args, "debug_components", []),
    )

    if args.command == "run":
        try:
            result = asyncio.run(
                run_namespace(
                    args.name,
                    args.path,
                    disabled=args.disabled,
                    additional=args.additional,
                    skip_modules=args.skip_modules,
                    registry_path=args.registry_path,
                )
            )
        except ConveyorError as exc:
            parser.exit(1, f"conveyor run failed: {exc}\n")
        except Exception as exc:
            get_logger("cli").debug("Pipeline run aborted", exc_info=True)
            parser.exit(1, f"conveyor run failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Pipeline completed: {', '.join(result.completed) or 'no components'}")
    elif args.command == "component":
        try:
            lines = asyncio.run(_component_command(args))
        except ConveyorError as exc:
            parser.exit(1, f"{exc}\n")
        for line in lines:
            print(line)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
