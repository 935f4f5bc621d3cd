"""butter command-line interface.

Usage::

    butter set -k theme -v "my-theme"
    butter create molecule --name "btn-primary" --group "buttons" --style "button-primary" --dna "btn-primary"
    butter infuse bootstrap-4 --url https://example.com/bootstrap-4.zip
    butter defuse bootstrap-4 --remove

Missing required parameters are asked for interactively.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from . import __version__
from .config import Config, ConfigStore
from .prompts import (
    EJECT_SCHEMA,
    INSTALL_SCHEMA,
    MATERIAL_SCHEMA,
    PAGE_SCHEMA,
    SET_SCHEMA,
    STYLE_SCHEMA,
    TEMPLATE_SCHEMA,
    Asker,
    Confirmer,
    PromptCancelled,
    confirm,
    resolve_missing,
)
from .results import OperationResult, Status
from .runner import TaskRunner
from .scaffolder import ScaffoldGenerator
from .toolkit import ToolkitManager
from .utils import (
    ButterError,
    console,
    dump_json,
    has_visible_entries,
    print_error,
    print_info,
    print_success,
    print_summary_table,
)

CREATE_TYPES: tuple[str, ...] = ("atom", "helper", "molecule", "organism", "style", "template", "page")


class Context:
    """Everything a command handler needs, resolved once in :func:`main`."""

    def __init__(
        self,
        store: ConfigStore,
        root: Path,
        ask: Asker | None = None,
        confirm_ask: Confirmer | None = None,
    ) -> None:
        self.store = store
        self.root = root
        self.ask = ask
        self.confirm_ask = confirm_ask

    @property
    def config(self) -> Config:
        return self.store.config

    def resolve(self, schema, supplied: dict[str, Any]) -> dict[str, Any]:
        return resolve_missing(schema, supplied, ask=self.ask)

    def confirm(self, question: str, default: bool = False) -> bool:
        return confirm(question, default=default, ask=self.confirm_ask)

    def generator(self) -> ScaffoldGenerator:
        return ScaffoldGenerator(self.config, self.root)

    def toolkits(self) -> ToolkitManager:
        return ToolkitManager(self.config, self.root)

    def runner(self) -> TaskRunner:
        return TaskRunner(self.config, self.root)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def report(result: OperationResult) -> None:
    """Print one line per step of *result*."""
    for step in result.steps:
        if step.status is Status.UNCHANGED:
            continue
        if step.status is Status.EXISTS:
            print_info(step.describe())
        else:
            print_success(step.describe())


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_set(args: argparse.Namespace, ctx: Context) -> None:
    params = ctx.resolve(SET_SCHEMA, {"key": args.key, "value": args.value})
    document = ctx.store.set(params["key"], params["value"])
    print_success(f"updated {ctx.store.path.name}")
    console.print_json(dump_json(document))


def cmd_create(args: argparse.Namespace, ctx: Context) -> None:
    kind = (args.type or "").lower()
    if kind not in CREATE_TYPES:
        raise ButterError(f"create <type> must be one of: {', '.join(CREATE_TYPES)}")

    generator = ctx.generator()
    if kind == "style":
        params = ctx.resolve(STYLE_SCHEMA, {"name": args.name})
        result = asyncio.run(generator.create_style(params["name"], args.theme))
    elif kind == "template":
        params = ctx.resolve(TEMPLATE_SCHEMA, {"name": args.name})
        result = asyncio.run(generator.create_template(params["name"]))
    elif kind == "page":
        result = _create_page(args, ctx)
    else:
        params = ctx.resolve(
            MATERIAL_SCHEMA,
            {"name": args.name, "group": args.group, "style": args.style, "dna": args.dna},
        )
        result = asyncio.run(
            generator.create_material(
                kind,
                params["name"],
                group=params.get("group"),
                dna=params.get("dna"),
                style=params.get("style"),
                theme=args.theme,
            )
        )
    report(result)


def _create_page(args: argparse.Namespace, ctx: Context) -> OperationResult:
    params = ctx.resolve(PAGE_SCHEMA, {"url": args.url, "label": args.label})
    return asyncio.run(ctx.generator().create_page(params["url"], params["label"]))


def cmd_page(args: argparse.Namespace, ctx: Context) -> None:
    report(_create_page(args, ctx))


def cmd_cleanse(args: argparse.Namespace, ctx: Context) -> None:
    if not ctx.confirm("This deletes every material and view. Continue?"):
        raise PromptCancelled("cleanse cancelled")
    if not ctx.confirm("Are you absolutely sure? This cannot be undone."):
        raise PromptCancelled("cleanse cancelled")

    remove_scripts = args.scripts if args.scripts is not None else ctx.confirm("Remove scripts?")
    remove_styles = args.styles if args.styles is not None else ctx.confirm("Remove styles?")

    result = asyncio.run(ctx.generator().cleanse(remove_scripts, remove_styles))
    report(result)
    print_success("cleanse complete!")


def cmd_infuse(args: argparse.Namespace, ctx: Context) -> None:
    with console.status(f"infusing {args.toolkit}..."):
        result = asyncio.run(
            ctx.toolkits().infuse(args.toolkit, pkg=args.pkg, url=args.url, theme=args.theme)
        )
    report(result)
    if result.status_of("toolkit") is Status.RENAMED:
        print_success(f"{args.toolkit} re-enabled")
    else:
        print_success(f"{args.toolkit} infused")


def cmd_defuse(args: argparse.Namespace, ctx: Context) -> None:
    result = asyncio.run(ctx.toolkits().defuse(args.toolkit, remove=args.remove))
    report(result)
    print_success(f"{args.toolkit} {'removed' if args.remove else 'defused'}")


def cmd_toolkits(args: argparse.Namespace, ctx: Context) -> None:
    rows = [(name, state.value) for name, state in ctx.toolkits().toolkits()]
    if not rows:
        print_info("no toolkits infused")
        return
    print_summary_table(rows, title="Toolkits", columns=("Toolkit", "State"))


def cmd_install(args: argparse.Namespace, ctx: Context) -> None:
    if has_visible_entries(ctx.root) and not args.overwrite:
        question = "The install directory is not empty. Do you want to overwrite it?"
        if not ctx.confirm(question):
            raise PromptCancelled("install cancelled")

    params = ctx.resolve(INSTALL_SCHEMA, {"username": args.username, "password": args.password})
    with console.status("installing...") as spinner:
        result = asyncio.run(
            ctx.runner().install(
                username=params.get("username"),
                password=params.get("password"),
                on_status=lambda message: spinner.update(message),
            )
        )
    report(result)
    print_success("install complete!")
    print_info("run `butter launch` to start the dev server.")


def cmd_build(args: argparse.Namespace, ctx: Context) -> None:
    with console.status("building assets..."):
        asyncio.run(ctx.runner().build())
    print_success("build complete!")


def cmd_launch(args: argparse.Namespace, ctx: Context) -> None:
    with console.status("launching...") as spinner:
        try:
            asyncio.run(ctx.runner().launch(args.port, on_line=_status_updater(spinner)))
        except KeyboardInterrupt:
            print_info("stopped")


def _status_updater(spinner: Any) -> Callable[[str], None]:
    def update(line: str) -> None:
        if line.strip():
            spinner.update(line.strip())

    return update


def cmd_eject(args: argparse.Namespace, ctx: Context) -> None:
    params = ctx.resolve(EJECT_SCHEMA, {"path": args.path})
    with console.status("building assets..."):
        result = asyncio.run(ctx.runner().eject(params["path"]))
    report(result)
    print_success("eject complete!")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="butter",
        description="butter: design system scaffolding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", metavar="<command>")

    p = sub.add_parser(
        "set",
        help="Set configuration key:value pairs",
        epilog='Examples:\n  butter set -k theme -v "my-theme"',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-k", "--key", help="the configuration property to set")
    p.add_argument("-v", "--value", help="the configuration property value")
    p.set_defaults(handler=cmd_set)

    p = sub.add_parser(
        "install",
        help="Install butter in the current directory",
        epilog="Examples:\n  butter install --overwrite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-o", "--overwrite", action="store_true", help="overwrite the install path")
    p.add_argument("-u", "--username", help="basic auth username")
    p.add_argument("-p", "--password", help="basic auth password")
    p.set_defaults(handler=cmd_install)

    p = sub.add_parser(
        "create",
        help=f"Create the specified <type>: {'|'.join(CREATE_TYPES)}",
        epilog=(
            "Examples:\n"
            '  butter create molecule --name "btn-primary" --group "buttons"'
            ' --style "button-primary" --dna "btn-primary"'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("type", help="|".join(CREATE_TYPES))
    p.add_argument("-n", "--name", help="the name of the material")
    p.add_argument("-g", "--group", help="the group to add the new material to")
    p.add_argument("-s", "--style", help="the style sheet to create")
    p.add_argument("-d", "--dna", help="the DNA-ID for the new material")
    p.add_argument("-t", "--theme", help="the theme for the style sheet")
    p.add_argument("-u", "--url", help="page url (page menu entries)")
    p.add_argument("-l", "--label", help="page label (page menu entries)")
    p.set_defaults(handler=cmd_create)

    p = sub.add_parser("launch", help="Launch butter and listen for changes")
    p.add_argument("-p", "--port", type=int, help="dev server port")
    p.set_defaults(handler=cmd_launch)

    p = sub.add_parser("build", help="Build butter")
    p.set_defaults(handler=cmd_build)

    p = sub.add_parser(
        "eject",
        help="Copy the built dist/assets directory to <path>",
        epilog='Examples:\n  butter eject "/Users/me/Desktop"',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("path", nargs="?", help="destination directory")
    p.set_defaults(handler=cmd_eject)

    p = sub.add_parser("page", help="Add a page menu entry")
    p.add_argument("-u", "--url", help="page url")
    p.add_argument("-l", "--label", help="page label")
    p.set_defaults(handler=cmd_page)

    p = sub.add_parser("cleanse", help="Delete all materials and views and reset the asset skeleton")
    p.add_argument("--scripts", action="store_true", default=None, help="also reset scripts")
    p.add_argument("--styles", action="store_true", default=None, help="also reset styles")
    p.set_defaults(handler=cmd_cleanse)

    p = sub.add_parser("infuse", help="Install or re-enable a toolkit")
    p.add_argument("toolkit", help="toolkit name")
    p.add_argument("-t", "--theme", help="theme substituted into the toolkit's style entries")
    p.add_argument("-p", "--pkg", help="local package directory or .zip file")
    p.add_argument("-u", "--url", help="package archive url")
    p.set_defaults(handler=cmd_infuse)

    p = sub.add_parser("defuse", help="Disable or remove a toolkit")
    p.add_argument("toolkit", help="toolkit name")
    p.add_argument("-r", "--remove", action="store_true", help="delete the toolkit instead of disabling it")
    p.set_defaults(handler=cmd_defuse)

    p = sub.add_parser("toolkits", help="List toolkits and their state")
    p.set_defaults(handler=cmd_toolkits)

    return parser


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(
    argv: list[str] | None = None,
    *,
    root: Path | None = None,
    config_path: Path | None = None,
    ask: Asker | None = None,
    confirm_ask: Confirmer | None = None,
) -> None:
    """CLI entry point for ``butter`` / ``python -m butter``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "handler", None):
        parser.print_help()
        return

    try:
        store = ConfigStore(config_path)
        ctx = Context(store, root or Path.cwd(), ask=ask, confirm_ask=confirm_ask)
        args.handler(args, ctx)
    except json.JSONDecodeError as exc:
        print_error(f"{args.command} error: malformed JSON: {exc}")
        sys.exit(1)
    except ButterError as exc:
        print_error(f"{args.command} error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
