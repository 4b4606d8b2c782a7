"""The ``gradekeeper`` command line.

Subcommand modules are imported only when invoked, and are wired into the
container as they are imported, so ``gradekeeper --help`` stays fast and
never touches configuration.
"""

from __future__ import annotations

import importlib
import sys
import threading
import traceback
import types
import typing as t
from pathlib import Path

import pydantic as p

import gradekeeper
import gradekeeper.lib.cli as click
from gradekeeper.core import GradekeeperContainer
from gradekeeper.grading import GradingError
from gradekeeper.model import DeploymentEnvironment

DefaultConfigRoot: t.Final[Path] = Path(gradekeeper.__file__).resolve().parents[1] / "config"

# command name -> one-line help, shown without importing the command module
Commands: t.Final[dict[str, str]] = {
    "course": "Inspect and finalize course gradebooks.",
    "schema": "Inspect and migrate the grading database schema.",
    "web": "Run the gradebook HTTP API.",
}


class LazyCommands(click.Group):
    def __init__(self, *args: t.Any, **kwargs: t.Any):
        super().__init__(*args, **kwargs)
        self.loaded: list[types.ModuleType] = []

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(Commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in Commands:
            return None
        mod = importlib.import_module(f"gradekeeper.cli.{cmd_name}")
        self.loaded.append(mod)
        return getattr(mod, cmd_name)

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        with formatter.section("Commands"):
            formatter.write_dl(sorted(Commands.items()))


@click.group(cls=LazyCommands)
@click.version_option(gradekeeper.__version__, prog_name="gradekeeper")
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=DefaultConfigRoot, type=click.URIParamType(dir_ok=True))
@click.option(
    "-o",
    "--override",
    multiple=True,
    callback=click.split_override,
    help="override one configuration value, e.g. -o grading.record_dispute_rejections=true",
)
@click.option("-D", "--debug", is_flag=True, default=False, help="verbose logging and tracebacks on error")
@click.pass_context
def main(
    ctx: click.Context,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    override: tuple[str, ...],
    debug: bool,
):
    group = t.cast(LazyCommands, ctx.command)
    GradekeeperContainer.boot(
        t.cast(GradekeeperContainer, ctx.obj),
        debug=debug,
        env=env,
        config_root=config_root,
        override=override,
        wiring=tuple(group.loaded),
    )


def _fail(message: str, code: int, *, show_traceback: bool) -> t.NoReturn:
    click.echo(click.style("ERROR ", fg="red") + message, file=sys.stderr)
    if show_traceback:
        traceback.print_exc()
    sys.exit(code)


def execute_command(*_args: str) -> None:
    threading.current_thread().name = "gradekeeper-main"
    args = list(_args or sys.argv)
    prog = Path(args[0]).name
    container = GradekeeperContainer()

    def debugging() -> bool:
        # the flag counts even when boot itself failed
        return bool(container.debug()) or "-D" in args or "--debug" in args

    try:
        with main.make_context(prog, args=args[1:], obj=container) as ctx:
            sys.exit(t.cast(int | None, main.invoke(ctx)) or 0)
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", file=sys.stderr)
        sys.exit(1)
    except click.exceptions.Exit as e:
        sys.exit(e.exit_code)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except GradingError as e:
        _fail(f"{e.code}: {e.message}", 2, show_traceback=debugging())
    except Exception as e:
        _fail(str(e), 1, show_traceback=debugging())
    finally:
        container.shutdown_resources()


if __name__ == "__main__":
    execute_command(*sys.argv)
