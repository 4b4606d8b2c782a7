"""Run the gradebook HTTP API under uvicorn."""

from __future__ import annotations

import os

import uvicorn
from fastapi.routing import APIRoute

import gradekeeper.lib.cli as click
from gradekeeper.core import BootConfiguration, di
from gradekeeper.core.config import GradebookWebSettings, LoggingSettings

# uvicorn workers boot their own container from this variable
BootVariable = "__Gradekeeper_BOOT"
AppFactory = "gradekeeper.web.gradebook:create_app"


@click.group()
def web(): ...


@web.command(name="serve")
@click.option("-w", "--workers", type=click.IntRange(min=1), default=1)
@click.option("--reload", is_flag=True, default=False, help="restart on code changes (single worker)")
@click.option("--port", type=click.IntRange(min=1, max=65535), default=None, help="instead of the configured port")
@di.inject
def serve(
    workers: int,
    reload: bool,
    port: int | None,
    boot_cf: BootConfiguration = di.Provide["_boot_config"],
    logging_cf: LoggingSettings = di.Provide["config.logging", di.as_(LoggingSettings)],  # noqa: B008
    web_cf: GradebookWebSettings = di.Provide["config.web.gradebook", di.as_(GradebookWebSettings)],  # noqa: B008
):
    """Serve the gradebook API."""
    if reload and workers > 1:
        raise click.UsageError("--reload runs a single worker")

    host, port = str(web_cf.backend.host), port or web_cf.backend.port
    os.environ[BootVariable] = boot_cf.model_dump_json()
    click.echo(f"gradebook API on http://{host}:{port} ({boot_cf.env.value})", err=True)
    uvicorn.run(
        AppFactory,
        factory=True,
        host=host,
        port=port,
        workers=None if reload else workers,
        reload=reload,
        log_config=logging_cf.model_dump(),
    )


@web.command(name="routes")
def routes():
    """List the API's routes."""
    from gradekeeper.web.gradebook.route import router

    for route in router.routes:
        if isinstance(route, APIRoute):
            click.echo(f"{','.join(sorted(route.methods)):<8} {route.path:<60} {route.operation_id}")
