"""Main entry point for the gradebook web application."""

import os
import typing as t
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import gradekeeper
from gradekeeper.core import BootConfiguration, di, GradekeeperContainer
from gradekeeper.core.config.web import GradebookWebSettings
from gradekeeper.grading import GradingError
from gradekeeper.model import DeploymentEnvironment

from .error import handle_grading_error
from .route import router


@di.inject
def _create_app(
    config: GradebookWebSettings = di.Provide["config.web.gradebook", di.as_(GradebookWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
    root_path: Path = di.Provide["root"],
) -> FastAPI:
    app = FastAPI(
        title="Gradekeeper",
        description="Course grading and grade integrity",
        version=gradekeeper.__version__,
    )

    if env is DeploymentEnvironment.Local and config.frontend is not None:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[
                f"http://{config.frontend.host}:{config.frontend.port}",
                f"http://localhost:{config.frontend.port}",
            ],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(GradingError, handle_grading_error)
    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv("__Gradekeeper_BOOT")
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = GradekeeperContainer()
        GradekeeperContainer.boot(ct, **dict(boot_cf))
        ct.wire(modules=["gradekeeper.web.gradebook.main"])
        return _create_app(
            config=GradebookWebSettings(**ct.config.web.gradebook()),
            env=boot_cf.env,
            root_path=t.cast(Path, ct.root()),
        )
    return _create_app()
