from __future__ import annotations

import os
import sys
import types
from pathlib import Path

import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import gradekeeper
from gradekeeper.lib import NotReady
from gradekeeper.model import BaseModel, DeploymentEnvironment

from ..config import Secrets, Settings
from ..provider import LoggingProvider, TimestampProvider, utcnow
from .grading import GradingContainer
from .storage import StorageContainer


class BootConfiguration(BaseModel):
    debug: bool
    env: DeploymentEnvironment
    config_root: p.FileUrl
    override: tuple[str, ...] = ()


class GradekeeperContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    root: Object[NotReady | Path] = Object(NotReady())

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    storage: Provider[StorageContainer] = Container(
        StorageContainer,
        config=config.storage,
        secrets=secrets,
        logging=logging,
        root=root,
        stream_prefix=config.grading.notification_stream_prefix,
    )

    utcnow: Provider[TimestampProvider] = Object(utcnow)
    grading: Provider[GradingContainer] = Container(
        GradingContainer,
        config=config.grading,
        channel=storage.streaming.channel,
        utcnow=utcnow,
    )

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: GradekeeperContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl,
        override: tuple[str, ...] | None = None,
        wiring: tuple[str | types.ModuleType, ...] | None = None,
    ):
        if config_root.scheme != "file":
            raise ValueError(f"unsupported scheme for config root: {config_root.scheme}")
        ps = Settings(env=env, root=config_root, override=override or ())
        ct.config.from_pydantic(ps)

        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(os.path.dirname(gradekeeper.__file__)).parent)

        logger = ct.logging().get_logger()
        for ov in ps.override:
            k, v = ov.split("=", 1)
            logger.info("overriding configuration parameter", extra={"key": k, "value": v})

        ct.secrets.from_pydantic(Secrets(env=env, root=config_root))

        # storage, grading and web modules declare their dependencies with di.Provide defaults
        ct.wire(packages=["gradekeeper.storage", "gradekeeper.grading", "gradekeeper.web"])
        if wiring:
            ct.wire(modules=wiring)
        if imported := [mod for name, mod in sys.modules.items() if name.startswith("gradekeeper.cli.")]:
            ct.wire(modules=imported)

        logger.debug("configuration finished", extra={"config": str(config_root), "env": env.value})
        ct._boot_config.override(
            BootConfiguration(debug=debug, env=env, config_root=config_root, override=override or ())
        )
