from __future__ import annotations

import pydantic as p
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from gradekeeper.model import DeploymentEnvironment

from .base import BaseSecrets
from .source import YAMLEnvSecretsSource


class PostgresqlSecrets(BaseSecrets):
    username: p.Secret[str] | None = None
    password: p.Secret[str] | None = None


class RedisSecrets(BaseSecrets):
    password: p.Secret[str] | None = None


class Secrets(BaseSecrets):
    root: p.AnyUrl
    env: DeploymentEnvironment

    postgresql: PostgresqlSecrets = p.Field(default_factory=PostgresqlSecrets)
    redis: RedisSecrets = p.Field(default_factory=RedisSecrets)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, YAMLEnvSecretsSource(settings_cls)
