import functools
import os
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

import gradekeeper.lib.util as util
from gradekeeper.model import DeploymentEnvironment

SkipKeys: t.Final[frozenset[str]] = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def _config_dirs(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        # local/ has no directory of its own, it is just the root
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    def __call__(self) -> dict[str, t.Any]:
        # init kwargs carry the config root and env
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            if field_name in SkipKeys:
                continue
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except ValueError as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e

            data[field_key] = field_value
        return data


class YAMLCascadingSettingsSource(SettingsSource):
    """
    Reads ``<section>.yaml`` from the config root, then deep-merges the
    environment's ``env.d/<env>/<section>.yaml`` over it
    """

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        return _config_dirs(current_state["root"], current_state["env"])

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        yamls: list[str] = []
        for path in self.load_paths:
            fn = path / f"{field_name}.yaml"
            if fn.exists():
                yamls.append(fn.read_text(encoding="utf8"))
        if not yamls:
            raise KeyError(field_name)
        return yamls, field_name, True

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        if not isinstance(value, list):
            raise ValueError(field_name)
        merged: t.Any = {}
        for doc in t.cast(list[str], value):
            loaded = yaml.safe_load(doc)
            if isinstance(loaded, dict) and isinstance(merged, dict):
                merged = util.deep_update(t.cast(dict[t.Any, t.Any], merged), t.cast(dict[t.Any, t.Any], loaded))
            elif loaded is not None:
                merged = loaded
        return merged


class OverrideSettingsSource(SettingsSource):
    """``-o storage.persistent.sqlite.path=/tmp/x.db`` style overrides, values parsed as YAML"""

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        od: dict[str, t.Any] = {}
        for o in current_state["override"]:
            k, v = [s.strip() for s in o.split("=", 1)]
            od = util.deep_update(od, util.dotted_to_nested(k, yaml.safe_load(v)))
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name not in self.parsed_options:
            raise KeyError(field_name)
        val = self.current_state.get(field_name)
        if isinstance(val, dict):
            merged = util.deep_update(t.cast(dict[t.Any, t.Any], val), self.parsed_options[field_name])
            return merged, field_name, True
        return self.parsed_options[field_name], field_name, False

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class YAMLEnvSecretsSource(SettingsSource):
    """
    Loads ``secrets.yaml`` beside the configuration, with the environment's
    own file taking precedence, then applies ``GRADEKEEPER_SECRETS_*``
    variables (``__`` separates nesting, e.g. ``GRADEKEEPER_SECRETS_POSTGRESQL__PASSWORD``)
    """

    env_prefix: t.ClassVar[str] = "GRADEKEEPER_SECRETS_"

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        current_state = t.cast(CurrentState, self.current_state)
        data: dict[str, t.Any] = {}
        for path in _config_dirs(current_state["root"], current_state["env"]):
            fn = path / "secrets.yaml"
            if fn.exists():
                data = util.deep_update(data, yaml.safe_load(fn.read_text(encoding="utf8")) or {})

        for name, value in os.environ.items():
            if not name.startswith(self.env_prefix):
                continue
            key = name.removeprefix(self.env_prefix).lower().replace("__", ".")
            data = util.deep_update(data, util.dotted_to_nested(key, value))
        return data

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value
