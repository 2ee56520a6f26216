# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Layered configuration with YAML/TOML files, env vars, and dataclass binding."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__csrfguard_config_prefix__"

_ENV_PREFIX = "CSRFGUARD_"
_FILE_STEM = "csrfguard"
_DEFAULTS_FILE = "csrfguard-defaults.yaml"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a class as bindable to a configuration prefix.

    Works with both dataclasses and Pydantic BaseModel subclasses.

    Usage:
        @config_properties(prefix="csrfguard.csrf")
        @dataclass
        class CsrfProperties:
            token_length: int = 32
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (CSRFGUARD_SECTION_KEY format)
    2. Configuration dict / YAML / TOML file values
    3. Dataclass defaults
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """List of config file paths that were loaded, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the raw configuration data."""
        return dict(self._data)

    @classmethod
    def from_sources(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load and merge config from multiple sources.

        Merge order (later wins):
        1. Library defaults (csrfguard-defaults.yaml from the package)
        2. config/csrfguard.yaml or config/csrfguard.toml
        3. csrfguard.yaml or csrfguard.toml (project root)
        4. Profile overlays: config/csrfguard-{profile}.yaml, csrfguard-{profile}.yaml
        5. Environment variables (handled at read time in get())
        """
        base_dir = Path(base_dir)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append(f"{_DEFAULTS_FILE} (library defaults)")

        for search_dir in (base_dir / "config", base_dir):
            for ext in (".yaml", ".toml"):
                candidate = search_dir / f"{_FILE_STEM}{ext}"
                if candidate.is_file():
                    data = cls._deep_merge(data, cls._load_config_data(candidate))
                    sources.append(str(candidate))

        for profile in active_profiles or []:
            for search_dir in (base_dir / "config", base_dir):
                for ext in (".yaml", ".toml"):
                    candidate = search_dir / f"{_FILE_STEM}-{profile}{ext}"
                    if candidate.is_file():
                        data = cls._deep_merge(data, cls._load_config_data(candidate))
                        sources.append(f"{candidate} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @classmethod
    def defaults(cls) -> Config:
        """Return a configuration holding only the library defaults."""
        instance = cls(cls._load_defaults())
        instance._loaded_sources = [f"{_DEFAULTS_FILE} (library defaults)"]
        return instance

    @classmethod
    def from_file(cls, path: str | Path, load_defaults: bool = True) -> Config:
        """Load configuration from a single YAML or TOML file on top of the defaults."""
        path = Path(path)
        data = cls._load_defaults() if load_defaults else {}
        sources = [f"{_DEFAULTS_FILE} (library defaults)"] if load_defaults else []

        if path.exists():
            data = cls._deep_merge(data, cls._load_config_data(path))
            sources.append(str(path))

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @staticmethod
    def _load_config_data(path: Path) -> dict[str, Any]:
        """Load config data from a YAML or TOML file."""
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return tomllib.load(f) or {}
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        """Load built-in defaults from csrfguard.resources."""
        defaults_file = importlib.resources.files("csrfguard.resources").joinpath(_DEFAULTS_FILE)
        with importlib.resources.as_file(defaults_file) as p, open(p) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, with override values winning."""
        merged = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values containing ``${...}`` placeholders are resolved:
        - ``${ENV_VAR}`` — resolved from environment variables
        - ``${config.key}`` — resolved from other config values
        - ``${key:default}`` — uses default if key/env not found
        """
        # csrfguard.csrf.token_length -> CSRFGUARD_CSRF_TOKEN_LENGTH
        env_val = os.environ.get(self._env_key(key))
        if env_val is not None:
            return env_val

        current = self._lookup(key)
        if current is None:
            return default

        if isinstance(current, str) and "${" in current:
            return self._resolve_placeholders(current)

        return current

    @staticmethod
    def _env_key(key: str) -> str:
        base = key.removeprefix(f"{_FILE_STEM}.")
        return _ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")

    def _lookup(self, key: str) -> Any:
        """Walk the nested data for a dot-notation key, without env or placeholders."""
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    def _resolve_placeholders(self, value: str, _depth: int = 0) -> str:
        """Resolve ``${...}`` placeholders in a string value.

        Guards against circular references with a max recursion depth.
        """
        if _depth > 10:
            raise ValueError(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references."
            )

        def _replace(match: re.Match[str]) -> str:
            inner = match.group(1)

            if ":" in inner:
                ref_key, default_val = inner.split(":", 1)
            else:
                ref_key, default_val = inner, None

            env_val = os.environ.get(ref_key)
            if env_val is not None:
                return env_val

            current = self._lookup(ref_key)
            if current is not None:
                resolved = str(current)
                if "${" in resolved:
                    resolved = self._resolve_placeholders(resolved, _depth + 1)
                return resolved

            if default_val is not None:
                return cast(str, default_val)

            raise ValueError(f"Cannot resolve placeholder '${{{inner}}}': not found in environment or config")

        return _PLACEHOLDER_RE.sub(_replace, value)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get all values under a prefix as a dict."""
        current = self._lookup(prefix)
        return current if isinstance(current, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Bind configuration to a @config_properties dataclass or Pydantic model.

        Environment overrides apply per field, so ``CSRFGUARD_CSRF_NONCE=true``
        wins over the file value of ``csrfguard.csrf.nonce``.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = dict(self.get_section(prefix))

        try:
            from pydantic import BaseModel, ValidationError

            if isinstance(config_cls, type) and issubclass(config_cls, BaseModel):
                try:
                    return config_cls.model_validate(section)
                except ValidationError as exc:
                    raise ValueError(
                        f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
                    ) from exc
        except ImportError:
            pass

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            env_val = os.environ.get(self._env_key(f"{prefix}.{field.name}"))
            if env_val is not None:
                section[field.name] = env_val
            if field.name not in section:
                continue
            value = section[field.name]
            expected_type = hints.get(field.name)
            if expected_type is int and isinstance(value, str):
                value = int(value)
            elif expected_type is float and isinstance(value, str):
                value = float(value)
            elif expected_type is bool and isinstance(value, str):
                value = value.lower() in ("true", "1", "yes")
            kwargs[field.name] = value

        return config_cls(**kwargs)
