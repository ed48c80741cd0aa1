from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Callable, Literal

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from forkunit.errors import ConfigError
from forkunit.suite import Options, Suite


class SuiteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str | None = None
    comment: str | None = None
    options: list[str] = []

    @field_validator("options")
    @classmethod
    def options_must_be_known(cls, v: list[str]) -> list[str]:
        unknown = [name for name in v if name.upper() not in Options.__members__]
        if unknown:
            raise ValueError(
                f"Unknown option(s): {', '.join(unknown)}. "
                f"Available: {', '.join(sorted(Options.__members__))}"
            )
        return v

    def option_flags(self) -> Options:
        flags = Options.NONE
        for name in self.options:
            flags |= Options[name.upper()]
        return flags


class HarnessConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    suite: SuiteConfig = SuiteConfig()
    module: str
    entrypoint: str = "register"
    report: Literal["basic", "standard"] = "standard"
    junit: str | None = None
    log_file: str | None = None

    @field_validator("module", "entrypoint")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


def load_config(path: Path) -> HarnessConfig:
    """Load and validate a harness config from a YAML file."""
    config_dir = path.parent.resolve()

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    config = HarnessConfig(**raw)

    # Resolve relative paths relative to config file location
    module_path = Path(config.module)
    if not module_path.is_absolute():
        config.module = str((config_dir / module_path).resolve())
    if config.junit is not None and not Path(config.junit).is_absolute():
        config.junit = str((config_dir / config.junit).resolve())
    if config.log_file is not None and not Path(config.log_file).is_absolute():
        config.log_file = str((config_dir / config.log_file).resolve())

    return config


def load_entrypoint(config: HarnessConfig) -> Callable[[Suite], None]:
    """Import the configured test module and return its registration function."""
    module_path = Path(config.module)
    if not module_path.exists():
        raise ConfigError(f"test module not found: {module_path}")

    spec = importlib.util.spec_from_file_location(module_path.stem, module_path)
    if spec is None or spec.loader is None:
        raise ConfigError(f"cannot import test module: {module_path}")

    module: ModuleType = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigError(f"error importing {module_path}: {e}") from e

    entrypoint = getattr(module, config.entrypoint, None)
    if not callable(entrypoint):
        raise ConfigError(f"{module_path} has no function '{config.entrypoint}'")
    return entrypoint
