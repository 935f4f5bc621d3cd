"""butter configuration.

The configuration document is a flat JSON object colocated with the package
(``butter/config.json``).  It is loaded once by the CLI entry point and the
resulting ``Config`` is handed to every component explicitly.

Keys are free-form: unknown keys survive a load/save round-trip.  ``set``
validates the patched document the same way ``load`` does, so a value the
next load would reject is never written.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .utils import ConfigError, dump_json, write_text

CONFIG_ENV_VAR = "BUTTER_CONFIG"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.json"


class Infusion(BaseModel):
    """A known toolkit that ``infuse`` can resolve by name."""

    name: str
    url: str


class Config(BaseModel):
    """butter configuration document."""

    model_config = ConfigDict(extra="allow")

    src: str = Field(default="src", description="Project source directory")
    theme: str = Field(default="default", description="Default style theme")
    install: str = Field(default="", description="Base project archive URL")
    infusions: list[Infusion] = Field(default_factory=list)
    templates: str | None = Field(
        default=None, description="Directory overriding the bundled templates"
    )
    runner: str = Field(default="gulp", description="Task runner executable")
    package_manager: str = Field(default="npm", description="Dependency installer")
    dist: str = Field(default="dist", description="Build output directory")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_infusion(self, name: str) -> str | None:
        """Return the archive URL registered for toolkit *name*, if any."""
        wanted = name.lower()
        for item in self.infusions:
            if item.name.lower() == wanted:
                return item.url
        return None

    def as_dict(self) -> dict[str, Any]:
        """Return the full document as plain JSON-compatible data."""
        return self.model_dump(mode="json", warnings=False)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to *path*, pretty-printed."""
        write_text(Path(path), dump_json(self.as_dict()))
        return Path(path)

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load the configuration from JSON.

        A missing file yields the defaults.

        Raises:
            ConfigError: If the file is not valid JSON or has invalid values.
        """
        file_path = Path(path)
        if not file_path.exists():
            return cls()
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
            return cls.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ConfigError(f"Invalid configuration file {file_path}: {exc}") from exc


def default_config_path() -> Path:
    """Location of the configuration document, honouring ``BUTTER_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return DEFAULT_CONFIG_PATH


class ConfigStore:
    """Loads, patches and persists the configuration document.

    Every ``set`` rewrites the whole file; concurrent writers are not
    coordinated (last writer wins).
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()
        self.config = Config.load(self.path)

    def get(self) -> dict[str, Any]:
        return self.config.as_dict()

    def set(self, key: str, value: Any) -> dict[str, Any]:
        """Replace *key* with *value* and persist immediately.

        Returns:
            The full document as written.

        Raises:
            ConfigError: If *key* is empty or *value* is invalid for a known
                field.  Nothing is written in that case.
        """
        if not key:
            raise ConfigError("Configuration key is required")
        try:
            config = Config.model_validate({**self.config.as_dict(), key: value})
        except ValidationError as exc:
            raise ConfigError(f"Invalid value for '{key}': {exc}") from exc
        self.config = config
        self.config.save(self.path)
        return self.get()
