"""Shared pytest fixtures for the butter test suite.

Provides reusable fixtures for:
- Temporary project roots and configuration files
- Generator, toolkit manager and path resolver instances
- Fixed prompt answerers standing in for the terminal
- Zip archives shaped like release downloads (one wrapper directory)
"""

from __future__ import annotations

import json
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from butter.config import Config
from butter.prompts import PromptField
from butter.scaffolder import ProjectPaths, ScaffoldGenerator
from butter.toolkit import ToolkitManager


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Empty project directory (auto-cleanup)."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def config() -> Config:
    """Default configuration with one known infusion."""
    return Config(
        src="src",
        theme="default",
        infusions=[{"name": "bootstrap-4", "url": "https://downloads.test/bootstrap-4.zip"}],
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A configuration document on disk, outside the package."""
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "src": "src",
                "theme": "default",
                "install": "https://downloads.test/butter.zip",
                "infusions": [{"name": "bootstrap-4", "url": "https://downloads.test/bootstrap-4.zip"}],
            },
            indent=2,
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def paths(config: Config, project_root: Path) -> ProjectPaths:
    return ProjectPaths.from_config(config, project_root)


@pytest.fixture
def generator(config: Config, project_root: Path) -> ScaffoldGenerator:
    return ScaffoldGenerator(config, project_root)


# ---------------------------------------------------------------------------
# Prompt answerers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_asker() -> Callable[[dict[str, Any]], Callable[[PromptField], Any]]:
    """Build an ``ask`` callable that answers from a mapping and records questions."""

    def factory(answers: dict[str, Any]) -> Callable[[PromptField], Any]:
        def ask(field: PromptField) -> Any:
            ask.asked.append(field.name)
            return answers.get(field.name)

        ask.asked = []  # type: ignore[attr-defined]
        return ask

    return factory


@pytest.fixture
def always_yes() -> Callable[[str, bool], bool]:
    def confirm(question: str, default: bool) -> bool:
        confirm.questions.append(question)
        return True

    confirm.questions = []  # type: ignore[attr-defined]
    return confirm


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------

def build_zip(path: Path, files: dict[str, str], wrapper: str = "package-main") -> Path:
    """Write a zip whose members all live under a single *wrapper* directory."""
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(f"{wrapper}/", "")
        for name, content in files.items():
            zf.writestr(f"{wrapper}/{name}", content)
    return path


@pytest.fixture
def zip_builder() -> Callable[..., Path]:
    return build_zip


@pytest.fixture
def toolkit_files() -> dict[str, str]:
    """Contents of a small toolkit carrying its own config.json."""
    return {
        "config.json": json.dumps({"styles": ["scss/main", "themes/${theme}/theme"]}),
        "scss/main.scss": "body { margin: 0; }\n",
        "index.js": "module.exports = {};\n",
        "package.json": "{}\n",
    }


@pytest.fixture
def toolkit_zip(tmp_path: Path, toolkit_files: dict[str, str]) -> Path:
    return build_zip(tmp_path / "bootstrap-4.zip", toolkit_files, wrapper="bootstrap-4.0.0")


@pytest.fixture
def archive_transport(toolkit_zip: Path) -> httpx.MockTransport:
    """Serves the toolkit zip for every request and records requested URLs."""
    payload = toolkit_zip.read_bytes()
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=payload)

    transport = httpx.MockTransport(handler)
    transport.requested = requested  # type: ignore[attr-defined]
    return transport


@pytest.fixture
def toolkit_manager(
    config: Config, project_root: Path, archive_transport: httpx.MockTransport
) -> ToolkitManager:
    return ToolkitManager(config, project_root, transport=archive_transport)
