"""Toolkit (vendored asset bundle) management.

A toolkit lives under ``<src>/assets/toolkit/lib/<name>`` and is in one of
three states:

* ``absent``: no directory at all.
* ``active``: ``lib/<name>`` exists.
* ``disabled``: renamed to ``lib/__<name>``.

``infuse`` moves a toolkit to ``active`` and imports its declared
stylesheets from the global libs aggregator; ``defuse`` moves it back to
``disabled`` (or ``absent``) and strips its lines from that aggregator.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from enum import Enum
from pathlib import Path
from typing import Any

import httpx

from ..archive import extract_zip, fetch_and_extract
from ..config import Config
from ..results import OperationResult, Status
from ..scaffolder.generator import IMPORT_STATEMENT
from ..scaffolder.paths import DISABLED_PREFIX, ProjectPaths
from ..scaffolder.templates import render_placeholders
from ..utils import ButterError, slugify, write_text

MARKER_FILES: tuple[str, ...] = ("index.js", "package.json")

TOOLKIT_CONFIG = "config.json"


class ToolkitError(ButterError):
    """Raised when a toolkit or its source cannot be found."""


class ToolkitState(str, Enum):
    ABSENT = "absent"
    ACTIVE = "active"
    DISABLED = "disabled"


class ToolkitManager:
    """Install, disable and remove toolkits in one project.

    Args:
        config: The loaded butter configuration.
        root: Project root directory.
        transport: Optional httpx transport used for downloads (tests pass
            an ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: Config,
        root: str | Path,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.paths = ProjectPaths.from_config(config, root)
        self.transport = transport

    # -- State ---------------------------------------------------------------

    def state(self, name: str) -> ToolkitState:
        if self.paths.toolkit_dir(name).is_dir():
            return ToolkitState.ACTIVE
        if self.paths.disabled_toolkit_dir(name).is_dir():
            return ToolkitState.DISABLED
        return ToolkitState.ABSENT

    def toolkits(self) -> list[tuple[str, ToolkitState]]:
        """Every toolkit under ``lib/`` with its state, sorted by name."""
        lib_dir = self.paths.lib_dir
        if not lib_dir.is_dir():
            return []
        names = {
            entry.name[len(DISABLED_PREFIX):] if entry.name.startswith(DISABLED_PREFIX) else entry.name
            for entry in lib_dir.iterdir()
            if entry.is_dir()
        }
        return [(name, self.state(name)) for name in sorted(names)]

    # -- Infuse --------------------------------------------------------------

    async def infuse(
        self,
        name: str,
        pkg: str | Path | None = None,
        url: str | None = None,
        theme: str | None = None,
    ) -> OperationResult:
        """Activate toolkit *name* and import its stylesheets.

        An absent toolkit is materialised from *pkg* (a directory or ``.zip``
        file), else *url*, else the URL registered for *name* in the
        configuration's ``infusions`` list.  A disabled toolkit is simply
        renamed back; nothing is downloaded.

        Raises:
            ToolkitError: If no usable source exists for an absent toolkit.
            ArchiveError: If downloading or extracting fails.
        """
        slug = _require_name(name)
        result = OperationResult(operation="infuse")
        state = self.state(slug)
        toolkit_dir = self.paths.toolkit_dir(slug)

        if state is ToolkitState.DISABLED:
            await asyncio.to_thread(self.paths.disabled_toolkit_dir(slug).rename, toolkit_dir)
            result.add("toolkit", Status.RENAMED, toolkit_dir, slug)
            result.extend(await self.infuse(slug, theme=theme))
            return result

        if state is ToolkitState.ABSENT:
            await self._materialize(slug, pkg, url)
            result.add("toolkit", Status.CREATED, toolkit_dir, slug)
            result.extend(await self.infuse(slug, theme=theme))
            return result

        result.extend(await asyncio.to_thread(self._import_styles, slug, theme))
        for marker in MARKER_FILES:
            path = toolkit_dir / marker
            if path.is_file():
                path.unlink()
                result.add("marker", Status.REMOVED, path)
        return result

    async def _materialize(self, slug: str, pkg: str | Path | None, url: str | None) -> None:
        target = self.paths.toolkit_dir(slug)

        if pkg:
            source = Path(pkg).expanduser()
            if not source.exists():
                raise ToolkitError(f"Package {source} does not exist")
            if source.is_file() and source.suffix.lower() != ".zip":
                raise ToolkitError(f"Package {source} is neither a directory nor a .zip archive")
            try:
                if source.is_file():
                    await asyncio.to_thread(extract_zip, source, target, 1)
                else:
                    await asyncio.to_thread(shutil.copytree, source, target)
            except Exception:
                _discard(target)
                raise
            return

        source_url = url or self.config.find_infusion(slug)
        if not source_url:
            raise ToolkitError(f"No package or url given and no known infusion named '{slug}'")
        try:
            await fetch_and_extract(source_url, target, strip=1, transport=self.transport)
        except Exception:
            _discard(target)
            raise

    def _import_styles(self, slug: str, theme: str | None) -> OperationResult:
        """Append the header and missing imports for *slug* in one write."""
        result = OperationResult(operation="infuse")
        aggregator = self.paths.libs_aggregator
        current = aggregator.read_text(encoding="utf-8") if aggregator.exists() else ""

        queued: list[str] = []
        header = f"/** {slug} **/"
        if header not in current:
            queued.append(header)

        for entry in self._style_entries(slug, theme):
            statement = IMPORT_STATEMENT.format(name=f"../lib/{slug}/{entry}")
            line = f"{statement};"
            if statement not in current and line not in queued:
                queued.append(line)

        if queued or not aggregator.exists():
            write_text(aggregator, current + "".join(f"\n{line}" for line in queued))
            result.add("aggregator", Status.UPDATED, aggregator, f"{len(queued)} line(s)")
        else:
            result.add("aggregator", Status.UNCHANGED, aggregator)
        return result

    def _style_entries(self, slug: str, theme: str | None) -> list[str]:
        config_file = self.paths.toolkit_dir(slug) / TOOLKIT_CONFIG
        if not config_file.is_file():
            return []
        try:
            data: Any = json.loads(config_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ToolkitError(f"Invalid toolkit configuration {config_file}: {exc}") from exc

        styles = data.get("styles") if isinstance(data, dict) else None
        if not styles:
            return []
        if isinstance(styles, str):
            styles = [styles]
        values = {"theme": theme or self.config.theme}
        return [render_placeholders(str(entry), values) for entry in styles]

    # -- Defuse --------------------------------------------------------------

    async def defuse(self, name: str, remove: bool = False) -> OperationResult:
        """Disable (or with *remove*, delete) the active toolkit *name*.

        Every line of the libs aggregator containing the toolkit name is
        dropped, matched by plain substring.

        Raises:
            ToolkitError: If the toolkit is not active.
        """
        slug = _require_name(name)
        toolkit_dir = self.paths.toolkit_dir(slug)
        if not toolkit_dir.is_dir():
            raise ToolkitError(f"Toolkit '{slug}' does not exist")

        return await asyncio.to_thread(self._defuse, slug, toolkit_dir, remove)

    def _defuse(self, slug: str, toolkit_dir: Path, remove: bool) -> OperationResult:
        result = OperationResult(operation="defuse")

        aggregator = self.paths.libs_aggregator
        if aggregator.exists():
            lines = aggregator.read_text(encoding="utf-8").splitlines(keepends=True)
            kept = [line for line in lines if slug not in line]
            if len(kept) != len(lines):
                write_text(aggregator, "".join(kept))
                result.add("aggregator", Status.UPDATED, aggregator, f"{len(lines) - len(kept)} line(s) removed")
            else:
                result.add("aggregator", Status.UNCHANGED, aggregator)

        if remove:
            shutil.rmtree(toolkit_dir)
            result.add("toolkit", Status.REMOVED, toolkit_dir, slug)
            return result

        disabled = self.paths.disabled_toolkit_dir(slug)
        if disabled.exists():
            shutil.rmtree(disabled)
        toolkit_dir.rename(disabled)
        result.add("toolkit", Status.RENAMED, disabled, slug)
        return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _require_name(name: str | None) -> str:
    slug = slugify(name or "")
    if not slug:
        raise ToolkitError("Toolkit name is required")
    return slug


def _discard(path: Path) -> None:
    """Remove a partially materialised toolkit directory."""
    shutil.rmtree(path, ignore_errors=True)
