"""External task-runner and package-manager orchestration.

butter does not build anything itself: ``build``, ``launch`` and the final
steps of ``install`` shell out to the configured task runner (``gulp`` by
default) and package manager (``npm``).  ``eject`` copies the build output
somewhere else once a build succeeded.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Callable
from pathlib import Path

import httpx

from .archive import download, extract_zip
from .config import Config
from .results import OperationResult, Status
from .utils import (
    ConfigError,
    RunnerError,
    run_command,
    run_command_streaming,
    write_text,
)

EJECT_PRUNE: tuple[str, ...] = ("fabricator", "toolkit/images/fpo")

INSTALL_ARCHIVE = Path("tmp") / "butter.zip"


class TaskRunner:
    """Runs the external tooling for the project at *root*."""

    def __init__(self, config: Config, root: str | Path) -> None:
        self.config = config
        self.root = Path(root).resolve()

    # -- Subprocess wrappers -------------------------------------------------

    async def _run(self, cmd: list[str]) -> str:
        returncode, stdout, stderr = await run_command(cmd, cwd=self.root)
        if returncode != 0:
            raise RunnerError(
                f"`{' '.join(cmd)}` exited with status {returncode}: {stderr or stdout}",
                command=" ".join(cmd),
                stderr=stderr,
            )
        return stdout

    async def build(self) -> str:
        """Run the task runner's default (build) task once."""
        return await self._run([self.config.runner])

    async def install_dependencies(self) -> str:
        return await self._run([self.config.package_manager, "install"])

    async def launch(
        self,
        port: int | None = None,
        on_line: Callable[[str], None] | None = None,
    ) -> None:
        """Run the task runner in dev mode, forwarding each output line.

        Returns when the child exits.  Cancelling the awaiting task (for
        example on Ctrl+C) kills the child.

        Raises:
            RunnerError: If the task runner exits on its own with a
                non-zero status.
        """
        cmd = [self.config.runner, "--dev"]
        if port:
            cmd.extend(["--port", str(port)])
        async for line in run_command_streaming(cmd, cwd=self.root):
            if on_line is not None:
                on_line(line)

    # -- Eject ---------------------------------------------------------------

    async def eject(self, target: str | Path) -> OperationResult:
        """Build, then copy ``<dist>/assets`` into *target*.

        Raises:
            RunnerError: If the build fails or produced no assets.
        """
        await self.build()
        return await asyncio.to_thread(self._copy_assets, Path(target).expanduser())

    def _copy_assets(self, target: Path) -> OperationResult:
        source = self.root / self.config.dist / "assets"
        if not source.is_dir():
            raise RunnerError(f"Build output {source} does not exist")

        result = OperationResult(operation="eject")
        shutil.copytree(source, target, dirs_exist_ok=True)
        result.add("assets", Status.CREATED, target)

        for relative in EJECT_PRUNE:
            pruned = target / relative
            if pruned.exists():
                shutil.rmtree(pruned)
                result.add("prune", Status.REMOVED, pruned)
        return result

    # -- Install -------------------------------------------------------------

    async def install(
        self,
        username: str | None = None,
        password: str | None = None,
        on_status: Callable[[str], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> OperationResult:
        """Download and unpack the base project, then install and build it.

        Raises:
            ConfigError: If no ``install`` URL is configured.
            ArchiveError: If the download or extraction fails.
            RunnerError: If installing dependencies or building fails.
        """
        if not self.config.install:
            raise ConfigError(
                "No install archive configured; run `butter set -k install -v <url>` first"
            )

        def status(message: str) -> None:
            if on_status is not None:
                on_status(message)

        result = OperationResult(operation="install")
        archive = self.root / INSTALL_ARCHIVE

        try:
            status("downloading... this may take awhile.")
            await download(self.config.install, archive, transport=transport)
            status("unzipping...")
            await asyncio.to_thread(extract_zip, archive, self.root, 1)
        finally:
            archive.unlink(missing_ok=True)
            if archive.parent.is_dir() and not any(archive.parent.iterdir()):
                archive.parent.rmdir()
        result.add("project", Status.CREATED, self.root)

        if username and password:
            status("securing...")
            htpasswd = self.root / ".htpasswd"
            await asyncio.to_thread(write_text, htpasswd, f"{username}:{password}")
            result.add("credentials", Status.CREATED, htpasswd)

        status("installing dependencies... this may take awhile.")
        await self.install_dependencies()
        result.add("dependencies", Status.UPDATED, self.root, self.config.package_manager)

        status("building...")
        await self.build()
        result.add("build", Status.CREATED, self.root / self.config.dist)
        return result
