"""Unit tests for external tool orchestration (butter.runner).

Subprocesses are never started: ``run_command`` and
``run_command_streaming`` are patched where ``butter.runner`` imports them.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from butter.archive import ArchiveError
from butter.config import Config
from butter.results import Status
from butter.runner import TaskRunner
from butter.utils import ConfigError, RunnerError

pytestmark = pytest.mark.unit


@pytest.fixture
def runner(project_root: Path) -> TaskRunner:
    return TaskRunner(Config(install="https://downloads.test/butter.zip"), project_root)


def _ok(stdout: str = "done") -> AsyncMock:
    return AsyncMock(return_value=(0, stdout, ""))


# ---------------------------------------------------------------------------
# build / install_dependencies
# ---------------------------------------------------------------------------


class TestBuild:
    async def test_runs_configured_runner(self, runner: TaskRunner):
        with patch("butter.runner.run_command", _ok("built")) as mock_run:
            output = await runner.build()
        assert output == "built"
        mock_run.assert_awaited_once_with(["gulp"], cwd=runner.root)

    async def test_custom_runner(self, project_root: Path):
        runner = TaskRunner(Config(runner="grunt"), project_root)
        with patch("butter.runner.run_command", _ok()) as mock_run:
            await runner.build()
        assert mock_run.await_args.args[0] == ["grunt"]

    async def test_failure_raises(self, runner: TaskRunner):
        failing = AsyncMock(return_value=(2, "", "gulp: command not found"))
        with patch("butter.runner.run_command", failing):
            with pytest.raises(RunnerError, match="command not found") as exc_info:
                await runner.build()
        assert exc_info.value.command == "gulp"
        assert exc_info.value.stderr == "gulp: command not found"

    async def test_install_dependencies(self, runner: TaskRunner):
        with patch("butter.runner.run_command", _ok()) as mock_run:
            await runner.install_dependencies()
        assert mock_run.await_args.args[0] == ["npm", "install"]


# ---------------------------------------------------------------------------
# launch
# ---------------------------------------------------------------------------


class TestLaunch:
    async def test_forwards_lines(self, runner: TaskRunner):
        seen_cmd: list[list[str]] = []

        async def fake_stream(cmd, cwd=None, env=None):
            seen_cmd.append(cmd)
            for line in ("starting", "listening"):
                yield line

        lines: list[str] = []
        with patch("butter.runner.run_command_streaming", fake_stream):
            await runner.launch(on_line=lines.append)

        assert lines == ["starting", "listening"]
        assert seen_cmd == [["gulp", "--dev"]]

    async def test_port(self, runner: TaskRunner):
        seen_cmd: list[list[str]] = []

        async def fake_stream(cmd, cwd=None, env=None):
            seen_cmd.append(cmd)
            return
            yield

        with patch("butter.runner.run_command_streaming", fake_stream):
            await runner.launch(port=4000)

        assert seen_cmd == [["gulp", "--dev", "--port", "4000"]]

    async def test_failing_runner_raises(self, runner: TaskRunner):
        async def fake_stream(cmd, cwd=None, env=None):
            yield "Local gulp not found"
            raise RunnerError("`gulp --dev` exited with status 1", command="gulp --dev")

        lines: list[str] = []
        with patch("butter.runner.run_command_streaming", fake_stream):
            with pytest.raises(RunnerError, match="status 1"):
                await runner.launch(on_line=lines.append)

        assert lines == ["Local gulp not found"]


# ---------------------------------------------------------------------------
# eject
# ---------------------------------------------------------------------------


def _make_dist(root: Path) -> Path:
    assets = root / "dist" / "assets"
    (assets / "toolkit" / "styles").mkdir(parents=True)
    (assets / "toolkit" / "styles" / "toolkit.css").write_text("css")
    (assets / "toolkit" / "images" / "fpo").mkdir(parents=True)
    (assets / "toolkit" / "images" / "fpo" / "placeholder.png").write_bytes(b"png")
    (assets / "toolkit" / "images" / "logo.png").write_bytes(b"logo")
    (assets / "fabricator").mkdir()
    (assets / "fabricator" / "f.js").write_text("f")
    return assets


class TestEject:
    async def test_copies_and_prunes(self, runner: TaskRunner, project_root: Path, tmp_path: Path):
        _make_dist(project_root)
        target = tmp_path / "static"

        with patch("butter.runner.run_command", _ok()) as mock_run:
            result = await runner.eject(target)

        mock_run.assert_awaited_once()
        assert (target / "toolkit" / "styles" / "toolkit.css").read_text() == "css"
        assert (target / "toolkit" / "images" / "logo.png").is_file()
        assert not (target / "fabricator").exists()
        assert not (target / "toolkit" / "images" / "fpo").exists()
        assert result.status_of("assets") is Status.CREATED
        assert [step.status for step in result.steps if step.step == "prune"] == [
            Status.REMOVED,
            Status.REMOVED,
        ]

    async def test_into_existing_directory(self, runner: TaskRunner, project_root: Path, tmp_path: Path):
        _make_dist(project_root)
        target = tmp_path / "static"
        target.mkdir()
        (target / "existing.txt").write_text("keep")

        with patch("butter.runner.run_command", _ok()):
            await runner.eject(target)

        assert (target / "existing.txt").read_text() == "keep"
        assert (target / "toolkit" / "styles" / "toolkit.css").is_file()

    async def test_missing_build_output(self, runner: TaskRunner, tmp_path: Path):
        with patch("butter.runner.run_command", _ok()):
            with pytest.raises(RunnerError, match="does not exist"):
                await runner.eject(tmp_path / "static")
        assert not (tmp_path / "static").exists()

    async def test_failed_build_copies_nothing(self, runner: TaskRunner, project_root: Path, tmp_path: Path):
        _make_dist(project_root)
        with patch("butter.runner.run_command", AsyncMock(return_value=(1, "", "boom"))):
            with pytest.raises(RunnerError):
                await runner.eject(tmp_path / "static")
        assert not (tmp_path / "static").exists()


# ---------------------------------------------------------------------------
# install
# ---------------------------------------------------------------------------


class TestInstall:
    @pytest.fixture
    def project_transport(self, tmp_path: Path, zip_builder) -> httpx.MockTransport:
        archive = zip_builder(
            tmp_path / "butter.zip",
            {"package.json": "{}", "src/views/index.html": "<h1>hi</h1>", "gulpfile.js": ""},
            wrapper="butter-master",
        )
        payload = archive.read_bytes()
        return httpx.MockTransport(lambda request: httpx.Response(200, content=payload))

    async def test_unpacks_installs_and_builds(
        self, runner: TaskRunner, project_root: Path, project_transport: httpx.MockTransport
    ):
        messages: list[str] = []
        with patch("butter.runner.run_command", _ok()) as mock_run:
            result = await runner.install(on_status=messages.append, transport=project_transport)

        assert (project_root / "src" / "views" / "index.html").is_file()
        assert (project_root / "gulpfile.js").is_file()
        assert not (project_root / "tmp").exists()
        assert not (project_root / ".htpasswd").exists()
        assert [call.args[0] for call in mock_run.await_args_list] == [["npm", "install"], ["gulp"]]
        assert messages[0].startswith("downloading")
        assert messages[-1] == "building..."
        assert result.status_of("build") is Status.CREATED

    async def test_writes_credentials(
        self, runner: TaskRunner, project_root: Path, project_transport: httpx.MockTransport
    ):
        with patch("butter.runner.run_command", _ok()):
            result = await runner.install("admin", "s3cret", transport=project_transport)

        assert (project_root / ".htpasswd").read_text(encoding="utf-8") == "admin:s3cret"
        assert result.status_of("credentials") is Status.CREATED

    async def test_username_without_password_skips_credentials(
        self, runner: TaskRunner, project_root: Path, project_transport: httpx.MockTransport
    ):
        with patch("butter.runner.run_command", _ok()):
            await runner.install("admin", None, transport=project_transport)
        assert not (project_root / ".htpasswd").exists()

    async def test_requires_install_url(self, project_root: Path):
        runner = TaskRunner(Config(), project_root)
        with pytest.raises(ConfigError, match="install"):
            await runner.install()
        assert list(project_root.iterdir()) == []

    async def test_download_failure(self, runner: TaskRunner, project_root: Path):
        transport = httpx.MockTransport(lambda request: httpx.Response(403))
        with patch("butter.runner.run_command", _ok()) as mock_run:
            with pytest.raises(ArchiveError):
                await runner.install(transport=transport)
        mock_run.assert_not_awaited()
        assert not (project_root / "tmp").exists()
