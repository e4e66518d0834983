"""
Unit Tests for LocalSandbox
Tests for: mounting, command execution, dependency install, dev server readiness
"""
import pytest

from solforge.core.exceptions import (
    CommandExecutionError,
    DependencyInstallError,
    MissingPackageJsonError,
    MountError,
)
from solforge.modules.forge.models import ParsedFile
from solforge.modules.forge.tree import build_mount_tree
from solforge.modules.sandbox.local_executor import LocalSandbox, fingerprint, flatten_mount_tree


@pytest.fixture
def sandbox(tmp_path) -> LocalSandbox:
    return LocalSandbox(tmp_path, command_timeout=30, ready_timeout=10)


class TestMount:

    @pytest.mark.asyncio
    async def test_writes_nested_files(self, sandbox, tmp_path):
        files = [
            ParsedFile.from_path("package.json", "{}"),
            ParsedFile.from_path("src/app/page.tsx", "export default function Page(){}"),
        ]

        assert await sandbox.mount(files) is True

        assert (tmp_path / "package.json").read_text() == "{}"
        assert (tmp_path / "src" / "app" / "page.tsx").exists()
        assert await sandbox.read_file("/src/app/page.tsx") == "export default function Page(){}"
        assert sandbox.mount_count == 1

    @pytest.mark.asyncio
    async def test_unchanged_set_is_not_remounted(self, sandbox):
        files = [ParsedFile.from_path("a.ts", "a")]

        assert await sandbox.mount(files) is True
        assert await sandbox.mount(list(reversed(files))) is False
        assert await sandbox.mount([ParsedFile.from_path("a.ts", "b")]) is True
        assert sandbox.mount_count == 2

    @pytest.mark.asyncio
    async def test_accepts_plain_records(self, sandbox, tmp_path):
        await sandbox.mount([{"path": "/lib/x.ts", "content": "x"}])

        assert (tmp_path / "lib" / "x.ts").read_text() == "x"

    @pytest.mark.asyncio
    async def test_accepts_mount_tree(self, sandbox, tmp_path):
        files = [ParsedFile.from_path("src/a.ts", "a"), ParsedFile.from_path("README.md", "r")]

        assert await sandbox.mount(build_mount_tree(files)) is True

        assert (tmp_path / "src" / "a.ts").read_text() == "a"
        assert (tmp_path / "README.md").read_text() == "r"
        # same set as flat records
        assert await sandbox.mount(files) is False

    @pytest.mark.asyncio
    async def test_path_outside_root_fails(self, sandbox):
        with pytest.raises(MountError) as exc_info:
            await sandbox.mount([{"path": "../evil.txt", "content": "x"}])

        assert exc_info.value.details["failed_paths"] == ["../evil.txt"]
        assert sandbox.mount_count == 0

    @pytest.mark.asyncio
    async def test_missing_file_reads_none(self, sandbox):
        assert await sandbox.read_file("nope.txt") is None

    def test_fingerprint_is_order_independent(self):
        assert fingerprint([("a", "1"), ("b", "2")]) == fingerprint([("b", "2"), ("a", "1")])
        assert fingerprint([("a", "1")]) != fingerprint([("a", "2")])


class TestCommands:

    @pytest.mark.asyncio
    async def test_run_command_streams_output(self, sandbox):
        events = []
        sandbox.on("output", lambda payload: events.append(("output", payload["line"])))
        sandbox.on("exit", lambda payload: events.append(("exit", payload["exit_code"])))

        result = await sandbox.run_command("echo hello")

        assert result.success
        assert result.output == "hello"
        assert events == [("output", "hello"), ("exit", 0)]

    @pytest.mark.asyncio
    async def test_async_listener_and_unsubscribe(self, sandbox):
        lines = []

        async def listener(payload):
            lines.append(payload["line"])

        unsubscribe = sandbox.on("output", listener)
        await sandbox.run_command("echo one")
        unsubscribe()
        await sandbox.run_command("echo two")

        assert lines == ["one"]

    def test_unknown_event(self, sandbox):
        with pytest.raises(ValueError):
            sandbox.on("progress", lambda payload: None)

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_command(self, sandbox):
        def broken(payload):
            raise RuntimeError("listener bug")

        sandbox.on("output", broken)

        result = await sandbox.run_command("echo fine")

        assert result.success

    @pytest.mark.asyncio
    async def test_run_commands_stops_at_first_failure(self, sandbox):
        with pytest.raises(CommandExecutionError) as exc_info:
            await sandbox.run_commands(["echo first", "exit 3", "echo never"])

        assert exc_info.value.exit_code == 3
        assert exc_info.value.command == "exit 3"

    @pytest.mark.asyncio
    async def test_run_commands_without_check(self, sandbox):
        results = await sandbox.run_commands(["echo first", "exit 3", "echo never"], check=False)

        assert [r.command for r in results] == ["echo first", "exit 3"]
        assert [r.success for r in results] == [True, False]

    @pytest.mark.asyncio
    async def test_timeout_kills_command(self, sandbox):
        result = await sandbox.run_command("exec sleep 5", timeout=1)

        assert result.exit_code is None
        assert not result.success


class TestInstall:

    @pytest.mark.asyncio
    async def test_missing_package_json(self, sandbox):
        with pytest.raises(MissingPackageJsonError) as exc_info:
            await sandbox.install_dependencies()

        assert exc_info.value.code == "NO_PACKAGE_JSON"

    @pytest.mark.asyncio
    async def test_install_failure(self, sandbox):
        await sandbox.mount([ParsedFile.from_path("package.json", "{}")])

        with pytest.raises(DependencyInstallError) as exc_info:
            await sandbox.install_dependencies("echo broken && exit 1")

        assert exc_info.value.code == "DEPENDENCY_INSTALL_FAILED"
        assert exc_info.value.message == "Dependency install failed"
        assert exc_info.value.exit_code == 1

    @pytest.mark.asyncio
    async def test_install_success(self, sandbox):
        await sandbox.mount([ParsedFile.from_path("package.json", "{}")])

        result = await sandbox.install_dependencies("echo installed")

        assert result.output == "installed"


class TestDevServer:

    @pytest.mark.asyncio
    async def test_ready_on_announced_url(self, sandbox):
        ready = []
        sandbox.on("server-ready", lambda payload: ready.append(payload))

        url = await sandbox.start_dev_server('echo "ready - started server on http://localhost:4321"; exec sleep 30')

        try:
            assert url == "http://localhost:4321"
            assert sandbox.server_url == url
            assert ready == [{"url": "http://localhost:4321", "port": 4321}]
        finally:
            await sandbox.stop_dev_server()

        assert sandbox.server_url is None

    @pytest.mark.asyncio
    async def test_exit_before_ready(self, sandbox):
        with pytest.raises(CommandExecutionError) as exc_info:
            await sandbox.start_dev_server("echo nope")

        assert exc_info.value.exit_code == 0
        assert "nope" in exc_info.value.output

    @pytest.mark.asyncio
    async def test_never_ready(self, tmp_path):
        sandbox = LocalSandbox(tmp_path, ready_timeout=1)

        with pytest.raises(CommandExecutionError) as exc_info:
            await sandbox.start_dev_server("exec sleep 30")

        assert exc_info.value.exit_code is None
        assert sandbox.server_url is None


class TestFlattenMountTree:

    def test_yields_full_paths(self):
        tree = build_mount_tree([
            ParsedFile.from_path("src/app/page.tsx", "p"),
            ParsedFile.from_path("package.json", "{}"),
        ])

        assert sorted(flatten_mount_tree(tree)) == [
            ("package.json", "{}"),
            ("src/app/page.tsx", "p"),
        ]

    def test_empty_tree(self):
        assert list(flatten_mount_tree({})) == []
