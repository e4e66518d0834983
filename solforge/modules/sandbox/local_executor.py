"""
Local Sandbox - directory-backed executor

Consumes the parser's flat {path, content} list, writes it under a root
directory and runs the artifact's shell commands there. Process output and
readiness are reported through listeners:

    output        {"line": str, "command": str}
    exit          {"command": str, "exit_code": Optional[int]}
    server-ready  {"url": str, "port": Optional[int]}
"""

import asyncio
import hashlib
import re
import tempfile
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import aiofiles

from solforge.core.config import settings
from solforge.core.exceptions import (
    CommandExecutionError,
    DependencyInstallError,
    MissingPackageJsonError,
    MountError,
)
from solforge.core.logging_config import logger
from solforge.modules.forge.models import ParsedFile
from solforge.modules.forge.paths import normalize_path

SandboxListener = Callable[[Dict[str, Any]], Any]
MountRecord = Union[ParsedFile, Dict[str, str]]

SANDBOX_EVENTS = ("output", "exit", "server-ready")

INSTALL_COMMAND = "npm install"
DEV_COMMAND = "npm run dev"

# Next.js / Vite / CRA all print the local URL once listening
_SERVER_URL_PATTERN = re.compile(
    r'(https?://(?:localhost|127\.0\.0\.1|0\.0\.0\.0|\[::\])(?::(\d+))?)[^\s]*',
    re.IGNORECASE
)


@dataclass
class CommandResult:
    command: str
    exit_code: Optional[int]
    output: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def _as_record(item: MountRecord) -> Tuple[str, str]:
    if isinstance(item, ParsedFile):
        return item.path, item.content
    return normalize_path(item.get("path", "")), item.get("content", "")


def flatten_mount_tree(tree: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, str]]:
    """(path, content) pairs from a build_mount_tree() structure"""
    for name, entry in tree.items():
        path = f"{prefix}/{name}" if prefix else name
        if "directory" in entry:
            yield from flatten_mount_tree(entry["directory"], path)
        elif "file" in entry:
            yield path, entry["file"].get("contents", "")


def fingerprint(records: Iterable[Tuple[str, str]]) -> str:
    """Order-independent digest of a mount set"""
    digest = hashlib.sha256()
    for path, content in sorted(records):
        digest.update(path.encode("utf-8"))
        digest.update(b"\0")
        digest.update(content.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


class LocalSandbox:
    """Sandbox executor backed by a local directory"""

    def __init__(
        self,
        root: Union[str, Path],
        command_timeout: Optional[int] = None,
        ready_timeout: Optional[int] = None,
    ):
        self.root = Path(root)
        self.command_timeout = command_timeout or settings.SANDBOX_COMMAND_TIMEOUT
        self.ready_timeout = ready_timeout or settings.DEV_SERVER_READY_TIMEOUT
        self._listeners: Dict[str, List[SandboxListener]] = defaultdict(list)
        self._fingerprint: Optional[str] = None
        self.mount_count = 0
        self.server_url: Optional[str] = None
        self._server_process: Optional[asyncio.subprocess.Process] = None
        self._server_task: Optional[asyncio.Task] = None

    @classmethod
    async def create(cls, root: Optional[Union[str, Path]] = None) -> "LocalSandbox":
        """Factory used by the provider: SANDBOX_ROOT or a fresh temp dir"""
        if root is None:
            root = settings.SANDBOX_DIR or Path(tempfile.mkdtemp(prefix="solforge-"))
        root = Path(root)
        root.mkdir(parents=True, exist_ok=True)
        logger.info(f"[LocalSandbox] Root: {root}")
        return cls(root)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, listener: SandboxListener) -> Callable[[], None]:
        """Register a listener, returns an unsubscribe callable"""
        if event not in SANDBOX_EVENTS:
            raise ValueError(f"Unknown sandbox event: {event}")
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    async def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners[event]):
            try:
                result = listener(payload)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"[LocalSandbox] Listener error for {event}: {e}")

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"Path escapes sandbox root: {path}")
        return target

    async def mount(self, files: Union[Iterable[MountRecord], Dict[str, Any]]) -> bool:
        """
        Write the file set under the root: ParsedFile or {path, content}
        records, or a build_mount_tree() structure.

        Returns False when the set is identical to the last mount (nothing
        is written), True otherwise.

        Raises:
            MountError: one or more files could not be written
        """
        if isinstance(files, dict):
            records = list(flatten_mount_tree(files))
        else:
            records = [r for r in (_as_record(item) for item in files) if r[0]]
        current = fingerprint(records)
        if current == self._fingerprint:
            logger.debug(f"[LocalSandbox] Mount skipped, {len(records)} files unchanged")
            return False

        failed: List[str] = []
        for path, content in records:
            try:
                target = self._resolve(path)
                target.parent.mkdir(parents=True, exist_ok=True)
                async with aiofiles.open(target, "w", encoding="utf-8") as f:
                    await f.write(content)
            except (OSError, ValueError) as e:
                logger.warning(f"[LocalSandbox] Failed to write {path}: {e}")
                failed.append(path)

        if failed:
            self._fingerprint = None
            logger.log_sandbox_event("mount", success=False, failed=len(failed))
            raise MountError(failed)

        self._fingerprint = current
        self.mount_count += 1
        logger.log_sandbox_event("mount", success=True, files=len(records))
        return True

    async def read_file(self, path: str) -> Optional[str]:
        target = self._resolve(normalize_path(path))
        if not target.exists():
            return None
        async with aiofiles.open(target, "r", encoding="utf-8") as f:
            return await f.read()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _pump_output(self, process: asyncio.subprocess.Process, command: str,
                           lines: List[str]) -> None:
        while process.stdout is not None:
            line = await process.stdout.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="ignore").rstrip("\r\n")
            lines.append(text)
            await self._emit("output", {"line": text, "command": command})

    async def run_command(self, command: str, timeout: Optional[int] = None) -> CommandResult:
        """Run one shell command in the root, streaming its output"""
        logger.info(f"[LocalSandbox] $ {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=str(self.root),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT
        )

        lines: List[str] = []
        exit_code: Optional[int]
        try:
            await asyncio.wait_for(self._pump_output(process, command, lines),
                                   timeout=timeout or self.command_timeout)
            exit_code = await process.wait()
        except asyncio.TimeoutError:
            logger.warning(f"[LocalSandbox] Timed out: {command}")
            process.kill()
            await process.wait()
            exit_code = None

        await self._emit("exit", {"command": command, "exit_code": exit_code})
        logger.log_sandbox_event("command", success=exit_code == 0, command=command, exit_code=exit_code)
        return CommandResult(command=command, exit_code=exit_code, output="\n".join(lines))

    async def run_commands(self, commands: Iterable[str], check: bool = True) -> List[CommandResult]:
        """
        Run commands in declared order, stopping at the first failure.

        Raises:
            CommandExecutionError: a command failed and check is set
        """
        results: List[CommandResult] = []
        for command in commands:
            result = await self.run_command(command)
            results.append(result)
            if not result.success:
                if check:
                    raise CommandExecutionError(command, result.exit_code, result.output)
                break
        return results

    async def install_dependencies(self, command: str = INSTALL_COMMAND) -> CommandResult:
        """
        Raises:
            MissingPackageJsonError: nothing to install from
            DependencyInstallError: the install command failed
        """
        if not (self.root / "package.json").exists():
            raise MissingPackageJsonError(str(self.root))

        result = await self.run_command(command)
        if not result.success:
            raise DependencyInstallError(command, result.exit_code, result.output)
        return result

    # ------------------------------------------------------------------
    # Dev server
    # ------------------------------------------------------------------

    async def _watch_server(self, process: asyncio.subprocess.Process, command: str,
                            ready: asyncio.Future, lines: List[str]) -> None:
        while process.stdout is not None:
            line = await process.stdout.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="ignore").rstrip("\r\n")
            lines.append(text)
            await self._emit("output", {"line": text, "command": command})

            if not ready.done():
                match = _SERVER_URL_PATTERN.search(text)
                if match:
                    url = match.group(1)
                    port = int(match.group(2)) if match.group(2) else None
                    self.server_url = url
                    ready.set_result(url)
                    await self._emit("server-ready", {"url": url, "port": port})

        exit_code = await process.wait()
        await self._emit("exit", {"command": command, "exit_code": exit_code})
        if not ready.done():
            ready.set_exception(CommandExecutionError(command, exit_code, "\n".join(lines)))

    async def start_dev_server(self, command: str = DEV_COMMAND) -> str:
        """
        Start a long-running server and wait until it announces its URL.

        Raises:
            CommandExecutionError: the server exited or never became ready
        """
        await self.stop_dev_server()

        logger.info(f"[LocalSandbox] Starting dev server: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=str(self.root),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT
        )
        ready: asyncio.Future = asyncio.get_running_loop().create_future()
        lines: List[str] = []

        self._server_process = process
        self._server_task = asyncio.create_task(self._watch_server(process, command, ready, lines))

        try:
            url = await asyncio.wait_for(asyncio.shield(ready), timeout=self.ready_timeout)
        except asyncio.TimeoutError:
            await self.stop_dev_server()
            logger.log_sandbox_event("server-ready", success=False, command=command)
            raise CommandExecutionError(command, None, "\n".join(lines))
        except CommandExecutionError:
            self._server_process = None
            self._server_task = None
            logger.log_sandbox_event("server-ready", success=False, command=command)
            raise

        logger.log_sandbox_event("server-ready", success=True, url=url)
        return url

    async def stop_dev_server(self) -> None:
        process, self._server_process = self._server_process, None
        task, self._server_task = self._server_task, None
        self.server_url = None

        if process is not None and process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def close(self) -> None:
        await self.stop_dev_server()
        logger.log_sandbox_event("close", success=True)
