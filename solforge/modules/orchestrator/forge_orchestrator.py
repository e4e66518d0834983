"""
Forge Orchestrator

The end-to-end generation flow:
1. Stream the model response from the chat backend
2. Project every chunk over the boilerplate and earlier turns
3. Mount the merged file set into the shared sandbox
4. Install dependencies and run the artifact's setup commands
5. Start the dev server and report its URL
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from solforge.core.logging_config import logger
from solforge.modules.forge.boilerplate import load_boilerplate
from solforge.modules.forge.models import ParsedResponse, StreamView
from solforge.modules.forge.parser import ForgeResponseParser, forge_parser
from solforge.modules.forge.projector import StreamingProjector, project_stream
from solforge.modules.forge.tree import build_mount_tree
from solforge.modules.sandbox.local_executor import DEV_COMMAND, CommandResult
from solforge.modules.sandbox.provider import SandboxProvider, get_sandbox_provider
from solforge.utils.chat_client import ForgeChatClient

ViewCallback = Callable[[StreamView], Any]
ProgressCallback = Callable[[int, str], Any]

# Covered by install_dependencies() and start_dev_server()
_INSTALL_PATTERN = re.compile(r'^\s*(?:npm|pnpm|yarn)\s+(?:install|i)\s*$', re.IGNORECASE)
_SERVER_PATTERN = re.compile(r'^\s*(?:npm|pnpm|yarn)\s+(?:run\s+)?(?:dev|start)\b', re.IGNORECASE)


def split_commands(commands: Iterable[str]) -> Tuple[List[str], Optional[str]]:
    """
    Separate the artifact's shell commands into setup commands and the
    long-running server command.

    A bare install is dropped (the sandbox installs before setup runs); the
    last server command wins.
    """
    setup: List[str] = []
    server: Optional[str] = None
    for command in commands:
        if _SERVER_PATTERN.match(command):
            server = command
        elif not _INSTALL_PATTERN.match(command):
            setup.append(command)
    return setup, server


@dataclass
class GenerationResult:
    project_id: str
    response: ParsedResponse
    chunks: int = 0
    mounted: bool = False
    command_results: List[CommandResult] = field(default_factory=list)
    server_url: Optional[str] = None


async def _notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if asyncio.iscoroutine(result):
        await result


class ForgeOrchestrator:
    """
    Chat stream -> projector -> sandbox.

    boilerplate=None loads the packaged bundle; pass "" to build without one.
    """

    def __init__(
        self,
        chat_client: ForgeChatClient,
        provider: Optional[SandboxProvider] = None,
        parser: Optional[ForgeResponseParser] = None,
        boilerplate: Optional[str] = None,
    ):
        self.chat_client = chat_client
        self.provider = provider or get_sandbox_provider()
        self.parser = parser or forge_parser
        self.boilerplate = boilerplate

    async def stream(
        self,
        prompt: str,
        project_id: str,
        existing: Union[str, Sequence[str], None] = None,
        focus: Optional[str] = None,
        on_view: Optional[ViewCallback] = None,
    ) -> Tuple[StreamView, int]:
        """Project the chat stream chunk by chunk; returns the final view and chunk count"""
        boilerplate = load_boilerplate() if self.boilerplate is None else self.boilerplate
        projector = StreamingProjector(boilerplate=boilerplate or None, existing=existing, parser=self.parser)
        if focus:
            projector.focus(focus)

        view: Optional[StreamView] = None
        async for view in project_stream(self.chat_client.stream_chat(prompt, project_id), projector):
            await _notify(on_view, view)

        # project_stream always ends with the finished view
        return view, projector.chunks_received

    async def run_in_sandbox(
        self,
        response: ParsedResponse,
        start_server: bool = True,
    ) -> Tuple[bool, List[CommandResult], Optional[str]]:
        """
        Mount, install, run setup commands and optionally start the server.

        Raises:
            SandboxError: boot, mount, install or a setup command failed
        """
        commands = response.artifact.shell_commands if response.artifact else []
        setup, server_command = split_commands(commands)
        has_package_json = response.get_file("package.json") is not None

        sandbox = await self.provider.acquire()
        try:
            mounted = await sandbox.mount(build_mount_tree(response.files))

            results: List[CommandResult] = []
            if has_package_json:
                results.append(await sandbox.install_dependencies())
            results.extend(await sandbox.run_commands(setup))

            url = None
            if start_server and has_package_json:
                url = await sandbox.start_dev_server(server_command or DEV_COMMAND)
        finally:
            await self.provider.release()

        return mounted, results, url

    async def generate(
        self,
        prompt: str,
        project_id: str,
        existing: Union[str, Sequence[str], None] = None,
        focus: Optional[str] = None,
        run_sandbox: bool = True,
        start_server: bool = True,
        on_view: Optional[ViewCallback] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> GenerationResult:
        """
        Full generation for one prompt.

        Args:
            prompt: User request sent to the chat backend
            project_id: Project the turn belongs to
            existing: Earlier turns, oldest first
            focus: File to follow while streaming (default: first file)
            run_sandbox: Mount and run the result after the stream ends
            start_server: Start the dev server once setup succeeds
            on_view: Called with every StreamView
            progress_callback: Called with (percent, message)
        """
        logger.info(f"[Orchestrator] Generating project {project_id}")

        await _notify(progress_callback, 5, "Streaming response...")
        view, chunks = await self.stream(prompt, project_id, existing, focus, on_view)
        response = view.response
        result = GenerationResult(project_id=project_id, response=response, chunks=chunks)

        await _notify(progress_callback, 60, f"Parsed {len(response.files)} files")
        logger.info(
            f"[Orchestrator] Stream done: {chunks} chunks, {len(response.files)} files, "
            f"{len(response.directories)} directories"
        )

        if not run_sandbox:
            await _notify(progress_callback, 100, "Done")
            return result

        await _notify(progress_callback, 70, "Mounting files...")
        result.mounted, result.command_results, result.server_url = await self.run_in_sandbox(
            response, start_server=start_server
        )

        await _notify(progress_callback, 100, f"Preview at {result.server_url}" if result.server_url else "Done")
        logger.info(f"[Orchestrator] Project {project_id} ready (server={result.server_url})")
        return result
