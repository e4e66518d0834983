#!/usr/bin/env python3
"""
SolForge CLI - parser debugging

Usage:
    solforge parse response.txt                     # Tree, commands, artifact
    solforge parse response.txt --boilerplate       # Merged over the boilerplate
    solforge parse turn2.txt --existing turn1.txt   # Merged over earlier turns
    solforge parse response.txt --json              # Raw ParsedResponse
    solforge replay response.txt --chunk-size 40    # Live streaming replay
    solforge generate "token swap UI" --no-server   # Stream, mount and set up
"""

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path
from typing import AsyncIterator, List, Optional

from rich.console import Console
from rich.live import Live

from solforge.core.exceptions import SolforgeError
from solforge.modules.forge import (
    StreamingProjector,
    build_file_tree,
    forge_parser,
    load_boilerplate,
    project_stream,
)
from solforge.modules.orchestrator import ForgeOrchestrator
from solforge.modules.sandbox.provider import SandboxProvider
from solforge.utils.chat_client import ForgeChatClient
from solforge.cli.renderer import ParseRenderer


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="solforge",
        description="SolForge - inspect how model output parses into a project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    parse_parser = subparsers.add_parser("parse", help="Parse a saved model response")
    parse_parser.add_argument("file", help="File containing the raw response")
    parse_parser.add_argument("--boilerplate", "-b", action="store_true",
                              help="Merge on top of the boilerplate bundle")
    parse_parser.add_argument("--existing", "-e", nargs="*", default=[],
                              help="Earlier turns, oldest first")
    parse_parser.add_argument("--json", action="store_true", dest="as_json",
                              help="Print the parse result as JSON")

    replay_parser = subparsers.add_parser("replay", help="Replay a response chunk by chunk")
    replay_parser.add_argument("file", help="File containing the raw response")
    replay_parser.add_argument("--chunk-size", "-c", type=int, default=64,
                               help="Characters per chunk (default: 64)")
    replay_parser.add_argument("--delay", "-d", type=float, default=0.02,
                               help="Seconds between chunks (default: 0.02)")
    replay_parser.add_argument("--focus", "-f", default=None,
                               help="File to follow (default: first file)")
    replay_parser.add_argument("--boilerplate", "-b", action="store_true",
                               help="Merge on top of the boilerplate bundle")

    generate_parser = subparsers.add_parser("generate", help="Stream a generation and run it in the sandbox")
    generate_parser.add_argument("prompt", help="What to build")
    generate_parser.add_argument("--project-id", "-p", default=None,
                                 help="Project id (default: random)")
    generate_parser.add_argument("--existing", "-e", nargs="*", default=[],
                                 help="Earlier turns, oldest first")
    generate_parser.add_argument("--focus", "-f", default=None,
                                 help="File to follow (default: first file)")
    generate_parser.add_argument("--api-url", default=None,
                                 help="Chat backend base URL (default: CHAT_API_BASE_URL)")
    generate_parser.add_argument("--no-run", action="store_true",
                                 help="Only stream and parse, do not touch the sandbox")
    generate_parser.add_argument("--no-server", action="store_true",
                                 help="Mount and run setup commands without starting the dev server")

    return parser


def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def run_parse(args: argparse.Namespace, console: Console) -> int:
    text = _read(args.file)
    existing: List[str] = [_read(p) for p in args.existing]
    boilerplate = load_boilerplate() if args.boilerplate else None

    if boilerplate or existing:
        result = forge_parser.parse_response_with_existing_files(text, existing, boilerplate)
    else:
        result = forge_parser.parse_response(text)

    if args.as_json:
        console.print_json(json.dumps(result.to_dict()))
        return 0

    ParseRenderer(console).render_response(result, build_file_tree(result.files, result.directories))
    return 0


async def _chunks(text: str, size: int, delay: float) -> AsyncIterator[str]:
    for start in range(0, len(text), size):
        yield text[start:start + size]
        if delay:
            await asyncio.sleep(delay)


async def run_replay(args: argparse.Namespace, console: Console) -> int:
    text = _read(args.file)
    projector = StreamingProjector(
        boilerplate=load_boilerplate() if args.boilerplate else None,
        parser=forge_parser,
    )
    if args.focus:
        projector.focus(args.focus)

    renderer = ParseRenderer(console)
    with Live(console=console, refresh_per_second=10) as live:
        async for view in project_stream(_chunks(text, max(1, args.chunk_size), args.delay), projector):
            live.update(renderer.stream_view(view))

    console.print(f"\n[green]✓ Replayed {projector.chunks_received} chunks[/green]")
    return 0


async def run_generate(
    args: argparse.Namespace,
    console: Console,
    chat_client: Optional[ForgeChatClient] = None,
    provider: Optional[SandboxProvider] = None,
) -> int:
    existing: List[str] = [_read(p) for p in args.existing]
    project_id = args.project_id or uuid.uuid4().hex[:12]
    client = chat_client or ForgeChatClient(base_url=args.api_url)

    renderer = ParseRenderer(console)
    try:
        orchestrator = ForgeOrchestrator(client, provider=provider, parser=forge_parser)
        with Live(console=console, refresh_per_second=10) as live:
            result = await orchestrator.generate(
                args.prompt,
                project_id,
                existing=existing,
                focus=args.focus,
                run_sandbox=not args.no_run,
                start_server=not args.no_server,
                on_view=lambda view: live.update(renderer.stream_view(view)),
            )
    finally:
        if chat_client is None:
            await client.close()

    console.print(f"\n[green]✓ {len(result.response.files)} files from {result.chunks} chunks[/green]")
    for command_result in result.command_results:
        console.print(f"  [dim]$ {command_result.command} -> {command_result.exit_code}[/dim]")
    if result.server_url:
        console.print(f"[bold green]Preview:[/bold green] {result.server_url}  [dim](Ctrl+C to stop)[/dim]")
        try:
            await asyncio.Event().wait()
        finally:
            await orchestrator.provider.reset()
    return 0


def main():
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()
    console = Console()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "parse":
            code = run_parse(args, console)
        elif args.command == "replay":
            code = asyncio.run(run_replay(args, console))
        else:
            code = asyncio.run(run_generate(args, console))
    except FileNotFoundError as e:
        console.print(f"\n[red]✗ File not found: {e.filename}[/red]")
        sys.exit(1)
    except SolforgeError as e:
        console.print(f"\n[red]✗ {e.message}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)

    sys.exit(code)


if __name__ == "__main__":
    main()
