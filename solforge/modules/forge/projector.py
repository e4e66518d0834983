"""
Streaming Projector

Runs the parse pipeline against a buffer that grows chunk by chunk:

    buffer += chunk
    re-parse everything (boilerplate < existing turns < buffer)
    rebuild the tree
    resolve the focused file, including a directive that is still open

Nothing is patched incrementally. Each projection is a pure function of the
buffer plus the fixed layers, so re-running it after any chunk is always
safe; the only carried state is the focus and the last known content of each
path, used before the model has reached a file again.
"""

import time
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Set, Union

from solforge.core.logging_config import logger
from solforge.modules.forge.boilerplate import is_boilerplate_path
from solforge.modules.forge.interpreter import OpeningTag, closing_tag, iter_opening_tags
from solforge.modules.forge.models import (
    FocusedFile,
    FocusSource,
    ParsedResponse,
    StreamView,
)
from solforge.modules.forge.parser import ForgeResponseParser
from solforge.modules.forge.paths import detect_language, file_id, file_name, normalize_path
from solforge.modules.forge.scanner import find_envelope
from solforge.modules.forge.tree import build_file_tree


def trim_partial_closing_tag(content: str, tag: str) -> str:
    """
    Drop a closing tag cut off mid-stream at the end of content.

    'const a = 1;\\n</forgeAc' -> 'const a = 1;\\n'
    """
    closing = f"</{tag}>"
    cut = content.rfind("<")
    if cut == -1:
        return content
    tail = content[cut:]
    if len(tail) < len(closing) and closing.lower().startswith(tail.lower()):
        return content[:cut]
    return content


class StreamingProjector:
    """
    Live view over a growing model response.

    Usage:
        projector = StreamingProjector(boilerplate=load_boilerplate())
        projector.focus("src/app/page.tsx")
        for chunk in chunks:
            view = projector.feed(chunk)
            render(view.tree, view.focused)
        view = projector.finish()
    """

    def __init__(
        self,
        boilerplate: Optional[str] = None,
        existing: Union[str, Sequence[str], None] = None,
        parser: Optional[ForgeResponseParser] = None,
        boilerplate_patterns: Optional[Iterable[str]] = None,
    ):
        self.boilerplate = boilerplate
        self.existing = existing
        self.parser = parser or ForgeResponseParser()
        self.boilerplate_patterns = list(boilerplate_patterns) if boilerplate_patterns is not None else None

        self.buffer = ""
        self.is_streaming = True
        self.focused_path: Optional[str] = None
        self.chunks_received = 0
        self._known: Dict[str, str] = {}
        self._protected: Optional[Set[str]] = None
        self._view: Optional[StreamView] = None

    @property
    def view(self) -> Optional[StreamView]:
        """Most recent projection"""
        return self._view

    # ------------------------------------------------------------------
    # Buffer updates
    # ------------------------------------------------------------------

    def feed(self, chunk: str) -> StreamView:
        """Append a chunk and re-project"""
        self.buffer += chunk or ""
        self.chunks_received += 1
        return self._project()

    def update(self, buffer: str) -> StreamView:
        """Replace the whole buffer and re-project"""
        self.buffer = buffer or ""
        return self._project()

    def focus(self, path: Optional[str]) -> StreamView:
        """Select the file whose content is tracked, None for automatic"""
        self.focused_path = normalize_path(path) if path else None
        logger.debug(f"[Projector] Focus -> {self.focused_path or '(auto)'}")
        return self._project()

    def finish(self) -> StreamView:
        """Mark the stream complete and return the final view"""
        self.is_streaming = False
        view = self._project()
        logger.info(
            f"[Projector] Stream finished: {self.chunks_received} chunks, "
            f"{len(self.buffer)} chars, {len(view.response.files)} files"
        )
        return view

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def _parse(self) -> ParsedResponse:
        if self.boilerplate or self.existing:
            return self.parser.parse_response_with_existing_files(
                self.buffer, self.existing, self.boilerplate
            )
        return self.parser.parse_response(self.buffer, source="stream")

    def _project(self) -> StreamView:
        start_time = time.time()

        response = self._parse()
        for parsed_file in response.files:
            self._known[parsed_file.path] = parsed_file.content

        envelope = find_envelope(self.buffer, self.parser.artifact_tag)
        content = envelope.content if envelope else ""
        file_tags = [t for t in iter_opening_tags(content, self.parser.action_tag)
                     if t.type == "file" and t.file_path]

        if self.focused_path is None and response.files:
            self.focused_path = response.files[0].path

        view = StreamView(
            response=response,
            tree=build_file_tree(response.files, response.directories),
            focused=self._resolve_focus(response, content, file_tags),
            active_path=self._active_path(content, file_tags),
            is_streaming=self.is_streaming,
            buffer_length=len(self.buffer),
        )
        self._view = view

        logger.log_performance("projection", (time.time() - start_time) * 1000, threshold_ms=100)
        return view

    def _base_layer(self) -> Optional[str]:
        if self.boilerplate:
            return self.boilerplate
        turns = [self.existing] if isinstance(self.existing, str) else list(self.existing or [])
        return next((turn for turn in turns if turn), None)

    def _protected_paths(self) -> Set[str]:
        """Base-layer files the merge policy keeps, whatever the buffer says"""
        if self._protected is None:
            base = self._base_layer()
            policy = self.parser.policy
            if base is None or not policy.protected_patterns:
                self._protected = set()
            else:
                base_files = self.parser.parse_response(base, source="base").files
                self._protected = {f.path for f in base_files if policy.is_protected(f.path)}
        return self._protected

    def _closing_after(self, content: str, tag: OpeningTag):
        return closing_tag(self.parser.action_tag).search(content, tag.end)

    def _active_path(self, content: str, file_tags: List[OpeningTag]) -> Optional[str]:
        """File directive still open at the end of the buffer"""
        if not self.is_streaming or not file_tags:
            return None
        last = file_tags[-1]
        if self._closing_after(content, last) is None:
            return last.file_path
        return None

    def _focused(self, path: str, content: str, streaming: bool, source: FocusSource) -> FocusedFile:
        return FocusedFile(
            path=path,
            id=file_id(path),
            name=file_name(path),
            language=detect_language(path),
            content=content,
            is_streaming=streaming,
            source=source,
        )

    def _resolve_focus(
        self,
        response: ParsedResponse,
        content: str,
        file_tags: List[OpeningTag],
    ) -> Optional[FocusedFile]:
        path = self.focused_path
        if not path:
            return None

        merged = response.get_file(path)

        # Injected wholesale, never typed in
        if merged is not None and is_boilerplate_path(path, self.boilerplate_patterns):
            return self._focused(path, merged.content, False, FocusSource.BOILERPLATE)

        # Kept from the base layer by the merge policy
        if merged is not None and path in self._protected_paths():
            return self._focused(path, merged.content, False, FocusSource.KNOWN)

        tags = [t for t in file_tags if t.file_path == path]
        if tags:
            last = tags[-1]
            closing = self._closing_after(content, last)
            if closing is not None:
                body = content[last.end:closing.start()].strip()
                return self._focused(path, body, False, FocusSource.CLOSED)

            partial = trim_partial_closing_tag(content[last.end:], self.parser.action_tag)
            return self._focused(path, partial.strip(), self.is_streaming, FocusSource.PARTIAL)

        known = merged.content if merged is not None else self._known.get(path)
        if known is None:
            return None
        return self._focused(path, known, False, FocusSource.KNOWN)


async def project_stream(
    chunks: AsyncIterator[str],
    projector: Optional[StreamingProjector] = None,
) -> AsyncIterator[StreamView]:
    """
    Drive a projector from an async chunk source.

    Chunks are applied strictly in arrival order: the view for chunk N is
    yielded before chunk N+1 is read. A final view follows exhaustion.
    """
    projector = projector or StreamingProjector()
    async for chunk in chunks:
        yield projector.feed(chunk)
    yield projector.finish()
