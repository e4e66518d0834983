"""
Forge Response Parser

Turns raw model output into a ParsedResponse. Every call re-parses its
input from scratch; the only state combined across inputs is the merge of
boilerplate, prior turns and the current turn.

Usage:
    from solforge.modules.forge import forge_parser

    result = forge_parser.parse_response(text)
    result = forge_parser.parse_response_with_boilerplate(text, boilerplate)
    result = forge_parser.parse_response_with_existing_files(text, [turn1, turn2], boilerplate)
"""

import time
from collections import OrderedDict
from typing import Optional, Sequence, Union

from solforge.core.config import settings
from solforge.core.logging_config import logger
from solforge.modules.forge.interpreter import interpret_actions
from solforge.modules.forge.merge import MergePolicy, merge_responses
from solforge.modules.forge.models import (
    Artifact,
    DirectoryAction,
    FileAction,
    ParsedDirectory,
    ParsedFile,
    ParsedResponse,
    ShellAction,
)
from solforge.modules.forge.paths import ancestor_directories
from solforge.modules.forge.scanner import (
    extract_code_blocks,
    find_envelope,
    read_envelope_metadata,
    strip_code_blocks,
    strip_envelope,
)
from solforge.modules.forge.steps import build_steps

ExistingTurns = Union[str, Sequence[str], None]


class ForgeResponseParser:
    """
    Parser for forgeArtifact / forgeAction model output.

    Stateless apart from its configuration, so one instance can be shared
    across requests and streams.
    """

    def __init__(
        self,
        artifact_tag: Optional[str] = None,
        action_tag: Optional[str] = None,
        policy: Optional[MergePolicy] = None,
    ):
        self.artifact_tag = artifact_tag or settings.ARTIFACT_TAG
        self.action_tag = action_tag or settings.ACTION_TAG
        self.policy = policy or MergePolicy.from_settings()

    # ------------------------------------------------------------------
    # Single pass
    # ------------------------------------------------------------------

    def parse_response(self, text: str, source: str = "response") -> ParsedResponse:
        """
        Parse one source with no merge.

        Never raises for malformed input: no envelope gives an empty
        response carrying the narrative text, unrecognised directives are
        skipped, a repeated path keeps its first slot with the last body.
        """
        start_time = time.time()
        text = text or ""

        envelope = find_envelope(text, self.artifact_tag)
        narrative = strip_envelope(text, envelope)
        result = ParsedResponse(
            text=strip_code_blocks(narrative).strip(),
            code_blocks=extract_code_blocks(narrative),
        )

        if envelope is None:
            logger.log_parse_event(source, 0, 0, 0, has_artifact=False)
            return result

        artifact_id, title = read_envelope_metadata(envelope)
        actions = interpret_actions(envelope.content, self.action_tag)

        files: "OrderedDict[str, ParsedFile]" = OrderedDict()
        directories: "OrderedDict[str, ParsedDirectory]" = OrderedDict()
        commands = []

        def add_directory(path: str) -> None:
            directories[path] = ParsedDirectory.from_path(path)

        for action in actions:
            if isinstance(action, FileAction):
                for ancestor in ancestor_directories(action.path):
                    add_directory(ancestor)
                files[action.path] = ParsedFile.from_path(action.path, action.content)
            elif isinstance(action, DirectoryAction):
                for ancestor in ancestor_directories(action.path):
                    add_directory(ancestor)
                add_directory(action.path)
            elif isinstance(action, ShellAction):
                commands.append(action.command)

        result.files = list(files.values())
        result.directories = list(directories.values())
        result.artifact = Artifact(id=artifact_id, title=title, shell_commands=commands)
        result.steps = build_steps(artifact_id, title, actions)

        logger.log_parse_event(
            source,
            len(result.files),
            len(result.directories),
            len(commands),
            has_artifact=True,
            closed=envelope.closed,
            encoded=envelope.encoded,
        )
        logger.log_performance(f"parse:{source}", (time.time() - start_time) * 1000)
        return result

    # ------------------------------------------------------------------
    # Multi-source
    # ------------------------------------------------------------------

    def parse_response_with_boilerplate(self, text: str, boilerplate: str) -> ParsedResponse:
        """Boilerplate is the base layer, the current turn overlays it"""
        layers = [
            self.parse_response(boilerplate, source="boilerplate"),
            self.parse_response(text, source="current"),
        ]
        return merge_responses(layers, self.policy)

    def parse_response_with_existing_files(
        self,
        text: str,
        existing: ExistingTurns,
        boilerplate: Optional[str] = None,
    ) -> ParsedResponse:
        """
        Boilerplate (optional) < prior turns (oldest first) < current turn.

        existing may be one concatenated string or one string per turn.
        """
        if isinstance(existing, str):
            existing = [existing]

        layers = []
        if boilerplate:
            layers.append(self.parse_response(boilerplate, source="boilerplate"))
        for index, turn in enumerate(existing or []):
            if turn:
                layers.append(self.parse_response(turn, source=f"existing[{index}]"))
        layers.append(self.parse_response(text, source="current"))

        if len(layers) == 1:
            return layers[0]
        return merge_responses(layers, self.policy)


forge_parser = ForgeResponseParser()
