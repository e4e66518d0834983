"""
Merge Engine

Combines parse passes layered lowest precedence first (boilerplate, prior
turns oldest first, current turn). The latest write for a path wins, for
files and directories alike; a replaced entry keeps its original slot so
the tree does not reshuffle while a later turn rewrites a file.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from solforge.core.config import settings
from solforge.core.logging_config import logger
from solforge.modules.forge.boilerplate import PathPatternSet
from solforge.modules.forge.models import (
    Artifact,
    CodeBlock,
    ParsedDirectory,
    ParsedFile,
    ParsedResponse,
)
from solforge.modules.forge.paths import ancestor_directories
from solforge.modules.forge.steps import renumber_steps


@dataclass
class MergePolicy:
    """
    Files that later layers may not overwrite.

    A protected path keeps the version from the base (first) layer, if the
    base layer has one. Empty by default: the latest write always wins.
    """
    protected_patterns: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._matcher = PathPatternSet(self.protected_patterns)

    @classmethod
    def from_settings(cls) -> "MergePolicy":
        return cls(protected_patterns=settings.PROTECTED_PATH_PATTERNS)

    def is_protected(self, path: str) -> bool:
        return bool(self._matcher) and self._matcher.matches(path)


def _ensure_ancestors(
    files: Iterable[ParsedFile],
    directories: "OrderedDict[str, ParsedDirectory]",
) -> None:
    for parsed_file in files:
        for ancestor in ancestor_directories(parsed_file.path):
            if ancestor not in directories:
                directories[ancestor] = ParsedDirectory.from_path(ancestor)


def _merge_artifacts(layers: Sequence[ParsedResponse]) -> Optional[Artifact]:
    with_artifact = [layer.artifact for layer in layers if layer.artifact is not None]
    if not with_artifact:
        return None

    commands: List[str] = []
    for artifact in with_artifact:
        commands.extend(artifact.shell_commands)

    # Most specific source with metadata wins
    latest = with_artifact[-1]
    return Artifact(id=latest.id, title=latest.title, shell_commands=commands)


def merge_responses(
    layers: Sequence[ParsedResponse],
    policy: Optional[MergePolicy] = None,
) -> ParsedResponse:
    """
    Overlay parse passes, lowest precedence first.

    Result guarantees: no duplicate file or directory paths, and every
    ancestor of every file present as a directory.
    """
    if not layers:
        return ParsedResponse()

    policy = policy or MergePolicy()
    base_paths = {f.path for f in layers[0].files}

    files: "OrderedDict[str, ParsedFile]" = OrderedDict()
    directories: "OrderedDict[str, ParsedDirectory]" = OrderedDict()
    overridden = 0
    protected = 0

    for index, layer in enumerate(layers):
        for parsed_file in layer.files:
            if parsed_file.path in files:
                if index > 0 and parsed_file.path in base_paths and policy.is_protected(parsed_file.path):
                    protected += 1
                    logger.debug(f"[Merge] Keeping protected {parsed_file.path} from base layer")
                    continue
                overridden += 1
            files[parsed_file.path] = parsed_file

        for directory in layer.directories:
            directories[directory.path] = directory

    _ensure_ancestors(files.values(), directories)

    code_blocks = [
        CodeBlock(id=f"code-{i}", language=block.language, content=block.content, filename=block.filename)
        for i, block in enumerate(block for layer in layers for block in layer.code_blocks)
    ]

    merged = ParsedResponse(
        files=list(files.values()),
        directories=list(directories.values()),
        artifact=_merge_artifacts(layers),
        text="\n\n".join(layer.text for layer in layers if layer.text),
        steps=renumber_steps(step for layer in layers for step in layer.steps),
        code_blocks=code_blocks,
    )

    logger.log_merge_event(len(layers), len(merged.files), overridden, protected)
    return merged
