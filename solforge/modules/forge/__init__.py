"""
Forge Module - Streaming Parser and Merge Engine

Turns forgeArtifact / forgeAction model output into a consistent virtual
file system, live while the response is still streaming.

Components:
- Scanner: tolerant envelope location (closed, encoded, still streaming)
- Interpreter: typed file / directory / shell records
- ForgeResponseParser: single pass plus boilerplate and multi-turn merges
- StreamingProjector: re-parse per chunk, live focused-file content
- Tree builder: display tree and sandbox mount tree

Usage:
    from solforge.modules.forge import forge_parser, StreamingProjector, load_boilerplate

    result = forge_parser.parse_response_with_boilerplate(text, load_boilerplate())
"""

from solforge.modules.forge.models import (
    Artifact,
    CodeBlock,
    FileTreeNode,
    FocusedFile,
    FocusSource,
    ParsedDirectory,
    ParsedFile,
    ParsedResponse,
    Step,
    StepStatus,
    StepType,
    StreamView,
)
from solforge.modules.forge.scanner import find_envelope, extract_attribute
from solforge.modules.forge.interpreter import interpret_actions
from solforge.modules.forge.boilerplate import (
    BOILERPLATE_PATTERNS,
    PathPatternSet,
    is_boilerplate_path,
    load_boilerplate,
)
from solforge.modules.forge.merge import MergePolicy, merge_responses
from solforge.modules.forge.parser import ForgeResponseParser, forge_parser
from solforge.modules.forge.projector import StreamingProjector, project_stream
from solforge.modules.forge.tree import build_file_tree, build_mount_tree, find_node

__all__ = [
    # Singleton instance
    'forge_parser',

    # Pipeline
    'ForgeResponseParser',
    'StreamingProjector',
    'project_stream',
    'merge_responses',
    'MergePolicy',
    'find_envelope',
    'extract_attribute',
    'interpret_actions',

    # Boilerplate
    'BOILERPLATE_PATTERNS',
    'PathPatternSet',
    'is_boilerplate_path',
    'load_boilerplate',

    # Tree
    'build_file_tree',
    'build_mount_tree',
    'find_node',

    # Models
    'Artifact',
    'CodeBlock',
    'FileTreeNode',
    'FocusedFile',
    'FocusSource',
    'ParsedDirectory',
    'ParsedFile',
    'ParsedResponse',
    'Step',
    'StepStatus',
    'StepType',
    'StreamView',
]
