"""
Orchestrator Module - chat stream to running preview
"""

from solforge.modules.orchestrator.forge_orchestrator import (
    ForgeOrchestrator,
    GenerationResult,
    split_commands,
)

__all__ = [
    'ForgeOrchestrator',
    'GenerationResult',
    'split_commands',
]
