"""
Sandbox Module - Executes generated projects

The parser only produces the mount input; this module is the consumer:
it writes the file set, installs dependencies, runs the artifact's shell
commands in order and reports output and readiness.

Components:
- SandboxProvider: one shared, lazily booted sandbox per process
- LocalSandbox: directory-backed executor with output / exit / server-ready events
"""

from solforge.modules.sandbox.provider import SandboxProvider, get_sandbox_provider
from solforge.modules.sandbox.local_executor import CommandResult, LocalSandbox, fingerprint, flatten_mount_tree

__all__ = [
    'SandboxProvider',
    'get_sandbox_provider',
    'LocalSandbox',
    'CommandResult',
    'fingerprint',
    'flatten_mount_tree',
]
