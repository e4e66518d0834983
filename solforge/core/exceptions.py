"""
Custom Exceptions for SolForge
==============================

The parser itself never raises for malformed model output; it degrades to
empty results instead. These exceptions belong to the collaborator
operations around it (sandbox mount/install/run, chat streaming,
boilerplate loading) and are surfaced to the user as operation-level errors.

Usage:
    from solforge.core.exceptions import MissingPackageJsonError

    if not (root / "package.json").exists():
        raise MissingPackageJsonError(str(root))
"""

from typing import Optional, Any, Dict


class SolforgeError(Exception):
    """Base exception for all SolForge errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Boilerplate Errors
# ============================================

class BoilerplateLoadError(SolforgeError):
    """Boilerplate bundle could not be read"""

    def __init__(self, path: str, reason: str = ""):
        super().__init__(
            f"Failed to load boilerplate bundle from '{path}'" + (f": {reason}" if reason else ""),
            code="BOILERPLATE_LOAD_FAILED",
            details={"path": path}
        )


# ============================================
# Sandbox Errors
# ============================================

class SandboxError(SolforgeError):
    """Base class for sandbox collaborator failures"""

    def __init__(self, message: str, code: str = "SANDBOX_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class SandboxBootError(SandboxError):
    """Sandbox instance could not be created"""

    def __init__(self, reason: str = ""):
        super().__init__(
            "Sandbox failed to boot" + (f": {reason}" if reason else ""),
            code="SANDBOX_BOOT_FAILED"
        )


class MountError(SandboxError):
    """Writing the file tree into the sandbox failed"""

    def __init__(self, failed_paths: list):
        super().__init__(
            f"Failed to mount {len(failed_paths)} files",
            code="MOUNT_FAILED",
            details={"failed_paths": failed_paths}
        )


class MissingPackageJsonError(SandboxError):
    """No package.json in the mounted project"""

    def __init__(self, root: str = ""):
        super().__init__(
            "No package.json found",
            code="NO_PACKAGE_JSON",
            details={"root": root}
        )


class CommandExecutionError(SandboxError):
    """A shell command exited non-zero or timed out"""

    def __init__(self, command: str, exit_code: Optional[int], output: str = ""):
        super().__init__(
            f"Command failed: {command}" + (f" (exit code {exit_code})" if exit_code is not None else " (timed out)"),
            code="COMMAND_FAILED",
            details={"command": command, "exit_code": exit_code, "output": output[-2000:]}
        )
        self.command = command
        self.exit_code = exit_code
        self.output = output


class DependencyInstallError(CommandExecutionError):
    """Dependency install failed"""

    def __init__(self, command: str, exit_code: Optional[int], output: str = ""):
        super().__init__(command, exit_code, output)
        self.message = "Dependency install failed"
        self.code = "DEPENDENCY_INSTALL_FAILED"
        self.args = (self.message,)


# ============================================
# Chat Stream Errors
# ============================================

class ChatStreamError(SolforgeError):
    """The chat backend failed to deliver a response stream"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message,
            code="CHAT_STREAM_FAILED",
            details={"status_code": status_code} if status_code is not None else {}
        )
        self.status_code = status_code
