"""
Forge data model

Plain dataclasses shared by every stage of the parse pipeline. All of them
are recomputed from scratch on each parse; identity survives re-parses only
through the path-derived ids.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from solforge.modules.forge.paths import detect_language, dir_id, file_id, file_name


@dataclass
class ParsedFile:
    """A leaf artifact: one file with its full (trimmed) body"""
    id: str
    name: str
    path: str
    content: str
    language: str = "plaintext"

    @classmethod
    def from_path(cls, path: str, content: str) -> "ParsedFile":
        return cls(
            id=file_id(path),
            name=file_name(path),
            path=path,
            content=content,
            language=detect_language(path),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParsedDirectory:
    """A directory, explicitly declared or implied by a file path"""
    id: str
    name: str
    path: str

    @classmethod
    def from_path(cls, path: str) -> "ParsedDirectory":
        return cls(id=dir_id(path), name=file_name(path), path=path)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Artifact:
    """Envelope metadata"""
    id: str = "unknown"
    title: str = "Untitled Project"
    shell_commands: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CodeBlock:
    """Fenced markdown block found in the narrative text"""
    id: str
    language: str
    content: str
    filename: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class StepType(str, Enum):
    CREATE_FILE = "CreateFile"
    CREATE_FOLDER = "CreateFolder"
    RUN_SCRIPT = "RunScript"
    # Not produced by build_steps; set by step consumers that patch or install
    EDIT_FILE = "EditFile"
    INSTALL_PACKAGE = "InstallPackage"


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Step:
    """Execution-order step used by the simulated progress display"""
    id: int
    title: str
    description: str
    type: StepType
    status: StepStatus = StepStatus.PENDING
    code: Optional[str] = None
    path: Optional[str] = None
    command: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["status"] = self.status.value
        return data


@dataclass
class ParsedResponse:
    """The unit returned by the parse pipeline"""
    files: List[ParsedFile] = field(default_factory=list)
    directories: List[ParsedDirectory] = field(default_factory=list)
    artifact: Optional[Artifact] = None
    text: str = ""
    steps: List[Step] = field(default_factory=list)
    code_blocks: List[CodeBlock] = field(default_factory=list)

    @property
    def shell_commands(self) -> List[str]:
        return list(self.artifact.shell_commands) if self.artifact else []

    @property
    def file_paths(self) -> List[str]:
        return [f.path for f in self.files]

    @property
    def directory_paths(self) -> List[str]:
        return [d.path for d in self.directories]

    def get_file(self, path: str) -> Optional[ParsedFile]:
        for parsed_file in self.files:
            if parsed_file.path == path:
                return parsed_file
        return None

    def is_empty(self) -> bool:
        return not self.files and not self.directories and self.artifact is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "directories": [d.to_dict() for d in self.directories],
            "artifact": self.artifact.to_dict() if self.artifact else None,
            "text": self.text,
            "steps": [s.to_dict() for s in self.steps],
            "code_blocks": [c.to_dict() for c in self.code_blocks],
        }


@dataclass
class Envelope:
    """Outermost artifact tag located by the scanner"""
    attributes: str
    content: str
    closed: bool
    encoded: bool
    start: int
    end: int


# Directive records produced by the action interpreter

@dataclass
class FileAction:
    path: str
    content: str
    kind: str = "file"


@dataclass
class DirectoryAction:
    path: str
    kind: str = "directory"


@dataclass
class ShellAction:
    command: str
    kind: str = "shell"


@dataclass
class FileTreeNode:
    """Node of the hierarchical display tree"""
    id: str
    name: str
    path: str
    is_directory: bool = False
    children: List["FileTreeNode"] = field(default_factory=list)
    content: str = ""
    language: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "is_directory": self.is_directory,
        }
        if self.is_directory:
            data["children"] = [child.to_dict() for child in self.children]
        else:
            data["language"] = self.language
        return data


class FocusSource(str, Enum):
    BOILERPLATE = "boilerplate"
    CLOSED = "closed"
    PARTIAL = "partial"
    KNOWN = "known"


@dataclass
class FocusedFile:
    """Projection of the file selected in the UI"""
    path: str
    id: str
    name: str
    language: str
    content: str
    is_streaming: bool
    source: FocusSource

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        return data


@dataclass
class StreamView:
    """Snapshot exposed to the renderer after each buffer update"""
    response: ParsedResponse
    tree: List[FileTreeNode]
    focused: Optional[FocusedFile]
    active_path: Optional[str]
    is_streaming: bool
    buffer_length: int
