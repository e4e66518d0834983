"""
Pydantic schemas for forge endpoints
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ParsedFileSchema(BaseModel):
    """Parsed file"""
    id: str = Field(..., description="Stable id derived from the path")
    name: str = Field(..., description="Last path segment")
    path: str = Field(..., description="Normalized path, no leading slash")
    content: str = Field(..., description="Trimmed file body")
    language: str = Field(default="plaintext", description="Display language")


class ParsedDirectorySchema(BaseModel):
    """Parsed directory, explicit or implied"""
    id: str = Field(..., description="Stable id derived from the path")
    name: str = Field(..., description="Last path segment")
    path: str = Field(..., description="Normalized path")


class ArtifactSchema(BaseModel):
    """Envelope metadata"""
    id: str = Field(default="unknown", description="Artifact id")
    title: str = Field(default="Untitled Project", description="Human title")
    shell_commands: List[str] = Field(default_factory=list, description="Commands in execution order")


class StepSchema(BaseModel):
    """Legacy progress step"""
    id: int
    title: str
    description: str
    type: str
    status: str = "pending"
    code: Optional[str] = None
    path: Optional[str] = None
    command: Optional[str] = None


class CodeBlockSchema(BaseModel):
    id: str
    language: str
    content: str
    filename: Optional[str] = None


class ParseRequest(BaseModel):
    """Request to parse a model response"""
    response: str = Field(..., description="Raw model output, complete or partial")
    existing_responses: List[str] = Field(
        default_factory=list,
        description="Earlier turns in the conversation, oldest first"
    )
    use_boilerplate: bool = Field(default=False, description="Merge on top of the boilerplate bundle")


class ParseResultSchema(BaseModel):
    """Merged parse result"""
    files: List[ParsedFileSchema] = Field(default_factory=list)
    directories: List[ParsedDirectorySchema] = Field(default_factory=list)
    artifact: Optional[ArtifactSchema] = Field(None, description="Absent when no envelope was found")
    text: str = Field(default="", description="Narrative text outside the envelope")
    steps: List[StepSchema] = Field(default_factory=list)
    code_blocks: List[CodeBlockSchema] = Field(default_factory=list)
    tree: List[Dict[str, Any]] = Field(default_factory=list, description="Nested display tree")


class FocusRequest(BaseModel):
    """Request for the live view of one file in a (possibly partial) response"""
    response: str = Field(..., description="Response buffer received so far")
    path: Optional[str] = Field(None, description="Focused file path, first file when omitted")
    existing_responses: List[str] = Field(default_factory=list, description="Earlier turns, oldest first")
    use_boilerplate: bool = Field(default=False, description="Merge on top of the boilerplate bundle")
    is_streaming: bool = Field(default=True, description="Whether more chunks are expected")


class FocusedFileSchema(BaseModel):
    """Projection of the focused file"""
    path: str
    id: str
    name: str
    language: str
    content: str
    is_streaming: bool
    source: str = Field(..., description="boilerplate, closed, partial or known")


class FocusResponse(BaseModel):
    focused: Optional[FocusedFileSchema] = None
    active_path: Optional[str] = Field(None, description="File currently being written")
    is_streaming: bool
    buffer_length: int
    file_count: int
