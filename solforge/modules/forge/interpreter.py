"""
Action Interpreter

Classifies every closed action directive inside an envelope into a typed
record. Unterminated trailing directives are left to the streaming
projector; unknown shapes are skipped so newer model output degrades
gracefully instead of failing the whole parse.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, List, Optional, Pattern, Union

from solforge.core.config import settings
from solforge.core.logging_config import logger
from solforge.modules.forge.models import DirectoryAction, FileAction, ShellAction
from solforge.modules.forge.paths import normalize_path
from solforge.modules.forge.scanner import ATTRIBUTE_SPAN, extract_attribute

ActionRecord = Union[FileAction, DirectoryAction, ShellAction]

SHELL_TYPES = ("shell", "command")


@dataclass
class OpeningTag:
    """A complete opening directive tag, closed or not"""
    attributes: str
    start: int
    end: int  # index just past '>'

    @property
    def type(self) -> str:
        return extract_attribute(self.attributes, "type").lower()

    @property
    def file_path(self) -> str:
        return normalize_path(extract_attribute(self.attributes, "filePath"))


@lru_cache(maxsize=16)
def _action_pattern(tag: str) -> Pattern:
    t = re.escape(tag)
    # Self-closing directives have no body
    return re.compile(
        rf'<{t}\b({ATTRIBUTE_SPAN})(?:/>|>(.*?)</{t}\s*>)',
        re.DOTALL | re.IGNORECASE
    )


@lru_cache(maxsize=16)
def _opening_pattern(tag: str) -> Pattern:
    t = re.escape(tag)
    return re.compile(rf'<{t}\b({ATTRIBUTE_SPAN})(/?)>', re.IGNORECASE)


@lru_cache(maxsize=16)
def closing_tag(tag: str) -> Pattern:
    t = re.escape(tag)
    return re.compile(rf'</{t}\s*>', re.IGNORECASE)


def classify_action(attributes: str, body: str) -> Optional[ActionRecord]:
    """Turn one directive into a record, or None when it is not recognised"""
    action_type = extract_attribute(attributes, "type").strip().lower()

    if action_type == "file":
        path = normalize_path(extract_attribute(attributes, "filePath"))
        if path and body:
            return FileAction(path=path, content=body.strip())
        logger.debug(f"[Interpreter] Skipping file action (path={path!r}, body={len(body)} chars)")
        return None

    if action_type == "directory":
        raw_path = extract_attribute(attributes, "dirPath") or extract_attribute(attributes, "filePath")
        path = normalize_path(raw_path)
        if path:
            return DirectoryAction(path=path)
        logger.debug("[Interpreter] Skipping directory action without a path")
        return None

    if action_type in SHELL_TYPES:
        command = extract_attribute(attributes, "command").strip() or body.strip()
        if command:
            return ShellAction(command=command)
        logger.debug("[Interpreter] Skipping empty shell action")
        return None

    logger.debug(f"[Interpreter] Unhandled action type {action_type!r}")
    return None


def interpret_actions(content: str, tag: Optional[str] = None) -> List[ActionRecord]:
    """Typed records for every closed directive, in source order"""
    if not content:
        return []

    tag = tag or settings.ACTION_TAG
    records: List[ActionRecord] = []

    for match in _action_pattern(tag).finditer(content):
        record = classify_action(match.group(1) or '', match.group(2) or '')
        if record is not None:
            records.append(record)

    return records


def iter_opening_tags(content: str, tag: Optional[str] = None) -> Iterator[OpeningTag]:
    """Every complete opening directive tag, closed or still streaming; self-closing tags are skipped"""
    tag = tag or settings.ACTION_TAG
    for match in _opening_pattern(tag).finditer(content or ''):
        if match.group(2):
            continue
        yield OpeningTag(attributes=match.group(1) or '', start=match.start(), end=match.end())
