"""
Directive Scanner

Locates the outermost artifact envelope in raw model output. The output is
not valid XML, so instead of a DOM parser the scanner runs a fixed ladder of
tolerant regex tiers and takes the first one that matches:

    1. <tag ...>...</tag>                 well-formed pair
    2. &lt;tag ...&gt;...&lt;/tag&gt;     HTML-entity-encoded pair
    3. <tag ...>...EOF                    still streaming
    4. &lt;tag ...&gt;...EOF              encoded, still streaming
"""

import html
import re
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple

from solforge.core.config import settings
from solforge.core.logging_config import logger
from solforge.modules.forge.models import CodeBlock, Envelope

DEFAULT_ARTIFACT_ID = "unknown"
DEFAULT_ARTIFACT_TITLE = "Untitled Project"

# Attribute run up to the tag's closing '>'; quoted values may contain '>'
ATTRIBUTE_SPAN = r'(?:"[^"]*"|\'[^\']*\'|[^>"\'])*?'

_CODE_BLOCK_PATTERN = re.compile(r'```(\w+)?[ \t]*(?://[ \t]*([^\n]*))?\n(.*?)```', re.DOTALL)


@lru_cache(maxsize=16)
def _envelope_tiers(tag: str) -> List[Tuple[Pattern, bool, bool]]:
    """(pattern, closed, encoded) for each fallback tier, in priority order"""
    t = re.escape(tag)
    flags = re.DOTALL | re.IGNORECASE
    return [
        (re.compile(rf'<{t}(?:\s+({ATTRIBUTE_SPAN}))?>(.*?)</{t}\s*>', flags), True, False),
        (re.compile(rf'&lt;{t}(?:\s+(.*?))?&gt;(.*?)&lt;/{t}\s*&gt;', flags), True, True),
        (re.compile(rf'<{t}(?:\s+({ATTRIBUTE_SPAN}))?>(.*)\Z', flags), False, False),
        (re.compile(rf'&lt;{t}(?:\s+(.*?))?&gt;(.*)\Z', flags), False, True),
    ]


@lru_cache(maxsize=64)
def _attribute_pattern(name: str) -> Pattern:
    return re.compile(
        rf'(?<![\w-]){re.escape(name)}\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s"\'>]+))',
        re.IGNORECASE
    )


def find_envelope(text: str, tag: Optional[str] = None) -> Optional[Envelope]:
    """
    Find the first artifact envelope in text.

    Returns None when no opening tag exists yet; callers treat that as
    "no structured content", never as a failure.
    """
    if not text:
        return None

    tag = tag or settings.ARTIFACT_TAG

    for pattern, closed, encoded in _envelope_tiers(tag):
        match = pattern.search(text)
        if not match:
            continue

        attributes = match.group(1) or ''
        content = match.group(2) or ''
        if encoded:
            attributes = html.unescape(attributes)
            content = html.unescape(content)

        logger.debug(
            f"[Scanner] Found <{tag}> (closed={closed}, encoded={encoded}, "
            f"content={len(content)} chars)"
        )
        return Envelope(
            attributes=attributes,
            content=content,
            closed=closed,
            encoded=encoded,
            start=match.start(),
            end=match.end(),
        )

    return None


def extract_attribute(attributes: str, name: str, default: str = "") -> str:
    """
    Read one attribute from a raw attribute string.

    Order-insensitive and tolerant of double, single or missing quotes.
    """
    if not attributes:
        return default
    match = _attribute_pattern(name).search(attributes)
    if not match:
        return default
    for group in match.groups():
        if group is not None:
            return group
    return default


def read_envelope_metadata(envelope: Envelope) -> Tuple[str, str]:
    """(id, title) of an envelope, with defaults for missing attributes"""
    artifact_id = extract_attribute(envelope.attributes, "id") or DEFAULT_ARTIFACT_ID
    title = extract_attribute(envelope.attributes, "title") or DEFAULT_ARTIFACT_TITLE
    return artifact_id, title


def strip_envelope(text: str, envelope: Optional[Envelope]) -> str:
    """Narrative text: everything outside the envelope span"""
    if envelope is None:
        return text
    return text[:envelope.start] + text[envelope.end:]


def strip_code_blocks(text: str) -> str:
    return _CODE_BLOCK_PATTERN.sub('', text)


def extract_code_blocks(text: str) -> List[CodeBlock]:
    """Fenced markdown code blocks, optionally tagged with a // filename"""
    blocks = []
    for index, match in enumerate(_CODE_BLOCK_PATTERN.finditer(text)):
        language, filename, content = match.groups()
        blocks.append(CodeBlock(
            id=f"code-{index}",
            language=language or 'text',
            content=(content or '').strip(),
            filename=filename.strip() if filename else None,
        ))
    return blocks
