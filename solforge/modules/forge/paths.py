"""
Path normalisation and identity

Identifiers are a pure function of the normalised path so that a file keeps
its id across re-parses, which is what lets the tree view keep a selection
while the buffer grows.
"""

import hashlib
import re
from pathlib import PurePosixPath
from typing import List

_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]')

LANGUAGE_MAP = {
    '.js': 'javascript',
    '.jsx': 'javascript',
    '.mjs': 'javascript',
    '.cjs': 'javascript',
    '.ts': 'typescript',
    '.tsx': 'typescript',
    '.py': 'python',
    '.rs': 'rust',
    '.go': 'go',
    '.java': 'java',
    '.cpp': 'cpp',
    '.c': 'c',
    '.cs': 'csharp',
    '.php': 'php',
    '.rb': 'ruby',
    '.swift': 'swift',
    '.kt': 'kotlin',
    '.dart': 'dart',
    '.html': 'html',
    '.css': 'css',
    '.scss': 'scss',
    '.sass': 'sass',
    '.less': 'less',
    '.json': 'json',
    '.xml': 'xml',
    '.yaml': 'yaml',
    '.yml': 'yaml',
    '.toml': 'toml',
    '.md': 'markdown',
    '.sh': 'bash',
    '.sql': 'sql',
}


def normalize_path(path: str) -> str:
    """Strip leading slashes and './', collapse empty segments"""
    if not path:
        return ""
    segments = [s for s in path.strip().replace('\\', '/').split('/') if s and s != '.']
    return '/'.join(segments)


def split_segments(path: str) -> List[str]:
    normalized = normalize_path(path)
    return normalized.split('/') if normalized else []


def ancestor_directories(path: str) -> List[str]:
    """
    Every directory implied by a path, outermost first.

    'a/b/c.ts' -> ['a', 'a/b']
    """
    segments = split_segments(path)
    return ['/'.join(segments[:i]) for i in range(1, len(segments))]


def file_name(path: str) -> str:
    segments = split_segments(path)
    return segments[-1] if segments else ""


def _path_identity(prefix: str, path: str) -> str:
    normalized = normalize_path(path)
    slug = _NON_ALNUM.sub('-', normalized)
    digest = hashlib.sha1(normalized.encode('utf-8')).hexdigest()[:8]
    return f"{prefix}-{slug}-{digest}"


def file_id(path: str) -> str:
    """Stable id for a file path. Never equal to dir_id() of any path."""
    return _path_identity("file", path)


def dir_id(path: str) -> str:
    """Stable id for a directory path"""
    return _path_identity("dir", path)


def detect_language(path: str) -> str:
    """Display language for a file, inferred from its name"""
    name = file_name(path)
    lowered = name.lower()

    # Solana / Next.js config files first
    if lowered in ('anchor.toml', 'cargo.toml'):
        return 'toml'
    if lowered.startswith('next.config'):
        return 'typescript'
    if lowered.startswith('tailwind.config'):
        return 'javascript'
    if lowered in ('package.json', 'tsconfig.json'):
        return 'json'
    if lowered == 'dockerfile':
        return 'dockerfile'
    if lowered.startswith('.env'):
        return 'properties'

    ext = PurePosixPath(lowered).suffix
    return LANGUAGE_MAP.get(ext, 'plaintext')
