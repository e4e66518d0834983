"""
Boilerplate bundle and path classification

The boilerplate is a fixed Next.js + Solana wallet skeleton, written in the
same directive format the model emits, that forms the base layer of every
merge. Files whose path matches a boilerplate pattern are injected whole,
so the streaming projector shows them complete instead of typing them in.
"""

import fnmatch
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Iterable, List, Optional

from solforge.core.config import settings
from solforge.core.exceptions import BoilerplateLoadError
from solforge.core.logging_config import logger
from solforge.modules.forge.paths import file_name, normalize_path

BOILERPLATE_RESOURCE = "templates/boilerplate.xml"

# Configuration files that ship with every project
ESSENTIAL_FILES = [
    "package.json",
    "tsconfig.json",
    "next.config.ts",
    "next.config.js",
    "postcss.config.mjs",
    "tailwind.config.js",
    "tailwind.config.ts",
    ".env",
    ".env.local",
    ".gitignore",
    "README.md",
]

BOILERPLATE_COMPONENTS = [
    "app-footer.tsx",
    "wallet-button.tsx",
    "cluster-data-access.tsx",
    "cluster-ui.tsx",
    "theme-select.tsx",
    "react-query-provider.tsx",
    "theme-provider.tsx",
]

BOILERPLATE_PATHS = [
    "src/app/globals.css",
    "src/app/layout.tsx",
    "anchor/",
    "src/components/app-*",
    "src/components/solana/",
]

BOILERPLATE_PATTERNS = ESSENTIAL_FILES + BOILERPLATE_COMPONENTS + BOILERPLATE_PATHS


class PathPatternSet:
    """
    Case-insensitive path matcher.

    - 'anchor/'              prefix: anything under that directory
    - 'package.json', '*.md' no slash: glob against the file name only
    - 'src/components/app-*' otherwise: glob against the full path
    """

    def __init__(self, patterns: Iterable[str]):
        self.prefixes: List[str] = []
        self.name_globs: List[str] = []
        self.path_globs: List[str] = []

        for raw in patterns:
            pattern = raw.strip().lstrip("/").lower()
            if not pattern:
                continue
            if pattern.endswith("/"):
                self.prefixes.append(pattern)
            elif "/" not in pattern:
                self.name_globs.append(pattern)
            else:
                self.path_globs.append(pattern)

    def __bool__(self) -> bool:
        return bool(self.prefixes or self.name_globs or self.path_globs)

    def __repr__(self) -> str:
        return (
            f"PathPatternSet(prefixes={self.prefixes}, "
            f"names={self.name_globs}, paths={self.path_globs})"
        )

    def matches(self, path: str) -> bool:
        normalized = normalize_path(path).lower()
        if not normalized:
            return False

        if any(normalized.startswith(prefix) for prefix in self.prefixes):
            return True

        name = file_name(normalized)
        if any(fnmatch.fnmatchcase(name, glob) for glob in self.name_globs):
            return True

        return any(fnmatch.fnmatchcase(normalized, glob) for glob in self.path_globs)


@lru_cache(maxsize=8)
def _pattern_set(patterns: tuple) -> PathPatternSet:
    return PathPatternSet(patterns)


def default_patterns() -> List[str]:
    """Configured boilerplate patterns, or the built-in list"""
    return settings.BOILERPLATE_PATTERNS or list(BOILERPLATE_PATTERNS)


def is_boilerplate_path(path: str, patterns: Optional[Iterable[str]] = None) -> bool:
    """Whether a file is injected wholesale rather than generated"""
    active = tuple(patterns) if patterns is not None else tuple(default_patterns())
    return _pattern_set(active).matches(path)


@lru_cache(maxsize=4)
def _read_bundle(override_path: str) -> str:
    if override_path:
        path = Path(override_path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise BoilerplateLoadError(str(path), str(e))
        logger.info(f"[Boilerplate] Loaded bundle from {path} ({len(content)} chars)")
        return content

    try:
        content = resources.files("solforge.modules.forge").joinpath(BOILERPLATE_RESOURCE).read_text(encoding="utf-8")
    except (OSError, ModuleNotFoundError) as e:
        raise BoilerplateLoadError(BOILERPLATE_RESOURCE, str(e))
    logger.debug(f"[Boilerplate] Loaded packaged bundle ({len(content)} chars)")
    return content


def load_boilerplate(path: Optional[str] = None) -> str:
    """
    Raw boilerplate bundle text.

    Read once per source and cached. BOILERPLATE_PATH overrides the
    packaged bundle; an explicit path overrides both.

    Raises:
        BoilerplateLoadError: the bundle could not be read
    """
    return _read_bundle(path if path is not None else settings.BOILERPLATE_PATH)


def clear_boilerplate_cache() -> None:
    _read_bundle.cache_clear()
