"""
Tree Builder

Pure functions from the flat, deduplicated file / directory lists to the
nested structures the renderer and the sandbox consume.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional

from solforge.modules.forge.models import FileTreeNode, ParsedDirectory, ParsedFile
from solforge.modules.forge.paths import dir_id, split_segments


def _sort_nodes(nodes: List[FileTreeNode]) -> None:
    # Directories first, then by name
    nodes.sort(key=lambda n: (not n.is_directory, n.name.lower()))
    for node in nodes:
        if node.is_directory:
            _sort_nodes(node.children)


def build_file_tree(
    files: Iterable[ParsedFile],
    directories: Iterable[ParsedDirectory] = (),
) -> List[FileTreeNode]:
    """
    Fold flat paths into nested directory nodes.

    Single-segment files are root leaves; every other path hangs off a
    directory node keyed by its cumulative prefix, created when missing.
    Explicit directories with no files still appear. The same input always
    gives the same tree.
    """
    roots: List[FileTreeNode] = []
    nodes: Dict[str, FileTreeNode] = {}

    def ensure_directory(segments: List[str]) -> Optional[FileTreeNode]:
        parent: Optional[FileTreeNode] = None
        for depth in range(1, len(segments) + 1):
            prefix = '/'.join(segments[:depth])
            node = nodes.get(prefix)
            if node is None:
                node = FileTreeNode(
                    id=dir_id(prefix),
                    name=segments[depth - 1],
                    path=prefix,
                    is_directory=True,
                )
                nodes[prefix] = node
                (parent.children if parent else roots).append(node)
            parent = node
        return parent

    for directory in directories:
        segments = split_segments(directory.path)
        if segments:
            ensure_directory(segments)

    for parsed_file in files:
        segments = split_segments(parsed_file.path)
        if not segments:
            continue
        parent = ensure_directory(segments[:-1])
        leaf = FileTreeNode(
            id=parsed_file.id,
            name=parsed_file.name,
            path=parsed_file.path,
            content=parsed_file.content,
            language=parsed_file.language,
        )
        (parent.children if parent else roots).append(leaf)

    _sort_nodes(roots)
    return roots


def iter_nodes(tree: Iterable[FileTreeNode]) -> Iterator[FileTreeNode]:
    """Depth-first walk"""
    for node in tree:
        yield node
        if node.is_directory:
            yield from iter_nodes(node.children)


def find_node(tree: Iterable[FileTreeNode], node_id: str) -> Optional[FileTreeNode]:
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def build_mount_tree(files: Iterable[ParsedFile]) -> Dict[str, Any]:
    """
    WebContainer-style mount structure:

        {"src": {"directory": {"index.ts": {"file": {"contents": "..."}}}}}
    """
    mount: Dict[str, Any] = {}

    for parsed_file in files:
        segments = split_segments(parsed_file.path)
        if not segments:
            continue

        level = mount
        for segment in segments[:-1]:
            entry = level.setdefault(segment, {"directory": {}})
            if "directory" not in entry:
                # A file and a directory share a name; the directory wins
                entry.clear()
                entry["directory"] = {}
            level = entry["directory"]

        level[segments[-1]] = {"file": {"contents": parsed_file.content}}

    return mount
