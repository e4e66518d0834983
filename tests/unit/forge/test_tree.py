"""
Unit Tests for the Tree Builder
"""
from solforge.modules.forge.models import ParsedDirectory, ParsedFile
from solforge.modules.forge.paths import dir_id, file_id
from solforge.modules.forge.tree import (
    build_file_tree,
    build_mount_tree,
    find_node,
    iter_nodes,
)


def _files(*paths):
    return [ParsedFile.from_path(path, f"// {path}") for path in paths]


class TestBuildFileTree:

    def test_nesting_and_order(self):
        tree = build_file_tree(_files(
            "src/app/page.tsx",
            "README.md",
            "src/lib/utils.ts",
            "src/app/layout.tsx",
        ))

        assert [n.name for n in tree] == ["src", "README.md"]
        src = tree[0]
        assert src.is_directory
        assert [n.name for n in src.children] == ["app", "lib"]
        assert [n.name for n in src.children[0].children] == ["layout.tsx", "page.tsx"]

    def test_root_leaf(self):
        tree = build_file_tree(_files("package.json"))

        assert len(tree) == 1
        assert tree[0].is_directory is False
        assert tree[0].content == "// package.json"
        assert tree[0].language == "json"

    def test_ids(self):
        tree = build_file_tree(_files("src/app/page.tsx"))

        app = tree[0].children[0]
        assert tree[0].id == dir_id("src")
        assert app.id == dir_id("src/app")
        assert app.children[0].id == file_id("src/app/page.tsx")

    def test_empty_directory_shown(self):
        tree = build_file_tree([], [ParsedDirectory.from_path("public")])

        assert tree[0].path == "public"
        assert tree[0].is_directory
        assert tree[0].children == []

    def test_deterministic(self):
        files = _files("b/x.ts", "a/y.ts", "c.ts")

        first = [n.to_dict() for n in build_file_tree(files)]
        second = [n.to_dict() for n in build_file_tree(list(reversed(files)))]

        assert first == second

    def test_node_to_dict(self):
        tree = build_file_tree(_files("src/a.ts"))
        data = tree[0].to_dict()

        assert data["is_directory"] is True
        assert data["children"][0]["language"] == "typescript"
        assert "children" not in data["children"][0]

    def test_empty(self):
        assert build_file_tree([]) == []


class TestLookup:

    def test_iter_nodes_depth_first(self):
        tree = build_file_tree(_files("a/b/c.ts", "d.ts"))

        assert [n.path for n in iter_nodes(tree)] == ["a", "a/b", "a/b/c.ts", "d.ts"]

    def test_find_node(self):
        tree = build_file_tree(_files("a/b/c.ts"))

        assert find_node(tree, file_id("a/b/c.ts")).path == "a/b/c.ts"
        assert find_node(tree, dir_id("a/b")).is_directory
        assert find_node(tree, "missing") is None


class TestMountTree:

    def test_nested_structure(self):
        mount = build_mount_tree([
            ParsedFile.from_path("package.json", "{}"),
            ParsedFile.from_path("src/app/page.tsx", "page"),
        ])

        assert mount == {
            "package.json": {"file": {"contents": "{}"}},
            "src": {"directory": {
                "app": {"directory": {
                    "page.tsx": {"file": {"contents": "page"}},
                }},
            }},
        }
