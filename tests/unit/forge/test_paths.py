"""
Unit Tests for the Path Resolver
Tests for: normalization, ancestors, identity, language detection
"""
import pytest

from solforge.modules.forge.paths import (
    ancestor_directories,
    detect_language,
    dir_id,
    file_id,
    file_name,
    normalize_path,
)


class TestNormalization:

    @pytest.mark.parametrize("raw,expected", [
        ("/src/app/page.tsx", "src/app/page.tsx"),
        ("src//app/./page.tsx", "src/app/page.tsx"),
        ("./README.md", "README.md"),
        ("///", ""),
        ("", ""),
        ("public/", "public"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected

    def test_ancestors(self):
        assert ancestor_directories("a/b/c.ts") == ["a", "a/b"]
        assert ancestor_directories("/a/b/c.ts") == ["a", "a/b"]
        assert ancestor_directories("c.ts") == []
        assert ancestor_directories("") == []

    def test_file_name(self):
        assert file_name("src/app/page.tsx") == "page.tsx"
        assert file_name("") == ""


class TestIdentity:
    """Ids are a pure function of the normalized path"""

    def test_deterministic(self):
        assert file_id("src/app/page.tsx") == file_id("src/app/page.tsx")
        assert file_id("/src/app/page.tsx") == file_id("src/app/page.tsx")

    def test_readable_prefix(self):
        assert file_id("src/a.ts").startswith("file-src-a-ts-")
        assert dir_id("src/app").startswith("dir-src-app-")

    def test_file_and_directory_namespaces_never_collide(self):
        for path in ["src", "src/app", "package.json"]:
            assert file_id(path) != dir_id(path)

    def test_paths_with_same_slug_do_not_collide(self):
        assert file_id("a/b") != file_id("a-b")
        assert dir_id("a.b") != dir_id("a/b")


class TestLanguage:

    @pytest.mark.parametrize("path,language", [
        ("src/app/page.tsx", "typescript"),
        ("src/lib/util.js", "javascript"),
        ("programs/counter/src/lib.rs", "rust"),
        ("Anchor.toml", "toml"),
        ("Cargo.toml", "toml"),
        ("next.config.mjs", "typescript"),
        ("tailwind.config.ts", "javascript"),
        ("package.json", "json"),
        (".env.local", "properties"),
        ("Dockerfile", "dockerfile"),
        ("src/app/globals.css", "css"),
        ("LICENSE", "plaintext"),
    ])
    def test_detect_language(self, path, language):
        assert detect_language(path) == language
