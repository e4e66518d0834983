"""
Unit Tests for the Boilerplate Bundle
Tests for: loading and overrides, path classification
"""
import pytest

from solforge.core.config import settings
from solforge.core.exceptions import BoilerplateLoadError
from solforge.modules.forge.boilerplate import (
    PathPatternSet,
    is_boilerplate_path,
    load_boilerplate,
)


class TestLoadBoilerplate:

    def test_packaged_bundle_parses(self, parser):
        """The packaged bundle is itself valid directive output"""
        result = parser.parse_response(load_boilerplate())

        assert result.artifact.id == "solana-dapp-boilerplate"
        assert "package.json" in result.file_paths
        assert "src/app/layout.tsx" in result.file_paths
        assert "public" in result.directory_paths
        assert result.shell_commands == []

    def test_cached(self):
        assert load_boilerplate() is load_boilerplate()

    def test_explicit_path(self, tmp_path):
        bundle = tmp_path / "bundle.xml"
        bundle.write_text('<forgeArtifact id="custom"></forgeArtifact>', encoding="utf-8")

        assert load_boilerplate(str(bundle)) == '<forgeArtifact id="custom"></forgeArtifact>'

    def test_settings_override(self, tmp_path, monkeypatch):
        bundle = tmp_path / "bundle.xml"
        bundle.write_text("override", encoding="utf-8")
        monkeypatch.setattr(settings, "BOILERPLATE_PATH", str(bundle))

        assert load_boilerplate() == "override"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(BoilerplateLoadError) as exc_info:
            load_boilerplate(str(tmp_path / "missing.xml"))

        assert exc_info.value.code == "BOILERPLATE_LOAD_FAILED"
        assert exc_info.value.details["path"].endswith("missing.xml")


class TestIsBoilerplatePath:

    @pytest.mark.parametrize("path", [
        "package.json",
        "tsconfig.json",
        "/next.config.ts",
        ".env.local",
        "src/app/layout.tsx",
        "src/app/globals.css",
        "src/components/app-footer.tsx",
        "src/components/app-header.tsx",
        "src/components/solana/solana-provider.tsx",
        "anchor/programs/counter/src/lib.rs",
        "src/components/ui/wallet-button.tsx",
    ])
    def test_boilerplate(self, path):
        assert is_boilerplate_path(path)

    @pytest.mark.parametrize("path", [
        "src/app/page.tsx",
        "src/components/counter/counter-feature.tsx",
        "src/lib/utils.ts",
        "",
    ])
    def test_generated(self, path):
        assert not is_boilerplate_path(path)

    def test_custom_patterns(self):
        assert is_boilerplate_path("vendor/x.js", ["vendor/"])
        assert not is_boilerplate_path("package.json", ["vendor/"])
        assert not is_boilerplate_path("package.json", [])

    def test_case_insensitive(self):
        assert PathPatternSet(["readme.md"]).matches("docs/README.md")

    def test_empty_set_is_falsy(self):
        assert not PathPatternSet(["", "  "])
        assert PathPatternSet(["a/"])
