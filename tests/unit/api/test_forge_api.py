"""
Unit Tests for the Forge API
Tests for: health, boilerplate bundle, parse, focus, error mapping
"""
import pytest

from solforge.core.config import settings


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "testing"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/api/v1/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert response.headers["X-Response-Time"].endswith("ms")


class TestBoilerplateEndpoint:

    @pytest.mark.asyncio
    async def test_returns_bundle(self, client):
        response = await client.get("/api/v1/forge/boilerplate")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'id="solana-dapp-boilerplate"' in response.text

    @pytest.mark.asyncio
    async def test_missing_bundle_is_service_unavailable(self, client, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "BOILERPLATE_PATH", str(tmp_path / "missing.xml"))

        response = await client.get("/api/v1/forge/boilerplate")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "BOILERPLATE_LOAD_FAILED"


class TestParseEndpoint:

    @pytest.mark.asyncio
    async def test_parse(self, client, example_response):
        response = await client.post("/api/v1/forge/parse", json={"response": example_response})

        assert response.status_code == 200
        data = response.json()
        assert [f["path"] for f in data["files"]] == ["src/app/page.tsx"]
        assert [d["path"] for d in data["directories"]] == ["src", "src/app"]
        assert data["artifact"]["shell_commands"] == ["npm install"]
        assert data["steps"][0]["type"] == "CreateFolder"
        assert data["tree"][0]["name"] == "src"
        assert data["tree"][0]["children"][0]["children"][0]["name"] == "page.tsx"

    @pytest.mark.asyncio
    async def test_parse_without_envelope(self, client):
        response = await client.post("/api/v1/forge/parse", json={"response": "Just text"})

        data = response.json()
        assert data["artifact"] is None
        assert data["files"] == []
        assert data["text"] == "Just text"

    @pytest.mark.asyncio
    async def test_parse_over_boilerplate_and_turns(self, client, response_factory):
        payload = {
            "response": response_factory(files={"package.json": "{\"name\": \"mine\"}"}),
            "existing_responses": [response_factory(files={"src/app/page.tsx": "page"})],
            "use_boilerplate": True,
        }

        response = await client.post("/api/v1/forge/parse", json=payload)

        files = {f["path"]: f["content"] for f in response.json()["files"]}
        assert files["package.json"] == "{\"name\": \"mine\"}"
        assert files["src/app/page.tsx"] == "page"
        assert "src/app/layout.tsx" in files

    @pytest.mark.asyncio
    async def test_missing_response_field(self, client):
        response = await client.post("/api/v1/forge/parse", json={})

        assert response.status_code == 422


class TestFocusEndpoint:

    @pytest.mark.asyncio
    async def test_partial_file(self, client):
        buffer = (
            '<forgeArtifact id="x" title="X">'
            '<forgeAction type="file" filePath="src/a.ts">const a = 1;\n</forge'
        )

        response = await client.post("/api/v1/forge/focus", json={"response": buffer, "path": "src/a.ts"})

        data = response.json()
        assert data["focused"]["source"] == "partial"
        assert data["focused"]["content"] == "const a = 1;"
        assert data["focused"]["is_streaming"] is True
        assert data["active_path"] == "src/a.ts"
        assert data["file_count"] == 0

    @pytest.mark.asyncio
    async def test_finished_stream_auto_focus(self, client, example_response):
        response = await client.post(
            "/api/v1/forge/focus",
            json={"response": example_response, "is_streaming": False}
        )

        data = response.json()
        assert data["is_streaming"] is False
        assert data["focused"]["path"] == "src/app/page.tsx"
        assert data["focused"]["source"] == "closed"
        assert data["buffer_length"] == len(example_response)
