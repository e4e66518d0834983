"""
SolForge - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

# Set testing environment before settings are read
os.environ['ENVIRONMENT'] = 'testing'
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['BOILERPLATE_PATH'] = ''
os.environ['PROTECTED_PATH_PATTERNS_STR'] = ''

from solforge.main import app
from solforge.modules.forge.boilerplate import clear_boilerplate_cache
from solforge.modules.forge.merge import MergePolicy
from solforge.modules.forge.parser import ForgeResponseParser


EXAMPLE_RESPONSE = (
    '<forgeArtifact id="demo" title="Demo">'
    '<forgeAction type="file" filePath="src/app/page.tsx">export default function Page(){}</forgeAction>'
    '<forgeAction type="shell">npm install</forgeAction>'
    '</forgeArtifact>'
)


def make_response(files=None, commands=None, artifact_id="demo", title="Demo", text_before="", text_after=""):
    """Build a forgeArtifact response from {path: content} and a command list"""
    parts = [text_before, f'<forgeArtifact id="{artifact_id}" title="{title}">']
    for path, content in (files or {}).items():
        parts.append(f'<forgeAction type="file" filePath="{path}">{content}</forgeAction>')
    for command in commands or []:
        parts.append(f'<forgeAction type="shell">{command}</forgeAction>')
    parts.append('</forgeArtifact>')
    parts.append(text_after)
    return ''.join(parts)


@pytest.fixture
def parser() -> ForgeResponseParser:
    """Parser with default tags and no protected paths"""
    return ForgeResponseParser(policy=MergePolicy())


@pytest.fixture
def example_response() -> str:
    return EXAMPLE_RESPONSE


@pytest.fixture(autouse=True)
def fresh_boilerplate_cache():
    clear_boilerplate_cache()
    yield
    clear_boilerplate_cache()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
def response_factory():
    """make_response(files={path: content}, commands=[...], ...)"""
    return make_response
