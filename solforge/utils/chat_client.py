"""
Chat stream client

The chat backend answers POST /api/chat with a chunked text/plain body: the
raw model output, which is fed chunk by chunk into a StreamingProjector.
"""

from typing import AsyncIterator, Dict, Optional

import httpx

from solforge.core.config import settings
from solforge.core.exceptions import ChatStreamError
from solforge.core.logging_config import logger, set_project_id


class ForgeChatClient:
    """Async client for the chat backend"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.CHAT_API_BASE_URL).rstrip('/')
        headers: Dict[str, str] = {}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        # Long generations: generous read timeout, short connect
        timeout = httpx.Timeout(
            connect=settings.CHAT_CONNECT_TIMEOUT,
            read=settings.CHAT_REQUEST_TIMEOUT,
            write=settings.CHAT_REQUEST_TIMEOUT,
            pool=settings.CHAT_REQUEST_TIMEOUT
        )
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ForgeChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def stream_chat(
        self,
        prompt: str,
        project_id: str,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Yield response text chunks in arrival order.

        Raises:
            ChatStreamError: non-2xx status or a transport failure
        """
        payload = {"prompt": prompt, "projectId": project_id}
        if model:
            payload["model"] = model

        set_project_id(project_id)
        logger.info(f"[ChatClient] Streaming chat for project {project_id} ({len(prompt)} chars)")

        received = 0
        try:
            async with self.client.stream("POST", "/api/chat", json=payload) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="ignore")
                    raise ChatStreamError(
                        f"Chat request failed with status {response.status_code}: {body[:200]}",
                        status_code=response.status_code
                    )

                async for chunk in response.aiter_text():
                    if chunk:
                        received += len(chunk)
                        yield chunk
        except httpx.HTTPError as e:
            logger.log_error_with_context(e, context="stream_chat", project_id=project_id)
            raise ChatStreamError(f"Chat stream failed: {e}") from e

        logger.info(f"[ChatClient] Stream complete: {received} chars")

    async def fetch_boilerplate(self) -> str:
        """
        Raises:
            ChatStreamError: the backend could not provide the bundle
        """
        try:
            response = await self.client.get("/api/boilerplate")
        except httpx.HTTPError as e:
            raise ChatStreamError(f"Boilerplate request failed: {e}") from e

        if response.status_code >= 400:
            raise ChatStreamError(
                f"Boilerplate request failed with status {response.status_code}",
                status_code=response.status_code
            )
        return response.text
