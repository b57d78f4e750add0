"""
Ollama Client for the Research Pipeline

Async client for the local Ollama server. Used for the small generation
calls of the pipeline (classification, query generation, gap evaluation,
summarization) and for the streamed chat answer.

Usage:
    from agentic.ollama_client import OllamaClient, get_ollama_client

    client = get_ollama_client()

    text = await client.generate(
        prompt="Classify this question",
        model="llama3.1:8b",
        options={"temperature": 0.1, "num_predict": 10}
    )

    async for chunk in client.chat_stream(messages, model="llama3.1:8b"):
        print(chunk, end="")

Every failure surfaces as ExternalServiceError. Pipeline call sites catch it
and fall back to their degraded behaviour.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from core.exceptions import ErrorCode, ExternalServiceError

logger = logging.getLogger("agentic.ollama")


class OllamaClient:
    """
    Async client for the Ollama HTTP API.

    Endpoints used:
    - /api/generate (non-streaming) for short pipeline prompts
    - /api/chat (streaming) for the chat answer
    - /api/tags for model listing
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: float = 60.0,
        default_model: str = "llama3.1:8b",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_model = default_model
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        system: Optional[str] = None,
    ) -> str:
        """
        Run one non-streaming completion and return the response text.

        Raises:
            ExternalServiceError: on connection failure, timeout, non-2xx
                status or an undecodable body
        """
        client = await self._get_client()
        physical_model = model or self.default_model

        payload: Dict[str, Any] = {
            "model": physical_model,
            "prompt": prompt,
            "stream": False,
            "options": options or {},
        }
        if system:
            payload["system"] = system

        try:
            response = await client.post(
                f"{self.base_url}/api/generate",
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ExternalServiceError("ollama", f"Generation timed out: {e}", model=physical_model)
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                "ollama",
                f"Generation failed with HTTP {e.response.status_code}",
                model=physical_model,
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                "ollama",
                f"Ollama unreachable: {e}",
                code=ErrorCode.OLLAMA_UNAVAILABLE,
                model=physical_model,
            )
        except ValueError as e:
            raise ExternalServiceError("ollama", f"Invalid response body: {e}", model=physical_model)

        if not isinstance(data, dict):
            raise ExternalServiceError(
                "ollama",
                f"Unexpected response body type: {type(data).__name__}",
                model=physical_model,
            )
        return str(data.get("response") or "")

    async def chat_stream(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[str]:
        """
        Stream a chat completion, yielding content fragments as they arrive.

        Accepts both chat chunks ({"message": {"content": ...}}) and
        generate-style chunks ({"response": ...}). Malformed lines are skipped.
        """
        client = await self._get_client()
        physical_model = model or self.default_model

        payload = {
            "model": physical_model,
            "messages": messages,
            "stream": True,
            "options": options or {},
        }

        try:
            async with client.stream(
                "POST",
                f"{self.base_url}/api/chat",
                json=payload,
                timeout=self.timeout
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise ExternalServiceError(
                        "ollama",
                        f"Chat failed with HTTP {response.status_code}",
                        model=physical_model,
                    )
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping malformed stream line: {line[:80]}")
                        continue

                    if not isinstance(data, dict):
                        logger.debug(f"Skipping non-object stream line: {line[:80]}")
                        continue

                    message = data.get("message")
                    if not isinstance(message, dict):
                        message = {}
                    content = message.get("content") or data.get("response")
                    if content:
                        yield content
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                "ollama",
                f"Chat stream interrupted: {e}",
                code=ErrorCode.OLLAMA_UNAVAILABLE,
                model=physical_model,
            )

    async def list_models(self) -> List[Dict[str, Any]]:
        """Installed models as reported by /api/tags"""
        client = await self._get_client()
        try:
            response = await client.get(f"{self.base_url}/api/tags", timeout=10.0)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceError(
                "ollama",
                f"Could not list models: {e}",
                code=ErrorCode.OLLAMA_UNAVAILABLE,
            )
        if not isinstance(data, dict):
            raise ExternalServiceError(
                "ollama",
                f"Unexpected /api/tags body type: {type(data).__name__}",
                code=ErrorCode.OLLAMA_UNAVAILABLE,
            )
        return list(data.get("models") or [])

    async def is_available(self) -> bool:
        try:
            client = await self._get_client()
            response = await client.get(f"{self.base_url}/api/tags", timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Ollama not available: {e}")
            return False


# Singleton instance
_ollama_client: Optional[OllamaClient] = None


def get_ollama_client() -> OllamaClient:
    """Get or create the singleton Ollama client."""
    global _ollama_client

    if _ollama_client is None:
        from config.settings import get_settings
        settings = get_settings()
        _ollama_client = OllamaClient(
            base_url=settings.ollama_base_url,
            timeout=settings.ollama_timeout,
            default_model=settings.ollama_model,
        )

    return _ollama_client


async def close_ollama_client():
    """Close the singleton Ollama client."""
    global _ollama_client

    if _ollama_client is not None:
        await _ollama_client.close()
        _ollama_client = None
