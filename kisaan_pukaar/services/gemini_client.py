# kisaan_pukaar/services/gemini_client.py
import os
import httpx
from typing import Any, Dict, Optional

from kisaan_pukaar import config


class GeminiError(RuntimeError):
    pass


class GeminiClient:
    """Thin client for the Gemini generateContent endpoint.

    One POST per call, no retries. The API key travels as the ``key`` query
    parameter, which is how the endpoint authenticates.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = config.GEMINI_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or config.GEMINI_API_URL
        self.api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        self.timeout = timeout

        # Single AsyncClient can be shared if you manage lifecycle externally.
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the generated text.
        Raises GeminiError on any network, HTTP or response-shape failure.
        """
        if not self.api_key:
            raise GeminiError("GEMINI_API_KEY is not configured")

        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            res = await self._client.post(self.url, params={"key": self.api_key}, json=payload)
            res.raise_for_status()
            data = res.json()
        except httpx.HTTPStatusError as e:
            raise GeminiError(f"HTTP {e.response.status_code}: {e.response.text[:200]}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise GeminiError(f"Gemini request failed: {e}") from e

        return _extract_text(data)


def _extract_text(data: Any) -> str:
    # candidates[0].content.parts[0].text
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise GeminiError(f"Unexpected response shape: {data!r}"[:300]) from e
    if not isinstance(text, str):
        raise GeminiError(f"Invalid text part: {text!r}")
    return text
