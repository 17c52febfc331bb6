"""
Gemini Analysis Gateway
=======================

Analysis backend using the Gemini API (google-genai).

This gateway:
    - Sends the stitched PNG with a fixed analysis prompt
    - Requests a JSON response with summary / code / text keys
    - Parses the response with the shared gateway parser
    - Wraps every failure in AnalysisGatewayError

Design Rules:
    - Fail fast on misconfiguration (missing SDK)
    - One call per analyze(), no retries
    - Log all API calls
"""

import asyncio
import logging
import time
from typing import Optional

from snapstream.analysis.gateway import AnalysisGatewayError, parse_analysis_response
from snapstream.models.analysis import AnalysisResult
from snapstream.stitch.engine import CompositeImage


logger = logging.getLogger(__name__)


ANALYSIS_PROMPT = """Analyze this screenshot deeply.
1. If it contains code, extract the main logic into a code block.
2. If it contains text, provide a concise summary.
3. If it's a UI, describe the layout and key elements.

Return the response in JSON format with keys: 'summary', 'code' (optional), 'text' (extracted visible text)."""


class GeminiAnalysisGateway:
    """
    Analysis gateway backed by a Gemini multimodal model.

    Attributes:
        model: Gemini model name
        timeout: Seconds before a call is abandoned
    """

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        client=None,
    ) -> None:
        """
        Initialize Gemini gateway.

        Args:
            model: Gemini model name
            api_key: API key (None = SDK default environment lookup)
            timeout: Per-call timeout in seconds
            client: Pre-built genai.Client (skips SDK initialization)

        Raises:
            ImportError: If google-genai is not installed
        """
        self.model = model
        self.timeout = timeout

        self._api_call_count: int = 0
        self._api_error_count: int = 0
        self._last_latency_ms: float = 0.0

        self._client = client if client is not None else self._init_client(api_key)

        logger.info(f"GeminiAnalysisGateway initialized: model={model}")

    @staticmethod
    def _init_client(api_key: Optional[str]):
        """Initialize google-genai client."""
        try:
            from google import genai
        except ImportError:
            raise ImportError(
                "google-genai is required for GeminiAnalysisGateway. "
                "Install with: pip install google-genai"
            )

        if api_key:
            return genai.Client(api_key=api_key)
        return genai.Client()

    async def analyze(self, image: CompositeImage) -> AnalysisResult:
        """
        Analyze a composite with Gemini.

        Raises:
            AnalysisGatewayError: If the call fails or times out
        """
        start_time = time.time()
        self._api_call_count += 1

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self._client.models.generate_content,
                    model=self.model,
                    contents=[
                        {
                            "role": "user",
                            "parts": [
                                {
                                    "inline_data": {
                                        "mime_type": image.mime_type,
                                        "data": image.data,
                                    }
                                },
                                {"text": ANALYSIS_PROMPT},
                            ],
                        }
                    ],
                    config={"response_mime_type": "application/json"},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            self._api_error_count += 1
            logger.error(f"Gemini analysis timed out after {self.timeout}s")
            raise AnalysisGatewayError(
                f"Gemini analysis timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            self._api_error_count += 1
            logger.error(
                f"Gemini analysis failed: {e}. "
                f"Total errors: {self._api_error_count}"
            )
            raise AnalysisGatewayError(f"Gemini analysis failed: {e}") from e

        self._last_latency_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Gemini API: {image!r}, latency={self._last_latency_ms:.0f}ms"
        )

        return parse_analysis_response(response.text)

    @property
    def api_call_count(self) -> int:
        """Total API calls made."""
        return self._api_call_count

    @property
    def api_error_count(self) -> int:
        """Total API errors."""
        return self._api_error_count

    def get_metrics(self) -> dict:
        """Get gateway metrics for observability."""
        return {
            "model": self.model,
            "api_call_count": self._api_call_count,
            "api_error_count": self._api_error_count,
            "last_latency_ms": round(self._last_latency_ms, 1),
        }
