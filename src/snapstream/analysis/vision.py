"""
Vision Analysis Gateway
=======================

Analysis backend using Google Cloud Vision API text detection.

This gateway:
    - Calls document_text_detection on the stitched PNG
    - Returns the detected text plus a one-line summary
    - Wraps every failure in AnalysisGatewayError

Cloud Vision does not extract code or describe layout; the code field
is always left empty.
"""

import asyncio
import logging
from typing import Optional

from snapstream.analysis.gateway import AnalysisGatewayError
from snapstream.models.analysis import AnalysisResult
from snapstream.stitch.engine import CompositeImage


logger = logging.getLogger(__name__)


class VisionAnalysisGateway:
    """
    OCR analysis gateway backed by Google Cloud Vision.

    Attributes:
        timeout: Seconds before a call is abandoned
    """

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        timeout: float = 60.0,
        client=None,
    ) -> None:
        """
        Initialize Vision gateway.

        Args:
            credentials_path: Path to service account JSON (optional)
            timeout: Per-call timeout in seconds
            client: Pre-built ImageAnnotatorClient (skips SDK initialization)

        Raises:
            ImportError: If google-cloud-vision is not installed
            AnalysisGatewayError: If the client cannot be created
        """
        self.timeout = timeout
        self._api_call_count: int = 0
        self._api_error_count: int = 0

        self._client = client if client is not None else self._init_client(credentials_path)

        logger.info("VisionAnalysisGateway initialized")

    @staticmethod
    def _init_client(credentials_path: Optional[str]):
        """Initialize Google Cloud Vision client."""
        try:
            from google.cloud import vision
        except ImportError:
            raise ImportError(
                "google-cloud-vision is required for VisionAnalysisGateway. "
                "Install with: pip install google-cloud-vision"
            )

        try:
            if credentials_path:
                logger.info(f"Vision client initialized from: {credentials_path}")
                return vision.ImageAnnotatorClient.from_service_account_json(
                    credentials_path
                )
            logger.info("Vision client initialized with default credentials")
            return vision.ImageAnnotatorClient()
        except Exception as e:
            raise AnalysisGatewayError(f"Failed to initialize Vision client: {e}") from e

    async def analyze(self, image: CompositeImage) -> AnalysisResult:
        """
        Run OCR on a composite.

        Raises:
            AnalysisGatewayError: If the call fails, times out or the API
                reports an error
        """
        self._api_call_count += 1

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self._client.document_text_detection,
                    image={"content": image.data},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            self._api_error_count += 1
            logger.error(f"Vision API timed out after {self.timeout}s")
            raise AnalysisGatewayError(
                f"Vision API timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            self._api_error_count += 1
            logger.error(f"Vision API error: {e}. Total errors: {self._api_error_count}")
            raise AnalysisGatewayError(f"Vision API call failed: {e}") from e

        if response.error.message:
            self._api_error_count += 1
            logger.error(f"Vision API error: {response.error.message}")
            raise AnalysisGatewayError(f"Vision API: {response.error.message}")

        text = response.full_text_annotation.text.strip()
        if not text:
            return AnalysisResult(summary="No text detected.")

        lines = [line for line in text.splitlines() if line.strip()]
        return AnalysisResult(
            summary=f"{lines[0]} ({len(lines)} lines of text detected)",
            text=text,
        )

    def get_metrics(self) -> dict:
        """Get gateway metrics for observability."""
        return {
            "api_call_count": self._api_call_count,
            "api_error_count": self._api_error_count,
        }
