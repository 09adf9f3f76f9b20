"""
Multimodal context builder
Validates page images (PNG and JPEG only) and attaches them to a model session
"""

import asyncio
import base64
import binascii
import io
import logging
import re
from typing import Awaitable, Callable, List, Optional, Tuple

import httpx
from PIL import Image

from ..core.config import PagePixieConfig
from ..exceptions import NetworkFetchError, ValidationError
from ..models.page import PageContent
from ..models.session import ContextMessage, ImagePart, TextPart
from ..providers.base import BaseModelSession

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = ("image/png", "image/jpeg")

# Resolves an ephemeral "blob:" reference to (bytes, content type)
BlobResolver = Callable[[str], Awaitable[Tuple[bytes, Optional[str]]]]

_DATA_URL_MIME = re.compile(r"^data:(.*?);", re.IGNORECASE)


class ImageContextBuilder:
    """
    Builds a multimodal context message from a page's images

    MIME types are sniffed from the data URL header or the response
    content-type header, never from the URL's file extension. Images that
    fail validation are skipped.
    """

    def __init__(
        self,
        config: PagePixieConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        blob_resolver: Optional[BlobResolver] = None
    ):
        self.config = config
        self.blob_resolver = blob_resolver
        self._owns_client = http_client is None
        self._client = http_client
        self._client_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """
        HTTP client for image fetches

        A client created here is bound to the event loop that first used it;
        the sync API runs each call on its own loop, so a new loop gets a new
        client.
        """
        if self._owns_client:
            loop = asyncio.get_running_loop()
            if self._client is not None and self._client_loop is not loop:
                logger.debug("Event loop changed, replacing image HTTP client")
                self._client = None

            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=self.config.image_fetch_timeout,
                    follow_redirects=True,
                )
                self._client_loop = loop

        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this builder created it"""
        if self._owns_client and self._client is not None:
            # A client from a finished loop cannot be closed on this one
            if self._client_loop is asyncio.get_running_loop():
                await self._client.aclose()
            self._client = None
            self._client_loop = None

    def decode_data_url(self, url: str) -> ImagePart:
        """
        Decode an inline data URL into raw image bytes

        Raises:
            ValidationError: If the URL is malformed or not PNG/JPEG
        """
        parts = url.split(",")
        if len(parts) != 2:
            raise ValidationError("Data URL must contain exactly one payload segment")

        header, payload = parts
        match = _DATA_URL_MIME.match(header)
        if not match or not match.group(1):
            raise ValidationError("Data URL has no MIME type")

        mime_type = match.group(1).strip().lower()
        self._check_mime(mime_type, url)

        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Invalid base64 payload in data URL: {e}") from e

        if not data:
            raise ValidationError("Data URL payload is empty")

        return ImagePart(data=data, mime_type=mime_type)

    async def fetch_image(self, url: str) -> ImagePart:
        """
        Fetch a network image and validate its content type

        Raises:
            NetworkFetchError: On transport failure or non-success status
            ValidationError: If the content type is missing or unsupported
        """
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise NetworkFetchError(f"Failed to fetch image: {e}", url) from e

        if not response.is_success:
            raise NetworkFetchError(
                f"Image request returned HTTP {response.status_code}", url, response.status_code
            )

        return self._from_payload(response.content, response.headers.get("content-type"), url)

    async def resolve_blob(self, url: str) -> ImagePart:
        """Resolve an ephemeral blob reference through the configured resolver"""
        if self.blob_resolver is None:
            raise ValidationError(f"No resolver available for blob reference: {url}")

        try:
            data, content_type = await self.blob_resolver(url)
        except Exception as e:
            raise NetworkFetchError(f"Failed to resolve blob: {e}", url) from e

        return self._from_payload(data, content_type, url)

    async def load_image(self, url: str) -> ImagePart:
        """Load and validate one image reference, dispatching on its scheme"""
        scheme = url.split(":", 1)[0].lower() if ":" in url else ""

        if scheme == "data":
            image = self.decode_data_url(url)
        elif scheme in ("http", "https"):
            image = await self.fetch_image(url)
        elif scheme == "blob":
            image = await self.resolve_blob(url)
        else:
            raise ValidationError(f"Unsupported image URL scheme: {scheme or url[:30]}")

        if self.config.optimize_images:
            image = await asyncio.get_running_loop().run_in_executor(None, self._optimize_image, image)

        return image

    async def collect_images(self, page: PageContent) -> List[ImagePart]:
        """Validate the page's images in order, stopping at the configured cap"""
        images: List[ImagePart] = []

        for url in page.images:
            if len(images) >= self.config.max_images:
                break

            try:
                images.append(await self.load_image(url))
            except (ValidationError, NetworkFetchError) as e:
                logger.debug(f"Skipping image {url[:80]}: {e}")

        return images

    async def build_context(self, page: PageContent) -> Optional[ContextMessage]:
        """Build the multimodal context message, or None when no image validates"""
        images = await self.collect_images(page)

        if not images:
            if page.images:
                logger.warning("No valid images could be processed")
            return None

        preface = (
            f"Here are {len(images)} image(s) from the page \"{page.title}\". "
            "These images provide visual context for the content. Use them to enhance "
            "your understanding when summarizing or answering questions."
        )
        return ContextMessage(role="user", content=[TextPart(preface), *images])

    async def attach(self, session: BaseModelSession, page: PageContent) -> int:
        """
        Append the page's images to the session as context

        Returns:
            Number of images attached (0 means nothing was appended)
        """
        message = await self.build_context(page)
        if message is None:
            return 0

        await session.append([message])
        logger.info(f"Appended {message.image_count} image(s) to session context")
        return message.image_count

    def _from_payload(self, data: bytes, content_type: Optional[str], url: str) -> ImagePart:
        if not content_type:
            raise ValidationError(f"Missing content type for image: {url}")

        mime_type = content_type.split(";")[0].strip().lower()
        self._check_mime(mime_type, url)

        if not data:
            raise ValidationError(f"Empty image payload: {url}")

        return ImagePart(data=data, mime_type=mime_type)

    @staticmethod
    def _check_mime(mime_type: str, url: str) -> None:
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise ValidationError(f"Unsupported image type {mime_type} for {url[:80]}")

    def _optimize_image(self, image: ImagePart) -> ImagePart:
        """
        Downscale oversized images, keeping their format

        Raises:
            ValidationError: If the bytes are not a decodable image
        """
        try:
            with Image.open(io.BytesIO(image.data)) as img:
                max_width, max_height = self.config.image_max_size
                if img.width <= max_width and img.height <= max_height:
                    return image

                img.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
                buffer = io.BytesIO()

                if image.mime_type == "image/jpeg":
                    if img.mode != "RGB":
                        img = img.convert("RGB")
                    img.save(buffer, "JPEG", quality=self.config.jpeg_quality, optimize=True)
                else:
                    img.save(buffer, "PNG", optimize=True)

                logger.debug(f"Resized image to {img.width}x{img.height}")
                return ImagePart(data=buffer.getvalue(), mime_type=image.mime_type)

        except (Image.UnidentifiedImageError, OSError) as e:
            raise ValidationError(f"Undecodable image data: {e}") from e
