"""Embedded image handling.

Node content embeds figures as markdown images hosted on Firebase Storage:

    ![](https://firebasestorage.googleapis.com/v0/b/.../o/imgs%2F...png?alt=media&token=...)

Those URLs are public, so they can be listed as-is or fetched and
re-encoded as base64 for clients that want inline image data.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass

import httpx
from loguru import logger

from discoursegraph.config import get_settings

DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class ImageData:
    """A fetched image, base64-encoded."""

    url: str
    data: str
    mime_type: str = DEFAULT_MIME_TYPE


def extract_image_urls(content: str, prefix: str | None = None) -> list[str]:
    """Extract unique image URLs from node content.

    URLs end at whitespace or a closing parenthesis (markdown syntax).

    Args:
        content: Markdown content of a node.
        prefix: Host prefix of image URLs. Defaults to settings.

    Returns:
        Unique URLs in order of first appearance.
    """
    prefix = prefix or get_settings().image_url_prefix
    pattern = re.escape(prefix) + r"[^\s)]+"

    urls: list[str] = []
    for match in re.findall(pattern, content or ""):
        if match not in urls:
            urls.append(match)
    return urls


def fetch_image(url: str, *, timeout: float | None = None,
                client: httpx.Client | None = None) -> ImageData | None:
    """Fetch an image and return it base64-encoded.

    Best-effort: any HTTP or network failure is logged and yields None.

    Args:
        url: Image URL.
        timeout: Request timeout in seconds. Defaults to settings.
        client: Optional shared client (one is created otherwise).

    Returns:
        ImageData, or None if the fetch failed.
    """
    timeout = timeout if timeout is not None else get_settings().image_fetch_timeout

    try:
        if client is None:
            with httpx.Client(timeout=timeout, follow_redirects=True) as own_client:
                response = own_client.get(url)
        else:
            response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Image fetch failed for {}: {}", url[:80], exc)
        return None

    mime_type = response.headers.get("content-type") or DEFAULT_MIME_TYPE
    data = base64.b64encode(response.content).decode("ascii")
    logger.debug("Fetched image {} ({} bytes, {})", url[:80], len(response.content), mime_type)
    return ImageData(url=url, data=data, mime_type=mime_type)


def fetch_images(urls: list[str], *, timeout: float | None = None) -> list[ImageData]:
    """Fetch several images with one client, skipping failures."""
    if not urls:
        return []

    timeout = timeout if timeout is not None else get_settings().image_fetch_timeout
    images: list[ImageData] = []
    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        for url in urls:
            image = fetch_image(url, client=client)
            if image is not None:
                images.append(image)
    return images
