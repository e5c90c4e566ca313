"""Source normalization for recipe imports.

An import names its source either by locator (a web page URI) or by an
inline image (a base64 data URI). Both are normalized to one of two
immutable source types before extraction. For locator sources this module
also performs the retrieval step: downloading the page, reducing it to
readable text and collecting candidate photo URIs.
"""

import base64
import binascii
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from src.errors import ExtractionFailure, RequestError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

# "url" and "screenshot" are accepted as older names
SOURCE_KINDS = {
    "locator": "locator",
    "url": "locator",
    "image": "image",
    "screenshot": "image",
}

HTML_CONTENT_TYPES = ("text/html", "application/xhtml", "application/xml", "text/xml")

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(;[^,;]*)*?);base64,", re.I)


@dataclass(frozen=True)
class LocatorSource:
    """A recipe published at a web address."""

    uri: str


@dataclass(frozen=True)
class ImageSource:
    """A recipe depicted in an image (photo, scan or screenshot)."""

    data: bytes
    mime: str

    def to_data_uri(self) -> str:
        return to_data_uri(self.data, self.mime)


SourceSelection = LocatorSource | ImageSource


def normalize_mime(mime: str | None) -> str:
    """Lower-case a content type and drop its parameters."""
    if not mime:
        return ""
    mime = mime.split(";", 1)[0].strip().lower()
    return "image/jpeg" if mime == "image/jpg" else mime


def sniff_image_mime(data: bytes) -> str | None:
    """Identify an image type from its leading bytes."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def to_data_uri(data: bytes, mime: str) -> str:
    """Encode bytes as a self-describing base64 data URI."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_uri(value: str) -> tuple[bytes, str]:
    """Decode a base64 data URI into (bytes, mime).

    Raises:
        ValueError: if the value is not a base64 data URI or does not decode.
    """
    match = _DATA_URI_RE.match(value.strip())
    if not match:
        raise ValueError("expected a base64 data URI")
    payload = value.strip()[match.end() :]
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64 payload: {e}") from e
    if not data:
        raise ValueError("empty image payload")
    return data, normalize_mime(match.group("mime"))


def validate_locator(uri: str) -> str:
    """Return the trimmed URI if it is an absolute http(s) address."""
    uri = uri.strip()
    parsed = urlparse(uri)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise RequestError("Locator must be an absolute http(s) URL")
    return uri


def decode_image(content: str, max_bytes: int) -> ImageSource:
    """Decode and check an inline image."""
    try:
        data, mime = parse_data_uri(content)
    except ValueError as e:
        raise RequestError("Image content must be a base64 data URI", details=str(e)) from e
    if mime not in ALLOWED_IMAGE_TYPES:
        allowed = ", ".join(sorted(ALLOWED_IMAGE_TYPES))
        raise RequestError(f"Unsupported image type '{mime}'. Allowed types: {allowed}")
    if len(data) > max_bytes:
        raise RequestError(f"Image too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")
    return ImageSource(data=data, mime=mime)


def normalize_source(kind: str, content: str, max_image_bytes: int) -> SourceSelection:
    """Turn an import request's (kind, content) pair into a source value."""
    normalized_kind = SOURCE_KINDS.get(kind.strip().lower())
    if normalized_kind is None:
        raise RequestError("Invalid import kind. Supported kinds: locator, image")
    if normalized_kind == "locator":
        return LocatorSource(uri=validate_locator(content))
    return decode_image(content, max_image_bytes)


# --- Page retrieval ---


@dataclass
class PageContent:
    """Readable content of a fetched recipe page."""

    uri: str
    text: str
    image_candidates: list[str] = field(default_factory=list)


def _is_recipe(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    item_type = item.get("@type")
    if isinstance(item_type, list):
        return "Recipe" in item_type
    return item_type == "Recipe"


def find_json_ld_recipes(soup: BeautifulSoup) -> list[dict]:
    """Collect Schema.org Recipe objects from the page's JSON-LD blocks."""
    recipes = []
    for script in soup.find_all("script", type="application/ld+json"):
        if not script.string:
            continue
        try:
            parsed = json.loads(script.string)
        except json.JSONDecodeError:
            continue
        candidates = parsed if isinstance(parsed, list) else [parsed]
        for candidate in candidates:
            if isinstance(candidate, dict) and isinstance(candidate.get("@graph"), list):
                recipes.extend(item for item in candidate["@graph"] if _is_recipe(item))
            elif _is_recipe(candidate):
                recipes.append(candidate)
    return recipes


def _json_ld_images(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return [url] if isinstance(url, str) else []
    if isinstance(value, list):
        return [url for item in value for url in _json_ld_images(item)]
    return []


def parse_page(uri: str, html: str, max_chars: int) -> PageContent:
    """Reduce an HTML page to text plus candidate photo URIs."""
    soup = BeautifulSoup(html, features="html.parser")

    images: list[str] = []
    for meta in soup.find_all("meta", attrs={"property": ["og:image", "og:image:url"]}):
        if meta.get("content"):
            images.append(meta["content"])

    parts = []
    for recipe in find_json_ld_recipes(soup):
        images.extend(_json_ld_images(recipe.get("image")))
        parts.append("Structured recipe data:\n" + json.dumps(recipe, ensure_ascii=False))

    for tag in soup(["script", "style", "noscript", "svg", "nav", "footer", "form", "iframe"]):
        tag.decompose()

    title = soup.title.get_text(strip=True) if soup.title else ""
    body_text = soup.get_text("\n", strip=True)
    body_text = re.sub(r"\n{2,}", "\n", body_text)
    if title:
        parts.insert(0, f"Page title: {title}")
    parts.append(body_text)

    resolved = []
    for image in images:
        absolute = urljoin(uri, image.strip())
        if absolute.startswith(("http://", "https://")) and absolute not in resolved:
            resolved.append(absolute)

    return PageContent(uri=uri, text="\n\n".join(parts)[:max_chars], image_candidates=resolved)


class PageFetcher:
    """Downloads recipe pages for locator imports."""

    def __init__(self, http_client: httpx.AsyncClient, max_bytes: int, max_chars: int) -> None:
        self.http_client = http_client
        self.max_bytes = max_bytes
        self.max_chars = max_chars

    async def fetch(self, uri: str) -> PageContent:
        """Fetch and parse a page.

        Raises:
            ExtractionFailure: if the page cannot be retrieved as HTML.
        """
        logger.info(f"Fetching recipe page {uri}")
        try:
            async with self.http_client.stream(
                "GET", uri, headers=BROWSER_HEADERS, follow_redirects=True
            ) as response:
                if response.status_code >= 400:
                    raise ExtractionFailure(
                        "Could not retrieve the recipe page",
                        details=f"HTTP {response.status_code} from {uri}",
                    )
                content_type = response.headers.get("content-type", "").lower()
                if not content_type.startswith(HTML_CONTENT_TYPES):
                    raise ExtractionFailure(
                        "The locator does not point to a web page",
                        details=f"content type {content_type or 'unknown'}",
                    )
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        raise ExtractionFailure("The recipe page is too large")
                encoding = response.encoding or "utf-8"
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {uri}: {e}")
            raise ExtractionFailure("Could not retrieve the recipe page", details=str(e)) from e

        html = bytes(body).decode(encoding, errors="replace")
        page = parse_page(uri, html, self.max_chars)
        logger.info(
            f"Fetched {len(body)} bytes from {uri}, "
            f"{len(page.image_candidates)} image candidate(s)"
        )
        return page
