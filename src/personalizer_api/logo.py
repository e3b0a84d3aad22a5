"""Resolve the client logo URL and inject it into the rendered page."""

import html as html_lib
import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

_LOGO_IMG_RE = re.compile(
    r"<img\b[^>]*(?<![\w-])id\s*=\s*[\"']logo-img[\"'][^>]*>", re.IGNORECASE
)
_SRC_RE = re.compile(r"(?<![\w-])src\s*=\s*([\"'])(.*?)\1", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"(?<![\w-])style\s*=\s*([\"'])(.*?)\1", re.IGNORECASE | re.DOTALL)
_HIDDEN_RE = re.compile(r"display\s*:\s*none", re.IGNORECASE)

_URL_RE = re.compile(r"https?://[^\s\"'<>()\[\]]+", re.IGNORECASE)
_IMAGE_URL_RE = re.compile(r"\.(?:png|jpe?g|gif|svg|webp)(?:[?#].*)?$", re.IGNORECASE)

SHOPIFY_GID_PREFIX = "gid://shopify/"


def is_shopify_gid(value: Optional[str]) -> bool:
    return bool(value) and value.strip().startswith(SHOPIFY_GID_PREFIX)


def find_prompt_logo_url(prompt: str) -> Optional[str]:
    """Return the first image-looking URL in *prompt*, or a URL mentioning a logo."""
    urls = [url.rstrip(".,;:!?") for url in _URL_RE.findall(prompt or "")]
    for url in urls:
        if _IMAGE_URL_RE.search(url):
            return url
    for url in urls:
        if "logo" in url.lower():
            return url
    return None


def resolve_logo_source(
    upload_url: Optional[str] = None,
    gid_url: Optional[str] = None,
    prompt: Optional[str] = None,
) -> Optional[str]:
    """Pick the logo URL: explicit upload, then resolved Shopify GID, then the prompt."""
    if upload_url and not is_shopify_gid(upload_url):
        return upload_url.strip()
    if gid_url:
        return gid_url.strip()
    return find_prompt_logo_url(prompt or "")


def _rewrite_img_tag(tag: str, logo_url: str) -> str:
    escaped = html_lib.escape(logo_url, quote=True)

    src_match = _SRC_RE.search(tag)
    if src_match:
        quote = src_match.group(1)
        tag = f"{tag[: src_match.start()]}src={quote}{escaped}{quote}{tag[src_match.end():]}"
    else:
        tag = f'<img src="{escaped}"{tag[len("<img"):]}'

    style_match = _STYLE_RE.search(tag)
    if style_match and _HIDDEN_RE.search(style_match.group(2)):
        quote = style_match.group(1)
        style = _HIDDEN_RE.sub("display: block", style_match.group(2))
        tag = f"{tag[: style_match.start()]}style={quote}{style}{quote}{tag[style_match.end():]}"
    return tag


def inject_logo(html: str, logo_url: Optional[str]) -> str:
    """
    Point ``<img id="logo-img">`` at *logo_url* and make it visible.

    Returns *html* unchanged when there is no logo URL or no such element.
    """
    if not logo_url:
        return html

    match = _LOGO_IMG_RE.search(html)
    if match is None:
        logger.info("Template has no logo-img element, skipping logo injection")
        return html

    new_tag = _rewrite_img_tag(match.group(0), logo_url)
    logger.info(f"Injected logo URL: {logo_url}")
    return html[: match.start()] + new_tag + html[match.end():]
