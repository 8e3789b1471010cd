from __future__ import annotations
import logging
import re
from urllib.parse import urlsplit

from ..models.source_info import SourceInfo

logger = logging.getLogger(__name__)

# <a href="…"> … <img  (a link wrapping the copied image)
_LINK_RE = re.compile(r"""<a[^>]+href=["']([^"']+)["'][^>]*>[\s\S]*?<img""", re.IGNORECASE)
_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)
_IMG_ALT_RE = re.compile(r"""<img[^>]+alt=["']([^"']+)["']""", re.IGNORECASE)


class SourceService:
    """
    Recovers attribution info from the HTML a browser places on the
    clipboard when an image is copied from a web page.
    """

    @staticmethod
    def extract_from_html(html: str) -> SourceInfo | None:
        link = _LINK_RE.search(html)
        img_src = _IMG_SRC_RE.search(html)
        alt = _IMG_ALT_RE.search(html)

        if not link and not img_src:
            return None

        url = (link.group(1) if link else "") or (img_src.group(1) if img_src else "")
        title = alt.group(1) if alt else ""

        if not title and url:
            try:
                title = urlsplit(url).hostname or ""
            except ValueError:
                logger.debug(f"Could not parse source URL {url!r}")

        return SourceInfo(url=url, title=title)
