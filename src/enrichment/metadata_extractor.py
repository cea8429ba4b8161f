# src/enrichment/metadata_extractor.py
# Extractor de metadatos de página
# ================================

"""
Lee la página de un artículo y extrae los metadatos de vista previa
(Open Graph y Twitter Card).

Cualquier fallo al descargar (red, timeout, demasiadas redirecciones, estado
no 2xx, respuesta que no es HTML) devuelve metadatos vacíos: quedarse sin
imagen es un resultado normal, no un error.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from config.settings import ENRICHMENT_CONFIG
from src.contracts import PageMetadataModel
from src.utils.logger import EventLogger

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class MetadataExtractor:
    """Open Graph / Twitter Card extractor over a ``requests`` session."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        user_agent: Optional[str] = None,
        max_content_bytes: Optional[int] = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        self.timeout = float(timeout or ENRICHMENT_CONFIG["timeout_seconds"])
        self.max_redirects = int(max_redirects or ENRICHMENT_CONFIG["max_redirects"])
        self.user_agent = user_agent or ENRICHMENT_CONFIG["user_agent"]
        self.max_content_bytes = int(max_content_bytes or ENRICHMENT_CONFIG["max_content_bytes"])
        self.session = session or self._create_session()
        self.events = event_logger or EventLogger("enrichment.metadata", "MetadataExtractor")

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "text/html",
                "Accept-Language": "es-ES,es;q=0.9,en;q=0.5",
            }
        )
        session.max_redirects = self.max_redirects
        return session

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def extract_metadata(self, url: str) -> PageMetadataModel:
        if not _is_http_url(url):
            self.events.emit("debug", "enrichment.metadata.invalid_url", details={"url": url})
            return PageMetadataModel.empty()

        html = self._download(url)
        if html is None:
            return PageMetadataModel.empty()
        return self.parse_html(html, base_url=url)

    def parse_html(self, html: str, *, base_url: str) -> PageMetadataModel:
        soup = BeautifulSoup(html, "html.parser")
        normalize = lambda value: _normalize_url(value, base_url)  # noqa: E731

        return PageMetadataModel(
            og_image=_first(
                normalize,
                _meta(soup, "og:image"),
                _meta(soup, "og:image:secure_url"),
                _link_href(soup, "image_src"),
            ),
            twitter_image=_first(
                normalize,
                _meta(soup, "twitter:image"),
                _meta(soup, "twitter:image:src"),
            ),
            title=_first(
                _clean_text,
                _meta(soup, "og:title"),
                _meta(soup, "twitter:title"),
                soup.title.get_text() if soup.title else None,
            ),
            description=_first(
                _clean_text,
                _meta(soup, "og:description"),
                _meta(soup, "twitter:description"),
                _meta(soup, "description"),
            ),
        )

    @staticmethod
    def get_best_image_url(metadata: PageMetadataModel) -> Optional[str]:
        """og:image first, then twitter:image, else None."""
        return metadata.og_image or metadata.twitter_image or None

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------
    def _download(self, url: str) -> Optional[str]:
        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as exc:
            self.events.emit(
                "info",
                "enrichment.metadata.fetch_failed",
                details={"url": url, "error": f"{exc.__class__.__name__}: {exc}"},
            )
            return None

        if not 200 <= response.status_code < 300:
            self.events.emit(
                "info",
                "enrichment.metadata.http_error",
                details={"url": url, "status": response.status_code},
            )
            return None

        content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
        if content_type not in HTML_CONTENT_TYPES:
            self.events.emit(
                "info",
                "enrichment.metadata.not_html",
                details={"url": url, "content_type": content_type or None},
            )
            return None

        body = response.content[: self.max_content_bytes]
        try:
            return body.decode(response.encoding or "utf-8", errors="replace")
        except LookupError:
            # Unknown charset in Content-Type; most Spanish press pages are utf-8.
            return body.decode("utf-8", errors="replace")


def _is_http_url(url: Any) -> bool:
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:  # "Invalid IPv6 URL"
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _meta(soup: BeautifulSoup, key: str) -> Optional[str]:
    # Open Graph uses property=, Twitter cards use name=; sites mix both.
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: key})
        if tag is not None and tag.get("content"):
            return tag["content"]
    return None


def _link_href(soup: BeautifulSoup, rel: str) -> Optional[str]:
    tag = soup.find("link", rel=rel)
    if tag is not None:
        return tag.get("href")
    return None


def _first(transform: Callable[[str], Optional[str]], *candidates: Optional[str]) -> Optional[str]:
    for candidate in _present(candidates):
        value = transform(candidate)
        if value:
            return value
    return None


def _present(values: Iterable[Optional[str]]) -> Iterable[str]:
    return (value for value in values if value and value.strip())


def _clean_text(value: str) -> Optional[str]:
    return " ".join(value.split()) or None


def _normalize_url(value: str, base_url: str) -> Optional[str]:
    value = value.strip()
    if value.startswith("//"):
        value = f"https:{value}"
    elif not value.startswith(("http://", "https://")):
        try:
            value = urljoin(base_url, value)
        except ValueError:
            return None
    return value if _is_http_url(value) else None
