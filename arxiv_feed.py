"""arXiv metadata ingestion helpers."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from datetime import UTC, datetime

import requests

from models import Paper

# Public arXiv export API. Returns an Atom feed with one entry per id.
ARXIV_API_URL = "https://export.arxiv.org/api/query"
REQUEST_TIMEOUT_SECONDS = 20

_ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}
_ARXIV_ID_PATTERN = re.compile(r"(?:arxiv\.org/(?:abs|pdf)/|arxiv:)?(\d{4}\.\d{4,5})(?:v\d+)?", re.IGNORECASE)

LOGGER = logging.getLogger(__name__)


def extract_arxiv_id(text: str) -> str | None:
    """Return the first arXiv id (e.g. ``2401.00001``) found in a URL, tag or bare id."""
    if not text:
        return None
    match = _ARXIV_ID_PATTERN.search(text)
    return match.group(1) if match else None


def fetch_paper(arxiv_id: str) -> Paper | None:
    """Fetch and normalize one paper from the arXiv export API.

    Returns None when the request fails, the payload cannot be parsed, or
    arXiv has no entry for the id.
    """
    try:
        response = requests.get(
            ARXIV_API_URL,
            params={"id_list": arxiv_id},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        LOGGER.warning("arXiv fetch: failed for id=%s: %s", arxiv_id, exc)
        return None

    try:
        papers = _parse_atom_payload(response.content)
    except ET.ParseError as exc:
        LOGGER.warning("arXiv fetch: unparseable payload for id=%s: %s", arxiv_id, exc)
        return None

    if not papers:
        LOGGER.warning("arXiv fetch: paper %s not found", arxiv_id)
        return None

    paper = papers[0]
    LOGGER.info("arXiv fetch: id=%s title=%r categories=%s", arxiv_id, paper.title, list(paper.categories))
    return paper


def _parse_atom_payload(payload: str | bytes) -> list[Paper]:
    """Parse an arXiv Atom feed into normalized Paper objects."""
    root = ET.fromstring(payload)

    parsed: list[Paper] = []
    for entry in root.findall("atom:entry", _ATOM_NS):
        entry_id = _text(entry, "atom:id")
        paper_id = extract_arxiv_id(entry_id or "")
        title = _collapse(_text(entry, "atom:title"))

        # Unknown ids come back as an entry titled "Error" with no arXiv id.
        if not paper_id or not title:
            continue

        html_url = ""
        for link in entry.findall("atom:link", _ATOM_NS):
            if link.get("rel") == "alternate" or link.get("type") == "text/html":
                html_url = link.get("href", "")
                break

        parsed.append(
            Paper(
                paper_id=paper_id,
                title=title,
                abstract=_collapse(_text(entry, "atom:summary")),
                categories=tuple(
                    cat.get("term", "") for cat in entry.findall("atom:category", _ATOM_NS) if cat.get("term")
                ),
                authors=tuple(
                    _collapse(name.text)
                    for name in entry.findall("atom:author/atom:name", _ATOM_NS)
                    if name.text
                ),
                url=html_url or f"https://arxiv.org/abs/{paper_id}",
                published_at=_parse_datetime(_text(entry, "atom:published")),
            )
        )

    return parsed


def _text(element: ET.Element, path: str) -> str | None:
    child = element.find(path, _ATOM_NS)
    return child.text if child is not None else None


def _collapse(value: str | None) -> str:
    # arXiv wraps titles and abstracts across lines.
    return " ".join(value.split()) if value else ""


def _parse_datetime(raw: str | None) -> datetime | None:
    if not raw:
        return None

    try:
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
