"""
Structural page access used by the extractor and the day fetcher.

A page session exposes XPath lookups over a node tree. Lookups are evaluated
relative to the node they are called on, so ancestor/sibling/descendant moves
are written as XPath (``..``, ``preceding-sibling::div``, ``.//a``).

`HtmlPage` implements the session over static HTML with lxml, which is how
saved page snapshots and test fixtures are read. The live Chrome-backed
session lives in :mod:`flight_prices.browser`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, Union

import lxml.html

from .errors import NodeNotFound


def normalize_text(text: Optional[str]) -> str:
    return " ".join((text or "").split())


class PageNode(Protocol):
    @property
    def text(self) -> str: ...

    def find(self, xpath: str) -> "PageNode": ...

    def find_all(self, xpath: str) -> List["PageNode"]: ...


class PageSession(Protocol):
    def navigate(self, url: str) -> None: ...

    def find(self, xpath: str) -> PageNode: ...

    def find_all(self, xpath: str) -> List[PageNode]: ...

    def save_snapshot(self, path: Union[str, Path]) -> Path: ...

    def close(self) -> None: ...


class HtmlNode:
    def __init__(self, element: lxml.html.HtmlElement) -> None:
        self._element = element

    @property
    def text(self) -> str:
        return normalize_text(self._element.text_content())

    def find(self, xpath: str) -> "HtmlNode":
        matches = self.find_all(xpath)
        if not matches:
            raise NodeNotFound(f"No element matches {xpath!r}")
        return matches[0]

    def find_all(self, xpath: str) -> List["HtmlNode"]:
        return [
            HtmlNode(match)
            for match in self._element.xpath(xpath)
            if isinstance(match, lxml.html.HtmlElement)
        ]

    def __repr__(self) -> str:
        return f"<HtmlNode {self._element.tag} {self.text[:30]!r}>"


class HtmlPage:
    """Page session over a fixed HTML document (or a set of them keyed by URL)."""

    def __init__(
        self,
        html: str = "<html><body></body></html>",
        snapshots: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.url: Optional[str] = None
        self.visited: List[str] = []
        self.closed = False
        self._snapshots: Dict[str, str] = dict(snapshots or {})
        self.load(html)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "HtmlPage":
        return cls(Path(path).read_text(encoding="utf-8"))

    def load(self, html: str) -> None:
        self._html = html
        self._root = HtmlNode(lxml.html.document_fromstring(html))

    def navigate(self, url: str) -> None:
        self.url = url
        self.visited.append(url)
        if url in self._snapshots:
            self.load(self._snapshots[url])

    def find(self, xpath: str) -> HtmlNode:
        return self._root.find(xpath)

    def find_all(self, xpath: str) -> List[HtmlNode]:
        return self._root.find_all(xpath)

    def save_snapshot(self, path: Union[str, Path]) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self._html, encoding="utf-8")
        return target

    def close(self) -> None:
        self.closed = True
