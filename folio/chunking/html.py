"""
HTML chunker - Splits HTML at block-level elements using BeautifulSoup

Each block element (p, li, table, section, ...) becomes a chunk rendered as
its outer HTML. Inline content and bare text between blocks are grouped into
paragraph chunks so no translatable text is dropped. script, style, svg and
math are removed from the tree before anything is rendered.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from folio.chunking.base import ChunkerOptions, ChunkList, TokenCounter, split_by_sentences
from folio.models.chunk import Chunk, ChunkType
from folio.utils.cancellation import check_cancelled

logger = logging.getLogger(__name__)

BLOCK_ELEMENTS = frozenset({
    "address", "article", "aside", "blockquote", "canvas", "dd", "div", "dl",
    "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2",
    "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav", "noscript",
    "ol", "p", "pre", "section", "table", "tbody", "td", "tfoot", "th",
    "thead", "tr", "ul", "video",
})

NON_TRANSLATABLE_ELEMENTS = frozenset({"script", "style", "svg", "math"})

TRANSLATABLE_ATTRIBUTES = ("alt", "title", "placeholder", "aria-label", "aria-description")

SECTION_ELEMENTS = frozenset({"section", "article", "header", "footer", "nav", "aside", "main"})


def element_chunk_type(name: str) -> ChunkType:
    """Chunk type for a block element name"""
    if name in {"h1", "h2", "h3", "h4", "h5", "h6"}:
        return ChunkType.HEADING
    if name in {"ul", "ol", "dl"}:
        return ChunkType.LIST
    if name in {"pre", "code"}:
        return ChunkType.CODE
    if name in SECTION_ELEMENTS:
        return ChunkType.SECTION
    return ChunkType.PARAGRAPH


@dataclass
class _Unit:
    """A candidate chunk before budget checks"""
    html: str
    type: ChunkType
    text: str
    element: Optional[Tag] = None


def _is_block(node) -> bool:
    return isinstance(node, Tag) and node.name.lower() in BLOCK_ELEMENTS


def _has_block_descendant(tag: Tag) -> bool:
    return tag.find(lambda t: t.name.lower() in BLOCK_ELEMENTS) is not None


def _has_translatable_content(nodes: Sequence) -> bool:
    for node in nodes:
        if isinstance(node, NavigableString):
            if node.strip():
                return True
            continue
        if node.get_text().strip():
            return True
        for tag in [node, *node.find_all(True)]:
            if any(tag.get(attr) for attr in TRANSLATABLE_ATTRIBUTES):
                return True
    return False


def _normalized_text(nodes: Sequence) -> str:
    parts = [str(n) if isinstance(n, NavigableString) else n.get_text(" ") for n in nodes]
    return " ".join(" ".join(parts).split())


def collect_units(container: Tag) -> List[_Unit]:
    """
    Walk a container's children and produce block and inline-run units.

    Non-block elements that wrap blocks (html, body, span around a div) are
    descended into; comments and doctypes are skipped.
    """
    units: List[_Unit] = []
    pending: List = []

    def flush():
        if pending and _has_translatable_content(pending):
            html = "".join(str(n) for n in pending).strip()
            units.append(_Unit(html=html, type=ChunkType.PARAGRAPH, text=_normalized_text(pending)))
        pending.clear()

    for child in list(container.children):
        if isinstance(child, PreformattedString):
            continue
        if isinstance(child, NavigableString):
            pending.append(child)
            continue
        if not isinstance(child, Tag):
            continue

        if _is_block(child):
            flush()
            if _has_translatable_content([child]):
                units.append(_Unit(
                    html=str(child),
                    type=element_chunk_type(child.name.lower()),
                    text=_normalized_text([child]),
                    element=child
                ))
        elif _has_block_descendant(child):
            flush()
            units.extend(collect_units(child))
        else:
            pending.append(child)

    flush()
    return units


class HtmlChunker:
    """
    Block-level HTML chunker.

    Usage:
        chunks = HtmlChunker()("<h1>Title</h1><p>Body</p>")
        # [Chunk(type=heading, index=0), Chunk(type=paragraph, index=1)]
    """

    def __call__(self, text: str, options: Optional[ChunkerOptions] = None) -> List[Chunk]:
        options = options or ChunkerOptions()
        check_cancelled(options.cancellation)

        if not text.strip():
            return []

        soup = BeautifulSoup(text, "html.parser")
        for element in soup.find_all(list(NON_TRANSLATABLE_ELEMENTS)):
            element.decompose()

        out = ChunkList()
        for unit in collect_units(soup):
            check_cancelled(options.cancellation)
            self._emit(unit, options.max_tokens, options.counter, out)

        logger.debug(f"HTML chunked into {len(out.chunks)} chunk(s)")
        return out.chunks

    def _emit(self, unit: _Unit, max_tokens: int, counter: TokenCounter, out: ChunkList) -> None:
        if counter(unit.html) <= max_tokens:
            out.add(unit.html, unit.type)
            return

        if unit.element is not None:
            block_children = [c for c in unit.element.children if _is_block(c)]
            if len(block_children) > 1:
                for sub_unit in collect_units(unit.element):
                    self._emit(sub_unit, max_tokens, counter, out)
                return

        # No block structure left to split on: fall back to sentences of the text
        for part in split_by_sentences(unit.text, max_tokens, counter):
            out.add(part, unit.type)
