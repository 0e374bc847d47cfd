"""
Markdown chunker - Splits Markdown at headings, degrading to paragraphs,
lines and sentences for oversized sections

Sections start at ATX (`## Title`) or Setext (`Title` over `===`/`---`)
headings. Fenced code blocks (``` or ~~~ at column 0) are opaque: headings
inside them are ignored and paragraph splitting never cuts through them.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from folio.chunking.base import ChunkerOptions, ChunkList, TokenCounter, pack, split_by_sentences
from folio.models.chunk import Chunk, ChunkType
from folio.utils.cancellation import check_cancelled

logger = logging.getLogger(__name__)

ATX_HEADING = re.compile(r"^(#{1,6})\s")
CODE_FENCE = re.compile(r"^(`{3,}|~{3,})")
LIST_ITEM = re.compile(r"^(\s*)([-*+]|\d+\.)\s")
LEADING_SPACE = re.compile(r"^(\s*)")
LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class Section:
    """A heading (possibly empty) and the content under it"""
    heading: str
    content: str
    level: int

    @property
    def text(self) -> str:
        if self.heading and self.content:
            return f"{self.heading}\n\n{self.content}"
        return self.heading or self.content


def _setext_level(line: str) -> int:
    stripped = line.strip()
    if len(stripped) >= 3 and set(stripped) == {"="}:
        return 1
    if len(stripped) >= 3 and set(stripped) == {"-"}:
        return 2
    return 0


def _fence_start(line: str) -> Optional[Tuple[str, int]]:
    match = CODE_FENCE.match(line)
    if match is None:
        return None
    return match.group(1)[0], len(match.group(1))


def _is_fence_end(line: str, fence: Tuple[str, int]) -> bool:
    char, length = fence
    return re.match(rf"^{re.escape(char)}{{{length},}}\s*$", line) is not None


def parse_sections(text: str) -> List[Section]:
    """Parse Markdown into heading-delimited sections"""
    lines = LINE_BREAK.split(text)
    sections: List[Section] = []

    heading = ""
    level = 0
    body: List[str] = []
    fence: Optional[Tuple[str, int]] = None

    def flush():
        nonlocal heading, level, body
        if heading or body:
            section = Section(heading=heading, content="\n".join(body).strip(), level=level)
            if section.text:
                sections.append(section)
        heading, level, body = "", 0, []

    i = 0
    while i < len(lines):
        line = lines[i]

        if fence is not None:
            body.append(line)
            if _is_fence_end(line, fence):
                fence = None
            i += 1
            continue

        opened = _fence_start(line)
        if opened is not None:
            body.append(line)
            fence = opened
            i += 1
            continue

        atx = ATX_HEADING.match(line)
        if atx is not None:
            flush()
            heading, level = line, len(atx.group(1))
            i += 1
            continue

        # Setext headings cannot be indented
        if i + 1 < len(lines) and line.strip() and not line.startswith(" "):
            setext = _setext_level(lines[i + 1])
            if setext:
                flush()
                heading, level = f"{line}\n{lines[i + 1]}", setext
                i += 2
                continue

        body.append(line)
        i += 1

    flush()
    return sections


def detect_content_type(content: str) -> ChunkType:
    """
    Classify content by majority of non-blank lines.

    More than half fenced code lines is CODE; otherwise more than half list
    items plus their continuation lines is LIST; otherwise PARAGRAPH.
    """
    lines = [line for line in content.split("\n") if line.strip()]
    if not lines:
        return ChunkType.PARAGRAPH

    code_lines = 0
    fence: Optional[Tuple[str, int]] = None
    for line in lines:
        if fence is not None:
            code_lines += 1
            if _is_fence_end(line, fence):
                fence = None
        else:
            fence = _fence_start(line)
            if fence is not None:
                code_lines += 1

    if code_lines > len(lines) / 2:
        return ChunkType.CODE

    items = 0
    list_lines = 0
    marker_indent = -1
    in_item = False
    for line in lines:
        item = LIST_ITEM.match(line)
        if item is not None:
            items += 1
            list_lines += 1
            in_item = True
            marker_indent = len(item.group(1))
        elif in_item:
            if len(LEADING_SPACE.match(line).group(1)) > marker_indent:
                list_lines += 1
            else:
                in_item = False

    if items > 0 and list_lines > len(lines) / 2:
        return ChunkType.LIST

    return ChunkType.PARAGRAPH


def split_blocks(content: str) -> List[str]:
    """Split content at blank lines, keeping each fenced code block whole"""
    blocks: List[str] = []
    current: List[str] = []
    fence: Optional[Tuple[str, int]] = None

    for line in content.split("\n"):
        if fence is not None:
            current.append(line)
            if _is_fence_end(line, fence):
                fence = None
            continue
        opened = _fence_start(line)
        if opened is not None:
            fence = opened
            current.append(line)
            continue
        if not line.strip():
            if current:
                blocks.append("\n".join(current))
                current = []
            continue
        current.append(line)

    if current:
        blocks.append("\n".join(current))
    return blocks


def _line_units(block: str) -> List[str]:
    """Lines of a block, with each fenced code region as a single unit"""
    units: List[str] = []
    fenced: List[str] = []
    fence: Optional[Tuple[str, int]] = None

    for line in block.split("\n"):
        if fence is not None:
            fenced.append(line)
            if _is_fence_end(line, fence):
                units.append("\n".join(fenced))
                fenced, fence = [], None
            continue
        opened = _fence_start(line)
        if opened is not None:
            fence, fenced = opened, [line]
            continue
        units.append(line)

    if fenced:
        units.append("\n".join(fenced))
    return units


def _split_oversized_block(block: str, max_tokens: int, counter: TokenCounter) -> List[str]:
    """Lines first, then sentences for any line that is still too long"""
    pieces: List[str] = []
    for part in pack(_line_units(block), "\n", max_tokens, counter):
        if counter(part) > max_tokens and _fence_start(part) is None:
            pieces.extend(split_by_sentences(part, max_tokens, counter))
        else:
            # Fenced code stays whole even over budget
            pieces.append(part)
    return pieces


def split_content(content: str, max_tokens: int, counter: TokenCounter) -> List[str]:
    """
    Split content into parts within max_tokens.

    Granularity degrades from blocks (paragraphs) to lines to sentences. A
    single sentence longer than the budget is kept whole.
    """
    if counter(content) <= max_tokens:
        return [content]

    parts: List[str] = []
    current = ""
    for block in split_blocks(content):
        candidate = f"{current}\n\n{block}" if current else block
        if counter(candidate) <= max_tokens:
            current = candidate
            continue

        if current:
            parts.append(current)
        if counter(block) > max_tokens:
            pieces = _split_oversized_block(block, max_tokens, counter)
            parts.extend(pieces[:-1])
            current = pieces[-1] if pieces else ""
        else:
            current = block

    if current:
        parts.append(current)
    return parts


class MarkdownChunker:
    """
    Structure-aware Markdown chunker.

    Usage:
        chunks = MarkdownChunker()(text, ChunkerOptions(max_tokens=2048))
    """

    def __call__(self, text: str, options: Optional[ChunkerOptions] = None) -> List[Chunk]:
        options = options or ChunkerOptions()
        counter = options.counter
        max_tokens = options.max_tokens
        check_cancelled(options.cancellation)

        out = ChunkList()
        for section in parse_sections(text):
            check_cancelled(options.cancellation)
            self._emit_section(section, max_tokens, counter, out)

        logger.debug(f"Markdown chunked into {len(out.chunks)} chunk(s)")
        return out.chunks

    def _emit_section(
        self,
        section: Section,
        max_tokens: int,
        counter: TokenCounter,
        out: ChunkList
    ) -> None:
        full = section.text
        if counter(full) <= max_tokens:
            chunk_type = ChunkType.SECTION if section.heading else detect_content_type(section.content)
            out.add(full, chunk_type)
            return

        if not section.heading:
            self._emit_parts(split_content(section.content, max_tokens, counter), out)
            return

        if not section.content:
            out.add(section.heading, ChunkType.HEADING)
            return

        remaining = max_tokens - counter(section.heading) - counter("\n\n")
        if remaining <= 0:
            # Heading alone fills the budget
            out.add(section.heading, ChunkType.HEADING)
            self._emit_parts(split_content(section.content, max_tokens, counter), out)
            return

        parts = split_content(section.content, remaining, counter)
        out.add(f"{section.heading}\n\n{parts[0]}", ChunkType.SECTION)
        self._emit_parts(parts[1:], out)

    @staticmethod
    def _emit_parts(parts: List[str], out: ChunkList) -> None:
        for part in parts:
            out.add(part, detect_content_type(part))
