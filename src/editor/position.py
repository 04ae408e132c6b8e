"""Plain-text projection of the document tree and offset <-> position mapping.

Tree positions follow ProseMirror coordinates: the document content starts at
0, a text node occupies one position per character, an inline leaf occupies
one position and every other node occupies its content plus an opening and a
closing token.

The projection concatenates text leaves in tree order and inserts a single
``"\\n"`` separator when a new block starts after some text has already been
emitted. Directly nested block openings (``listItem > paragraph``) share one
separator.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence

from schemas.internal.documents import DocumentNode

NOT_FOUND = -1
BLOCK_SEPARATOR = "\n"

INLINE_LEAF_TEXT: dict[str, str] = {
    "hardBreak": "\n",
    "hard_break": "\n",
}
INLINE_LEAF_TYPES = frozenset({*INLINE_LEAF_TEXT, "image", "mention", "emoji"})
LEAF_BLOCK_TYPES = frozenset({"horizontalRule", "horizontal_rule"})


@dataclass(frozen=True)
class IndexEntry:
    plain_offset: int
    tree_position: int


@dataclass(frozen=True)
class OffsetIndex:
    """Monotonic ``(plain_offset, tree_position)`` pairs for one document snapshot."""

    text: str
    plain_offsets: tuple[int, ...]
    tree_positions: tuple[int, ...]
    content_size: int
    separator_offsets: frozenset[int] = frozenset()

    def __len__(self) -> int:
        return len(self.plain_offsets)

    @property
    def entries(self) -> List[IndexEntry]:
        return [
            IndexEntry(plain, tree)
            for plain, tree in zip(self.plain_offsets, self.tree_positions)
        ]


@dataclass
class _Builder:
    chars: List[str] = field(default_factory=list)
    plain: List[int] = field(default_factory=list)
    tree: List[int] = field(default_factory=list)
    separators: List[int] = field(default_factory=list)
    last_was_open: bool = False

    def emit(self, char: str, position: int) -> None:
        self.plain.append(len(self.chars))
        self.tree.append(position)
        self.chars.append(char)


def coerce_document(document: DocumentNode | Mapping[str, Any]) -> DocumentNode:
    if isinstance(document, DocumentNode):
        return document
    return DocumentNode.model_validate(document)


def node_size(node: DocumentNode) -> int:
    """Number of tree positions occupied by ``node``."""
    if node.is_text:
        return len(node.text or "")
    if node.type in INLINE_LEAF_TYPES or node.type in LEAF_BLOCK_TYPES:
        return 1
    return 2 + sum(node_size(child) for child in node.content or [])


def build_index(document: DocumentNode | Mapping[str, Any]) -> OffsetIndex:
    """Build the offset index and plain-text projection in one traversal."""
    root = coerce_document(document)
    builder = _Builder()
    if root.is_text:
        end = _walk(root, 0, builder)
    else:
        end = _walk_children(root.content or [], 0, builder)
    return OffsetIndex(
        text="".join(builder.chars),
        plain_offsets=tuple(builder.plain),
        tree_positions=tuple(builder.tree),
        content_size=end,
        separator_offsets=frozenset(builder.separators),
    )


def plain_text(document: DocumentNode | Mapping[str, Any]) -> str:
    return build_index(document).text


def _walk_children(children: Sequence[DocumentNode], pos: int, builder: _Builder) -> int:
    for child in children:
        pos = _walk(child, pos, builder)
    return pos


def _walk(node: DocumentNode, pos: int, builder: _Builder) -> int:
    if node.is_text:
        text = node.text or ""
        for offset, char in enumerate(text):
            builder.emit(char, pos + offset)
        builder.last_was_open = False
        return pos + len(text)

    if node.type in INLINE_LEAF_TYPES:
        char = INLINE_LEAF_TEXT.get(node.type)
        if char:
            builder.emit(char, pos)
        builder.last_was_open = False
        return pos + 1

    if builder.chars and not builder.last_was_open:
        builder.separators.append(len(builder.chars))
        builder.emit(BLOCK_SEPARATOR, pos)

    if node.type in LEAF_BLOCK_TYPES:
        builder.last_was_open = False
        return pos + 1

    builder.last_was_open = True
    end = _walk_children(node.content or [], pos + 1, builder)
    builder.last_was_open = False
    return end + 1


def to_plain_offset(index: OffsetIndex, tree_position: int) -> int:
    """Map a tree position to a plain-text offset.

    Positions between entries (closing tokens, empty blocks) resolve to the
    nearest preceding entry plus the local delta, capped at the next entry.
    """
    if tree_position < 0 or tree_position > index.content_size:
        return NOT_FOUND
    if not index.tree_positions:
        return 0

    slot = bisect_right(index.tree_positions, tree_position) - 1
    if slot < 0:
        return 0
    base_tree = index.tree_positions[slot]
    base_plain = index.plain_offsets[slot]
    if base_tree == tree_position:
        return base_plain

    candidate = base_plain + (tree_position - base_tree)
    upper = (
        index.plain_offsets[slot + 1]
        if slot + 1 < len(index.plain_offsets)
        else len(index.text)
    )
    return min(candidate, upper)


def to_tree_position(index: OffsetIndex, plain_offset: int) -> int:
    """Map a plain-text offset to a tree position, or ``NOT_FOUND``.

    ``plain_offset == len(text)`` maps to the position right after the last
    character so ranges can be expressed with an exclusive end.
    """
    total = len(index.text)
    if plain_offset < 0 or plain_offset > total or not index.plain_offsets:
        return NOT_FOUND
    if plain_offset == total:
        return index.tree_positions[-1] + 1

    slot = bisect_right(index.plain_offsets, plain_offset) - 1
    if slot < 0:
        return NOT_FOUND
    base_plain = index.plain_offsets[slot]
    return index.tree_positions[slot] + (plain_offset - base_plain)


def to_tree_range(index: OffsetIndex, start: int, end: int) -> tuple[int, int] | None:
    """Map a plain-text range ``[start, end)`` to tree positions.

    The end is mapped through the last covered character so a range ending at
    a block boundary never absorbs the following block's opening token.
    """
    if start < 0 or end <= start or end > len(index.text):
        return None
    tree_from = to_tree_position(index, start)
    last = to_tree_position(index, end - 1)
    if tree_from == NOT_FOUND or last == NOT_FOUND:
        return None
    return tree_from, last + 1


def range_crosses_block(index: OffsetIndex, start: int, end: int) -> bool:
    """True when the plain range contains a block separator or skips tree positions."""
    if end <= start:
        return False
    if any(start <= offset < end for offset in index.separator_offsets):
        return True
    first = to_tree_position(index, start)
    last = to_tree_position(index, end - 1)
    if first == NOT_FOUND or last == NOT_FOUND:
        return True
    return (last - first) != (end - 1 - start)


__all__ = [
    "BLOCK_SEPARATOR",
    "INLINE_LEAF_TYPES",
    "IndexEntry",
    "NOT_FOUND",
    "OffsetIndex",
    "build_index",
    "coerce_document",
    "node_size",
    "plain_text",
    "range_crosses_block",
    "to_plain_offset",
    "to_tree_position",
    "to_tree_range",
]
