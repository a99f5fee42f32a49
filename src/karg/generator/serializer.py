"""Serialize a Markdown AST to text.

Output conventions: ``-`` bullets with a one-space item indent, ``**strong**``,
``*emphasis*``, backtick fences, ATX headings and padded GFM tables.

Blank lines between sibling blocks are decided in one place, ``join_blank_lines``:

- list items are never separated by a blank line;
- a paragraph is directly followed by a fenced code block;
- a paragraph labelled with bold ``Constraints`` or ``Example`` is directly
  followed by the list nested under it;
- every other pair of blocks is separated by exactly one blank line.
"""

import re

from .mdast import Node, Paragraph, Parent, Root, Strong, Text

TIGHT_LIST_LABELS = ("Constraints", "Example")

_ASCII_PUNCTUATION = frozenset("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~")
_ENTITY = re.compile(r"&(?:#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6}|[A-Za-z][A-Za-z0-9]*);")
_ATX_START = re.compile(r"#{1,6}(?:[ \t]|$)")
_BULLET_START = re.compile(r"[-+](?:[ \t]|$)")
_ORDERED_START = re.compile(r"(\d{1,9})([.)])(?:[ \t]|$)")
_SETEXT_UNDERLINE = re.compile(r"(?:=+|-+)[ \t]*$")
_AUTOLINK_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]{1,31}:")


def serialize(root: Root) -> str:
    """Return the Markdown text of *root*, ending with a single newline."""
    value = _flow(root)
    return f"{value}\n" if value else ""


def join_blank_lines(left: Node, right: Node) -> int:
    """Number of blank lines between the sibling blocks *left* and *right*."""
    if left.type == "listItem" and right.type == "listItem":
        return 0
    if left.type == "paragraph" and right.type == "code":
        return 0
    if left.type == "paragraph" and right.type == "list" and _has_tight_label(left):
        return 0
    return 1


def _has_tight_label(node: Paragraph) -> bool:
    for child in node.children:
        if isinstance(child, Strong) and any(
            isinstance(t, Text) and t.value in TIGHT_LIST_LABELS for t in child.children
        ):
            return True
    return False


# -- block content -------------------------------------------------------------


def _flow(parent: Parent) -> str:
    parts: list[str] = []
    previous: Node | None = None
    previous_marker: str | None = None
    for child in parent.children:
        if previous is not None:
            parts.append("\n" * (1 + join_blank_lines(previous, child)))
        marker = None
        if child.type == "list":
            # A list right after another list gets the other marker so the two stay apart.
            marker = _list_marker(child, previous_marker if previous is not None and previous.type == "list" else None)
        parts.append(_block(child, marker))
        previous = child
        previous_marker = marker
    return "".join(parts)


def _list_marker(node: Node, previous_marker: str | None) -> str:
    if node.ordered:
        return ")" if previous_marker == "." else "."
    return "*" if previous_marker == "-" else "-"


def _block(node: Node, marker: str | None = None) -> str:
    kind = node.type
    if kind == "heading":
        content = _phrasing(node)
        return f"{'#' * node.depth} {content}" if content else "#" * node.depth
    if kind == "paragraph":
        return _phrasing(node)
    if kind == "list":
        return _list(node, marker or "-")
    if kind == "code":
        return _code(node)
    if kind == "blockquote":
        return _prefix_lines(_flow(node), "> ", ">")
    if kind == "thematicBreak":
        return "***"
    if kind == "html":
        return node.value
    if kind == "table":
        return _table(node)
    if kind == "footnoteDefinition":
        content = _indent_lines(_flow(node), " " * 4)
        return f"[^{node.identifier}]: {content}"
    if kind == "listItem":
        return _list_item(node, "-")
    # Phrasing content outside a paragraph.
    return _inline(node, at_start=True)


def _list(node: Node, marker: str) -> str:
    lines: list[str] = []
    start = node.start if node.start is not None else 1
    previous: Node | None = None
    for index, item in enumerate(node.children):
        if previous is not None:
            lines.append("\n" * (1 + join_blank_lines(previous, item)))
        bullet = f"{start + index}{marker}" if node.ordered else marker
        lines.append(_list_item(item, bullet))
        previous = item
    return "".join(lines)


def _list_item(node: Node, bullet: str) -> str:
    content = _flow(node)
    if not content:
        return bullet
    indent = " " * (len(bullet) + 1)
    first, _, rest = content.partition("\n")
    if not rest:
        return f"{bullet} {first}"
    return f"{bullet} {first}\n{_indent_lines(rest, indent, skip_first=False)}"


def _code(node: Node) -> str:
    longest = max((len(run) for run in re.findall(r"`+", node.value)), default=0)
    fence = "`" * max(3, longest + 1)
    info = node.lang or ""
    if node.lang and node.meta:
        info = f"{node.lang} {node.meta}"
    if node.value:
        return f"{fence}{info}\n{node.value}\n{fence}"
    return f"{fence}{info}\n{fence}"


def _table(node: Node) -> str:
    rows = [[_phrasing(cell, in_table=True) for cell in row.children] for row in node.children]
    if not rows:
        return ""
    columns = max(len(row) for row in rows)
    align = list(node.align) + [None] * (columns - len(node.align))
    rows = [row + [""] * (columns - len(row)) for row in rows]
    widths = [max(3, *(len(row[i]) for row in rows)) for i in range(columns)]

    lines = [_table_row(rows[0], widths, align), _delimiter_row(widths, align)]
    lines.extend(_table_row(row, widths, align) for row in rows[1:])
    return "\n".join(lines)


def _table_row(cells: list[str], widths: list[int], align: list[str | None]) -> str:
    padded = []
    for cell, width, alignment in zip(cells, widths, align):
        if alignment == "right":
            padded.append(cell.rjust(width))
        elif alignment == "center":
            padded.append(cell.center(width))
        else:
            padded.append(cell.ljust(width))
    return "| " + " | ".join(padded) + " |"


def _delimiter_row(widths: list[int], align: list[str | None]) -> str:
    cells = []
    for width, alignment in zip(widths, align):
        if alignment == "left":
            cells.append(":" + "-" * (width - 1))
        elif alignment == "right":
            cells.append("-" * (width - 1) + ":")
        elif alignment == "center":
            cells.append(":" + "-" * (width - 2) + ":")
        else:
            cells.append("-" * width)
    return "| " + " | ".join(cells) + " |"


def _indent_lines(value: str, indent: str, skip_first: bool = True) -> str:
    lines = value.split("\n")
    out = []
    for index, line in enumerate(lines):
        if (skip_first and index == 0) or not line:
            out.append(line)
        else:
            out.append(indent + line)
    return "\n".join(out)


def _prefix_lines(value: str, prefix: str, empty_prefix: str) -> str:
    return "\n".join(prefix + line if line else empty_prefix for line in value.split("\n"))


# -- phrasing content ----------------------------------------------------------


def _phrasing(parent: Node, in_table: bool = False) -> str:
    parts = []
    at_start = True
    for child in parent.children:
        parts.append(_inline(child, at_start=at_start, in_table=in_table))
        at_start = child.type == "break"
    value = "".join(parts)
    if in_table:
        value = value.replace("\n", " ")
    return value


def _inline(node: Node, at_start: bool = False, in_table: bool = False) -> str:
    kind = node.type
    if kind == "text":
        return escape_text(node.value, at_start=at_start, in_table=in_table)
    if kind == "inlineCode":
        return _inline_code(node.value, in_table)
    if kind == "strong":
        return f"**{_phrasing(node, in_table)}**"
    if kind == "emphasis":
        return f"*{_phrasing(node, in_table)}*"
    if kind == "link":
        return _link(node, in_table)
    if kind == "image":
        alt = escape_text(node.alt, in_table=in_table)
        return f"![{alt}]({_destination(node.url)}{_title(node.title)})"
    if kind == "break":
        return "\\\n"
    if kind == "html":
        return node.value
    if kind == "footnoteReference":
        return f"[^{node.identifier}]"
    return ""


def _inline_code(value: str, in_table: bool) -> str:
    value = value.replace("\n", " ")
    if in_table:
        value = value.replace("|", "\\|")
    runs = {len(run) for run in re.findall(r"`+", value)}
    size = 1
    while size in runs:
        size += 1
    fence = "`" * size
    if value.startswith("`") or value.endswith("`") or (
        value.startswith(" ") and value.endswith(" ") and value.strip()
    ):
        value = f" {value} "
    return f"{fence}{value}{fence}"


def _link(node: Node, in_table: bool) -> str:
    label = _phrasing(node, in_table)
    raw_label = "".join(child.value for child in node.children if isinstance(child, Text))
    if (
        node.title is None
        and len(node.children) == 1
        and isinstance(node.children[0], Text)
        and _AUTOLINK_SCHEME.match(node.url)
        and raw_label in (node.url, node.url.removeprefix("mailto:"))
        and not re.search(r"[\s<>]", node.url)
    ):
        return f"<{node.url}>"
    return f"[{label}]({_destination(node.url)}{_title(node.title)})"


def _destination(url: str) -> str:
    if not url or re.search(r"[\s<>]", url) or url.count("(") != url.count(")"):
        return "<" + url.replace("<", "\\<").replace(">", "\\>") + ">"
    return url


def _title(title: str | None) -> str:
    if title is None:
        return ""
    return ' "' + title.replace("\\", "\\\\").replace('"', '\\"') + '"'


def escape_text(value: str, at_start: bool = False, in_table: bool = False) -> str:
    """Escape characters of *value* that would otherwise be read as Markdown syntax."""
    out: list[str] = []
    line_start = at_start
    length = len(value)
    index = 0
    while index < length:
        char = value[index]
        if char == "\n":
            out.append(char)
            line_start = True
            index += 1
            continue

        if line_start:
            line_start = False
            line = value[index:].split("\n", 1)[0]
            ordered = _ORDERED_START.match(line)
            if ordered:
                digits, delimiter = ordered.groups()
                out.append(f"{digits}\\{delimiter}")
                index += len(digits) + 1
                continue
            if (
                _ATX_START.match(line)
                or char == ">"
                or _BULLET_START.match(line)
                or _SETEXT_UNDERLINE.match(line)
                or line.startswith("~~~")
            ):
                out.append("\\" + char)
                index += 1
                continue

        previous = value[index - 1] if index > 0 else ""
        following = value[index + 1] if index + 1 < length else ""
        if char in "*`[":
            out.append("\\" + char)
        elif char == "_" and not (previous.isalnum() and following.isalnum()):
            out.append("\\_")
        elif char == "\\" and (following in _ASCII_PUNCTUATION or not following):
            out.append("\\\\")
        elif char == "<" and (following.isalpha() or following in "/!?"):
            out.append("\\<")
        elif char == "&" and _ENTITY.match(value, index):
            out.append("\\&")
        elif char == "|" and in_table:
            out.append("\\|")
        else:
            out.append(char)
        index += 1
    return "".join(out)
