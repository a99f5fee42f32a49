"""Parse Markdown written by CRD authors into AST nodes.

Descriptions in CRDs are free-form Markdown; they are parsed with
markdown-it-py (CommonMark plus GFM tables) and converted into the nodes of
``karg.generator.mdast`` so they can be spliced into generated documents.
"""

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from .mdast import (
    Blockquote,
    Break,
    Code,
    Emphasis,
    Heading,
    Html,
    Image,
    InlineCode,
    Link,
    List,
    ListItem,
    Node,
    Paragraph,
    Strong,
    Table,
    TableCell,
    TableRow,
    Text,
    ThematicBreak,
)

_md = MarkdownIt("commonmark").enable("table")

_ALIGNMENTS = {
    "text-align:left": "left",
    "text-align:right": "right",
    "text-align:center": "center",
}


def parse_markdown(source: str) -> list[Node]:
    """Parse *source* and return its top-level block nodes."""
    tree = SyntaxTreeNode(_md.parse(source))
    return _blocks(tree.children)


def _blocks(nodes: list[SyntaxTreeNode]) -> list[Node]:
    return [block for block in (_block(node) for node in nodes) if block is not None]


def _block(node: SyntaxTreeNode) -> Node | None:
    kind = node.type
    if kind == "paragraph":
        return Paragraph(children=_inline_container(node))
    if kind == "heading":
        return Heading(depth=int(node.tag[1:]), children=_inline_container(node))
    if kind == "bullet_list":
        return List(ordered=False, children=_blocks(node.children))
    if kind == "ordered_list":
        start = int(node.attrs.get("start", 1))
        return List(ordered=True, start=start, children=_blocks(node.children))
    if kind == "list_item":
        return ListItem(children=_blocks(node.children))
    if kind == "blockquote":
        return Blockquote(children=_blocks(node.children))
    if kind == "fence":
        lang, _, meta = node.info.strip().partition(" ")
        return Code(value=_strip_final_newline(node.content), lang=lang or None, meta=meta.strip() or None)
    if kind == "code_block":
        return Code(value=_strip_final_newline(node.content))
    if kind == "hr":
        return ThematicBreak()
    if kind == "html_block":
        return Html(value=node.content.rstrip("\n"))
    if kind == "table":
        return _table(node)
    return None


def _table(node: SyntaxTreeNode) -> Table:
    rows = []
    align = []
    for section in node.children:  # thead / tbody
        for row in section.children:
            cells = [TableCell(children=_inline_container(cell)) for cell in row.children]
            if not rows:
                align = [_ALIGNMENTS.get(str(cell.attrs.get("style", ""))) for cell in row.children]
            rows.append(TableRow(children=cells))
    return Table(align=align, children=rows)


def _inline_container(node: SyntaxTreeNode) -> list[Node]:
    children: list[Node] = []
    for child in node.children:
        if child.type == "inline":
            children.extend(_inlines(child.children))
    return children


def _inlines(nodes: list[SyntaxTreeNode]) -> list[Node]:
    result: list[Node] = []
    for node in nodes:
        converted = _inline(node)
        if converted is None:
            continue
        # Adjacent text (including soft line breaks) is kept as a single node.
        if isinstance(converted, Text) and result and isinstance(result[-1], Text):
            result[-1] = Text(value=result[-1].value + converted.value)
        else:
            result.append(converted)
    return result


def _inline(node: SyntaxTreeNode) -> Node | None:
    kind = node.type
    if kind in ("text", "text_special"):
        return Text(value=node.content)
    if kind == "softbreak":
        return Text(value="\n")
    if kind == "hardbreak":
        return Break()
    if kind == "code_inline":
        return InlineCode(value=node.content)
    if kind == "em":
        return Emphasis(children=_inlines(node.children))
    if kind == "strong":
        return Strong(children=_inlines(node.children))
    if kind == "link":
        return Link(
            url=str(node.attrs.get("href", "")),
            title=_optional_attr(node, "title"),
            children=_inlines(node.children),
        )
    if kind == "image":
        return Image(url=str(node.attrs.get("src", "")), alt=node.content, title=_optional_attr(node, "title"))
    if kind == "html_inline":
        return Html(value=node.content)
    return None


def _optional_attr(node: SyntaxTreeNode, name: str) -> str | None:
    value = node.attrs.get(name)
    return str(value) if value else None


def _strip_final_newline(value: str) -> str:
    return value[:-1] if value.endswith("\n") else value
