"""Markdown abstract syntax tree.

Nodes use the mdast vocabulary: each carries a ``type`` tag, parents hold
``children`` and literals hold ``value``. The builders at the bottom are what
the writer uses to assemble documents.
"""

from typing import Literal

from pydantic import BaseModel


class Node(BaseModel):
    type: str


class Parent(Node):
    children: list[Node] = []


class LiteralNode(Node):
    value: str


# -- block content -------------------------------------------------------------


class Root(Parent):
    type: Literal["root"] = "root"


class Heading(Parent):
    type: Literal["heading"] = "heading"
    depth: int


class Paragraph(Parent):
    type: Literal["paragraph"] = "paragraph"


class List(Parent):
    type: Literal["list"] = "list"
    ordered: bool = False
    start: int | None = None


class ListItem(Parent):
    type: Literal["listItem"] = "listItem"


class Blockquote(Parent):
    type: Literal["blockquote"] = "blockquote"


class Code(LiteralNode):
    type: Literal["code"] = "code"
    lang: str | None = None
    meta: str | None = None


class Html(LiteralNode):
    type: Literal["html"] = "html"


class ThematicBreak(Node):
    type: Literal["thematicBreak"] = "thematicBreak"


class Table(Parent):
    type: Literal["table"] = "table"
    align: list[Literal["left", "right", "center"] | None] = []


class TableRow(Parent):
    type: Literal["tableRow"] = "tableRow"


class TableCell(Parent):
    type: Literal["tableCell"] = "tableCell"


class FootnoteDefinition(Parent):
    type: Literal["footnoteDefinition"] = "footnoteDefinition"
    identifier: str


# -- phrasing content ----------------------------------------------------------


class Text(LiteralNode):
    type: Literal["text"] = "text"


class InlineCode(LiteralNode):
    type: Literal["inlineCode"] = "inlineCode"


class Emphasis(Parent):
    type: Literal["emphasis"] = "emphasis"


class Strong(Parent):
    type: Literal["strong"] = "strong"


class Link(Parent):
    type: Literal["link"] = "link"
    url: str
    title: str | None = None


class Image(Node):
    type: Literal["image"] = "image"
    url: str
    alt: str = ""
    title: str | None = None


class Break(Node):
    type: Literal["break"] = "break"


class FootnoteReference(Node):
    type: Literal["footnoteReference"] = "footnoteReference"
    identifier: str


# -- builders --------------------------------------------------------------------


def heading(depth: int, content: str | list[Node]) -> Heading:
    """Heading with *depth* clamped to the valid 1..6 range."""
    children = [text(content)] if isinstance(content, str) else content
    return Heading(depth=max(1, min(6, depth)), children=children)


def paragraph(children: list[Node]) -> Paragraph:
    return Paragraph(children=children)


def text(value: str) -> Text:
    return Text(value=value)


def inline_code(value: str) -> InlineCode:
    return InlineCode(value=value)


def code_block(value: str, lang: str | None = None) -> Code:
    return Code(value=value, lang=lang)


def strong(children: list[Node]) -> Strong:
    return Strong(children=children)


def link(url: str, children: list[Node]) -> Link:
    return Link(url=url, children=children)


def footnote_reference(identifier: str) -> FootnoteReference:
    return FootnoteReference(identifier=identifier)


def bullet_list(items: list[list[Node]]) -> List:
    """Bullet list whose items each hold one paragraph of phrasing content."""
    return List(children=[ListItem(children=[paragraph(item)]) for item in items])


def complex_bullet_list(items: list[list[Node]]) -> List:
    """Bullet list whose items mix phrasing content with code blocks and lists.

    Phrasing nodes of an item are gathered into a leading paragraph; code
    blocks and nested lists follow it as block children.
    """
    list_items = []
    for item in items:
        inline = [node for node in item if not isinstance(node, (Code, List))]
        blocks = [node for node in item if isinstance(node, (Code, List))]
        children: list[Node] = []
        if inline:
            children.append(paragraph(inline))
        children.extend(blocks)
        list_items.append(ListItem(children=children))
    return List(children=list_items)
