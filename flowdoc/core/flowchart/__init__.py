"""FlowDoc flowchart compiler — keyword documentation to Mermaid.

Public API:
    generate(documentation) → str
    build_flowchart(documentation) → Flowchart
    match_directive(line) → (Directive, remainder) | None
    clean_label(text) → str
"""

from .builder import GRAPH_HEADER, FlowchartBuilder
from .directives import DIRECTIVES, clean_label, directive_reference, match_directive
from .models import Directive, DirectiveRole, Edge, Flowchart, Group, Node, ShapeKind

__all__ = [
    "generate",
    "build_flowchart",
    "match_directive",
    "clean_label",
    "directive_reference",
    "FlowchartBuilder",
    "GRAPH_HEADER",
    "DIRECTIVES",
    "Directive",
    "DirectiveRole",
    "Edge",
    "Flowchart",
    "Group",
    "Node",
    "ShapeKind",
]


def build_flowchart(documentation: str, escape_quotes: bool = False) -> Flowchart:
    """Compile documentation text into a Flowchart.

    Args:
        documentation: Newline-delimited directive text
        escape_quotes: Escape ``"`` in labels as ``#quot;``

    Returns:
        Flowchart with Mermaid code plus the nodes and edges behind it
    """
    return FlowchartBuilder(escape_quotes=escape_quotes).build(documentation)


def generate(documentation: str, escape_quotes: bool = False) -> str:
    """Compile documentation text into Mermaid flowchart source.

    Pure function of its input: the same text always yields the same output.
    """
    return build_flowchart(documentation, escape_quotes=escape_quotes).code
