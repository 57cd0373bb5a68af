"""Deterministic Mermaid flowchart builder.

Compiles keyword-driven documentation text into Mermaid ``graph TD`` source.
No I/O. Each build() runs a fresh _Compilation that owns its ParseState and
output lists; the builder itself only holds options, so one instance can be
shared between threads.
"""

import logging
from typing import List, Optional, Tuple

from .directives import clean_label, match_directive, normalize_label
from .models import (
    Directive,
    DirectiveRole,
    Edge,
    Flowchart,
    Group,
    Node,
    ParseState,
    ShapeKind,
)

logger = logging.getLogger(__name__)

GRAPH_HEADER = "graph TD"

_INDENT = "    "

# Shape -> (opening, closing) Mermaid delimiters around the quoted label
_SHAPE_DELIMITERS = {
    ShapeKind.TERMINAL: ("((", "))"),
    ShapeKind.PROCESS: ("[", "]"),
    ShapeKind.SUBPROCESS: ("(", ")"),
    ShapeKind.SUBROUTINE: ("[[", "]]"),
    ShapeKind.IO: ("[/", "/]"),
    ShapeKind.DATA_STORE: ("[(", ")]"),
    ShapeKind.DISPLAY: (">", "]"),
    ShapeKind.DECISION: ("{", "}"),
    ShapeKind.CONNECTOR: ("((", "))"),
    ShapeKind.NOTE: ("[", "]"),
}

NOTE_STYLE = "fill:#fff5ad,stroke:#d6b656,color:#333"

# (decision node id, edge label) for a YES:/NO: line
Branch = Tuple[Optional[str], Optional[str]]


class FlowchartBuilder:
    """Translates directive lines into Mermaid statements.

    Args:
        escape_quotes: Replace ``"`` in labels with the Mermaid ``#quot;``
            entity. Off by default, in which case quotes are emitted verbatim.
    """

    def __init__(self, escape_quotes: bool = False):
        self.escape_quotes = escape_quotes

    def build(self, documentation: str) -> Flowchart:
        """Compile documentation text into a Flowchart.

        Never raises for malformed input: unknown lines are skipped.
        """
        return _Compilation(self.escape_quotes).run(documentation)


class _Compilation:
    """State and output for one build() call."""

    def __init__(self, escape_quotes: bool):
        self.escape_quotes = escape_quotes
        self.state = ParseState()
        self.nodes: List[Node] = []
        self.edges: List[Edge] = []
        self.groups: List[Group] = []
        self.statements: List[str] = []
        self.skipped: List[str] = []

    def run(self, documentation: str) -> Flowchart:
        for raw_line in documentation.split("\n"):
            line = raw_line.strip()
            if not line:
                continue
            self.process_line(line)

        # Close scopes left open so the output stays valid Mermaid
        while self.state.open_groups:
            self._close_group()

        code = GRAPH_HEADER + "\n" + "".join(f"{s}\n" for s in self.statements)

        logger.debug(
            "Built flowchart: %d nodes, %d edges, %d groups, %d skipped lines",
            len(self.nodes), len(self.edges), len(self.groups), len(self.skipped),
        )

        return Flowchart(
            code=code,
            nodes=self.nodes,
            edges=self.edges,
            groups=self.groups,
            statements=self.statements,
            skipped_lines=self.skipped,
        )

    def process_line(self, line: str) -> None:
        """Dispatch a single non-blank line against the current state."""
        matched = match_directive(line)
        if matched is None:
            logger.debug("Skipping unrecognized line: %r", line)
            self.skipped.append(line)
            return
        self._dispatch(*matched)

    # ── Directive handlers ────────────────────────────────────────────

    def _dispatch(self, directive: Directive, remainder: str, branch: Optional[Branch] = None) -> None:
        """Apply one directive. Shared by top-level lines and YES:/NO: text.

        With ``branch`` set, incoming edges come from the decision node
        instead of from ``previous``.
        """
        role = directive.role

        if role == DirectiveRole.BRANCH:
            self._branch(directive, remainder)
        elif role == DirectiveRole.JUMP:
            if branch is not None:
                self._jump(remainder, branch[0], edge_label=branch[1])
            else:
                self._jump(remainder, self.state.previous)
        elif role == DirectiveRole.ANNOTATION:
            source = branch[0] if branch is not None else self.state.previous
            self._annotate(directive, remainder, source)
        elif role == DirectiveRole.SCOPE_OPEN:
            self._open_group(remainder)
        elif role == DirectiveRole.SCOPE_CLOSE:
            if self.state.open_groups:
                self._close_group()
            else:
                logger.debug("Ignoring GROUP END with no open group")
        else:
            self._place(directive, clean_label(remainder), branch)

    def _place(self, directive: Directive, label: str, branch: Optional[Branch] = None) -> Node:
        """Add a node in control flow and advance the parse state."""
        state = self.state
        role = directive.role
        node = self._add_node(directive.keyword, directive.shape or ShapeKind.PROCESS, label)

        if branch is not None:
            source, edge_label = branch
            if source:
                self._add_edge(source, node.node_id, label=edge_label)
        else:
            source = state.previous
            if role == DirectiveRole.PARALLEL_PATH and state.parallel_anchor:
                source = state.parallel_anchor
            if source:
                self._add_edge(source, node.node_id)

        if role == DirectiveRole.PARALLEL_START:
            # Paths fan out from the anchor, not from each other
            state.parallel_anchor = node.node_id
            state.previous = None
        else:
            state.previous = node.node_id
            if role == DirectiveRole.PARALLEL_END:
                state.parallel_anchor = None

        if directive.marks_decision:
            state.decision = node.node_id

        return node

    def _branch(self, directive: Directive, remainder: str) -> None:
        # The decision pointer is not cleared here; a later stray YES:/NO:
        # still attaches to the most recent IF:/DECISION:.
        branch = (self.state.decision, directive.branch_label)

        nested = match_directive(remainder)
        if nested is not None:
            self._dispatch(*nested, branch=branch)
            return

        action = Directive(directive.keyword, DirectiveRole.NODE, ShapeKind.PROCESS)
        self._place(action, clean_label(remainder), branch)

    def _jump(self, target_text: str, source: Optional[str], edge_label: Optional[str] = None) -> None:
        target = self.state.labels.get(normalize_label(clean_label(target_text)))
        if target is None or source is None:
            logger.debug("Unresolved GO TO target %r", target_text.strip())
            return
        self._add_edge(source, target, label=edge_label)

    def _annotate(self, directive: Directive, remainder: str, source: Optional[str]) -> None:
        # Notes hang off the flow; previous is left alone
        node = self._add_node(directive.keyword, ShapeKind.NOTE, clean_label(remainder))
        if source:
            self._add_edge(source, node.node_id, dotted=True)

    def _open_group(self, remainder: str) -> None:
        state = self.state
        title = clean_label(remainder)
        group = Group(
            group_id=state.next_group_id(),
            title=title,
            depth=len(state.open_groups) + 1,
        )
        if title:
            self._emit(f'subgraph {group.group_id} ["{self._quote(title)}"]')
        else:
            self._emit(f"subgraph {group.group_id}")
        state.open_groups.append(group)
        self.groups.append(group)

    def _close_group(self) -> None:
        self.state.open_groups.pop()
        self._emit("end")

    # ── Emission ──────────────────────────────────────────────────────

    def _add_node(self, keyword: str, shape: ShapeKind, label: str) -> Node:
        state = self.state
        node = Node(node_id=state.next_node_id(), label=label, shape=shape, keyword=keyword)
        self.nodes.append(node)

        opening, closing = _SHAPE_DELIMITERS[shape]
        self._emit(f'{node.node_id}{opening}"{self._quote(label)}"{closing}')
        if shape == ShapeKind.NOTE:
            self._emit(f"style {node.node_id} {NOTE_STYLE}")

        # Last writer wins for repeated labels
        state.labels[normalize_label(label)] = node.node_id
        return node

    def _add_edge(
        self,
        source: str,
        target: str,
        label: Optional[str] = None,
        dotted: bool = False,
    ) -> Edge:
        edge = Edge(source=source, target=target, label=label, dotted=dotted)
        self.edges.append(edge)

        if dotted:
            self._emit(f"{source} -.-> {target}")
        elif label:
            self._emit(f"{source} -- {label} --> {target}")
        else:
            self._emit(f"{source} --> {target}")
        return edge

    def _emit(self, statement: str) -> None:
        self.statements.append(_INDENT * len(self.state.open_groups) + statement)

    def _quote(self, text: str) -> str:
        if self.escape_quotes:
            return text.replace('"', "#quot;")
        return text
