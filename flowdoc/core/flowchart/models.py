"""Flowchart data models.

Defines the core data structures for a compiled flowchart.
These are pure data containers, no parsing logic.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ShapeKind(Enum):
    """Node shape, keyed to the Mermaid template used to declare it."""
    TERMINAL = "terminal"  # id(("label"))
    PROCESS = "process"  # id["label"]
    SUBPROCESS = "subprocess"  # id("label")
    SUBROUTINE = "subroutine"  # id[["label"]]
    IO = "io"  # id[/"label"/]
    DATA_STORE = "data_store"  # id[("label")]
    DISPLAY = "display"  # id>"label"]
    DECISION = "decision"  # id{"label"}
    CONNECTOR = "connector"  # id(("label"))
    NOTE = "note"  # id["label"] + style


class DirectiveRole(Enum):
    """What a directive does to the graph and the parse state."""
    NODE = "node"
    BRANCH = "branch"
    JUMP = "jump"
    ANNOTATION = "annotation"
    PARALLEL_START = "parallel_start"
    PARALLEL_PATH = "parallel_path"
    PARALLEL_END = "parallel_end"
    SCOPE_OPEN = "scope_open"
    SCOPE_CLOSE = "scope_close"


NODE_ROLES = frozenset({
    DirectiveRole.NODE,
    DirectiveRole.ANNOTATION,
    DirectiveRole.PARALLEL_START,
    DirectiveRole.PARALLEL_PATH,
    DirectiveRole.PARALLEL_END,
})


@dataclass(frozen=True)
class Directive:
    """A keyword in the closed flowchart vocabulary."""

    keyword: str  # "DATA STORAGE"
    role: DirectiveRole
    shape: Optional[ShapeKind] = None
    category: str = "Basic"  # grouping for the keyword reference
    description: str = ""
    marks_decision: bool = False  # IF / DECISION
    bare: bool = False  # may be followed by whitespace instead of ":"
    branch_label: Optional[str] = None  # "Yes" | "No"

    @property
    def produces_node(self) -> bool:
        return self.role in NODE_ROLES


@dataclass(frozen=True)
class Node:
    """A flowchart vertex. Created once per node-producing line."""

    node_id: str  # "N3"
    label: str
    shape: ShapeKind
    keyword: str


@dataclass(frozen=True)
class Edge:
    """A directed connection between two nodes."""

    source: str
    target: str
    label: Optional[str] = None
    dotted: bool = False


@dataclass
class Group:
    """A GROUP START … GROUP END scope, emitted as a Mermaid subgraph."""

    group_id: str  # "G1"
    title: str
    depth: int  # nesting level, 1 for a top-level group


@dataclass
class ParseState:
    """Mutable state for a single compilation pass.

    One instance per call; never shared between calls.
    """

    previous: Optional[str] = None
    decision: Optional[str] = None
    parallel_anchor: Optional[str] = None
    open_groups: List[Group] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)  # normalized label -> node_id
    node_counter: int = 0
    group_counter: int = 0

    def next_node_id(self) -> str:
        self.node_counter += 1
        return f"N{self.node_counter}"

    def next_group_id(self) -> str:
        self.group_counter += 1
        return f"G{self.group_counter}"


@dataclass
class Flowchart:
    """Complete output of one compilation.

    ``code`` is the Mermaid source; the other fields expose the graph
    that produced it.
    """

    code: str
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    statements: List[str] = field(default_factory=list)
    skipped_lines: List[str] = field(default_factory=list)

    def node_by_label(self, label: str) -> Optional[Node]:
        """Return the last node whose label matches, case-insensitively."""
        key = label.strip().lower()
        found = None
        for node in self.nodes:
            if node.label.lower() == key:
                found = node
        return found
