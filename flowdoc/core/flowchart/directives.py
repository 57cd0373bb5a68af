"""Flowchart directive vocabulary.

Keyword table, longest-prefix matching, and label cleanup.
"""

import re
from typing import Dict, List, Optional, Tuple

from .models import Directive, DirectiveRole, ShapeKind

_NODE = DirectiveRole.NODE

# Keyword reference categories, in display order
CATEGORIES = [
    "Basic",
    "Data & Documents",
    "Process Types",
    "Logic & Flow",
    "Display & Notes",
    "Large Projects",
]

DIRECTIVES: List[Directive] = [
    # Basic
    Directive("START", _NODE, ShapeKind.TERMINAL, "Basic", "Start of the process"),
    Directive("END", _NODE, ShapeKind.TERMINAL, "Basic", "End of the process"),
    Directive("STEP", _NODE, ShapeKind.PROCESS, "Basic", "A single action"),
    Directive("PROCESS", _NODE, ShapeKind.PROCESS, "Basic", "A single action"),
    Directive("IF", _NODE, ShapeKind.DECISION, "Basic", "Yes/no question", marks_decision=True),
    Directive("DECISION", _NODE, ShapeKind.DECISION, "Basic", "Yes/no question", marks_decision=True),
    Directive("YES", DirectiveRole.BRANCH, None, "Basic", "Branch taken when the answer is yes",
              branch_label="Yes"),
    Directive("NO", DirectiveRole.BRANCH, None, "Basic", "Branch taken when the answer is no",
              branch_label="No"),
    Directive("GO TO", DirectiveRole.JUMP, None, "Basic", "Jump back to an earlier node by its text",
              bare=True),
    # Data & Documents
    Directive("INPUT", _NODE, ShapeKind.IO, "Data & Documents", "Data entering the process"),
    Directive("OUTPUT", _NODE, ShapeKind.IO, "Data & Documents", "Data leaving the process"),
    Directive("MANUAL INPUT", _NODE, ShapeKind.IO, "Data & Documents", "Data typed in by a person"),
    Directive("DOCUMENT", _NODE, ShapeKind.PROCESS, "Data & Documents", "A document"),
    Directive("MULTIPLE DOCUMENTS", _NODE, ShapeKind.SUBROUTINE, "Data & Documents", "Several documents"),
    Directive("MULTIPLE DOCUMENT", _NODE, ShapeKind.SUBROUTINE, "Data & Documents", "Several documents"),
    Directive("MULTI DOCUMENTS", _NODE, ShapeKind.SUBROUTINE, "Data & Documents", "Several documents"),
    Directive("MULTI DOCUMENT", _NODE, ShapeKind.SUBROUTINE, "Data & Documents", "Several documents"),
    Directive("DATABASE", _NODE, ShapeKind.DATA_STORE, "Data & Documents", "A database"),
    Directive("STORED DATA", _NODE, ShapeKind.DATA_STORE, "Data & Documents", "Stored data"),
    Directive("DATA STORAGE", _NODE, ShapeKind.DATA_STORE, "Data & Documents", "Stored data"),
    Directive("INTERNAL STORAGE", _NODE, ShapeKind.DATA_STORE, "Data & Documents", "In-memory storage"),
    # Process Types
    Directive("SUBPROCESS", _NODE, ShapeKind.SUBPROCESS, "Process Types", "A process defined elsewhere"),
    Directive("SUBROUTINE", _NODE, ShapeKind.SUBROUTINE, "Process Types", "A reusable routine"),
    Directive("PREPARATION", _NODE, ShapeKind.PROCESS, "Process Types", "Setup work"),
    Directive("MANUAL LOOP", _NODE, ShapeKind.PROCESS, "Process Types", "Repeated manual work"),
    Directive("LOOP LIMIT", _NODE, ShapeKind.PROCESS, "Process Types", "Loop boundary"),
    Directive("DELAY", _NODE, ShapeKind.PROCESS, "Process Types", "A wait"),
    # Logic & Flow
    Directive("MERGE", _NODE, ShapeKind.DECISION, "Logic & Flow", "Paths joining"),
    Directive("OR", _NODE, ShapeKind.DECISION, "Logic & Flow", "Alternative paths"),
    Directive("CONNECTOR", _NODE, ShapeKind.CONNECTOR, "Logic & Flow", "Jump point"),
    Directive("SUMMING JUNCTION", _NODE, ShapeKind.CONNECTOR, "Logic & Flow", "Paths converging"),
    Directive("OFF PAGE", _NODE, ShapeKind.CONNECTOR, "Logic & Flow", "Continues on another page"),
    Directive("OFFPAGE", _NODE, ShapeKind.CONNECTOR, "Logic & Flow", "Continues on another page"),
    Directive("COLLATE", _NODE, ShapeKind.PROCESS, "Logic & Flow", "Organize data"),
    Directive("SORT", _NODE, ShapeKind.PROCESS, "Logic & Flow", "Order data"),
    # Display & Notes
    Directive("DISPLAY", _NODE, ShapeKind.DISPLAY, "Display & Notes", "Information shown to a user"),
    Directive("COMMENT", DirectiveRole.ANNOTATION, ShapeKind.NOTE, "Display & Notes",
              "Side note linked with a dotted line"),
    Directive("NOTE", DirectiveRole.ANNOTATION, ShapeKind.NOTE, "Display & Notes",
              "Side note linked with a dotted line"),
    # Large Projects
    Directive("GROUP START", DirectiveRole.SCOPE_OPEN, None, "Large Projects", "Begin group", bare=True),
    Directive("GROUP END", DirectiveRole.SCOPE_CLOSE, None, "Large Projects", "End group", bare=True),
    Directive("PARALLEL START", DirectiveRole.PARALLEL_START, ShapeKind.PROCESS, "Large Projects",
              "Begin parallel"),
    Directive("PARALLEL PATH", DirectiveRole.PARALLEL_PATH, ShapeKind.PROCESS, "Large Projects",
              "Add path"),
    Directive("PARALLEL END", DirectiveRole.PARALLEL_END, ShapeKind.PROCESS, "Large Projects",
              "End parallel", bare=True),
]

# Longest keyword first; sorted() is stable so equal lengths keep table order
_MATCH_ORDER: List[Directive] = sorted(DIRECTIVES, key=lambda d: -len(d.keyword))

_BY_KEYWORD: Dict[str, Directive] = {d.keyword: d for d in DIRECTIVES}

# Characters reserved for Mermaid node syntax
_STRUCTURAL_CHARS = re.compile(r"[{}\[\]()]")


def clean_label(text: str) -> str:
    """Strip structural bracket characters and surrounding whitespace.

    Quotes and everything else pass through unchanged.
    """
    return _STRUCTURAL_CHARS.sub("", text).strip()


def normalize_label(text: str) -> str:
    """Key used by the label index for GO TO lookups."""
    return text.strip().lower()


def match_directive(line: str) -> Optional[Tuple[Directive, str]]:
    """Resolve a line to its directive.

    Leading whitespace is ignored. The keyword is case-sensitive and must be
    followed by ``:``; bare directives also accept whitespace or end of line.

    Args:
        line: One input line

    Returns:
        (directive, raw remainder after the keyword and colon), or None
        if the line does not start with a known keyword
    """
    text = line.lstrip()
    for directive in _MATCH_ORDER:
        if not text.startswith(directive.keyword):
            continue
        rest = text[len(directive.keyword):]
        if rest.startswith(":"):
            return directive, rest[1:]
        if directive.bare and (not rest or rest[0].isspace()):
            return directive, rest
    return None


def get_directive(keyword: str) -> Directive:
    """Look up a directive by its exact keyword.

    Raises:
        KeyError: If the keyword is not in the vocabulary
    """
    return _BY_KEYWORD[keyword]


def directive_reference() -> List[Dict]:
    """Keyword reference grouped by category, in display order."""
    reference = []
    for category in CATEGORIES:
        entries = [
            {
                "keyword": d.keyword if d.role == DirectiveRole.SCOPE_CLOSE else f"{d.keyword}:",
                "shape": d.shape.value if d.shape else None,
                "description": d.description,
            }
            for d in DIRECTIVES
            if d.category == category
        ]
        reference.append({"category": category, "directives": entries})
    return reference
