"""Tests for the flowchart builder."""

import sys
from concurrent.futures import ThreadPoolExecutor

import pytest
from flowdoc.core.flowchart import (
    GRAPH_HEADER,
    Edge,
    FlowchartBuilder,
    ShapeKind,
    build_flowchart,
    generate,
)
from flowdoc.core.flowchart.samples import SAMPLES, SAMPLE_DOCUMENTATION


# =========================================================================
# Sample documentation fixtures
# =========================================================================

CHECKOUT_EXPECTED = """graph TD
N1(("User Checkout Process"))
N2["Verify inventory"]
N1 --> N2
N3{"Item is in stock?"}
N2 --> N3
N4["Process payment"]
N3 -- Yes --> N4
N5["Notify out of stock"]
N3 -- No --> N5
N6["Ship item"]
N5 --> N6
N7(("Process Completed"))
N6 --> N7
"""

PARALLEL_BLOCK = """STEP: Before
PARALLEL START: P
PARALLEL PATH: A
PARALLEL PATH: B
PARALLEL END: C"""

NESTED_GROUPS = """GROUP START: Outer
GROUP START: Inner
STEP: x
GROUP END
GROUP END"""

LOOP_BACK = """START: Begin
STEP: Retry
STEP: Check
GO TO: retry"""


def _edge_pairs(flowchart):
    return [(e.source, e.target) for e in flowchart.edges]


# =========================================================================
# Tests: Output framing
# =========================================================================

class TestOutputFraming:
    def test_empty_input_returns_bare_header(self):
        assert generate("") == "graph TD\n"

    def test_blank_lines_only(self):
        assert generate("\n   \n\t\n") == GRAPH_HEADER + "\n"

    def test_every_statement_newline_terminated(self):
        code = generate("START: a\nEND: b")
        assert code.endswith("\n")
        assert code.split("\n")[0] == "graph TD"

    def test_crlf_input(self):
        assert generate("START: a\r\nEND: b\r\n") == generate("START: a\nEND: b")

    def test_indented_lines_are_matched(self):
        flowchart = build_flowchart("    STEP: indented")
        assert len(flowchart.nodes) == 1
        assert flowchart.nodes[0].label == "indented"


# =========================================================================
# Tests: Basic control flow
# =========================================================================

class TestBasicFlow:
    def test_start_then_end(self):
        flowchart = build_flowchart("START: X\nEND: Y")
        assert len(flowchart.nodes) == 2
        assert all(n.shape == ShapeKind.TERMINAL for n in flowchart.nodes)
        assert flowchart.edges == [Edge(source="N1", target="N2")]
        assert flowchart.code == 'graph TD\nN1(("X"))\nN2(("Y"))\nN1 --> N2\n'

    def test_checkout_example(self):
        assert generate(SAMPLE_DOCUMENTATION) == CHECKOUT_EXPECTED

    def test_checkout_continues_from_last_branch(self):
        flowchart = build_flowchart(SAMPLE_DOCUMENTATION)
        notify = flowchart.node_by_label("Notify out of stock")
        payment = flowchart.node_by_label("Process payment")
        ship = flowchart.node_by_label("Ship item")
        assert (notify.node_id, ship.node_id) in _edge_pairs(flowchart)
        assert (payment.node_id, ship.node_id) not in _edge_pairs(flowchart)

    def test_start_links_from_previous(self):
        flowchart = build_flowchart("STEP: warmup\nSTART: main")
        assert _edge_pairs(flowchart) == [("N1", "N2")]

    def test_end_becomes_previous(self):
        flowchart = build_flowchart("END: first\nSTEP: after")
        assert _edge_pairs(flowchart) == [("N1", "N2")]

    def test_node_ids_are_unique(self):
        text = "\n".join(f"STEP: step {i}" for i in range(60))
        flowchart = build_flowchart(text)
        ids = [n.node_id for n in flowchart.nodes]
        assert len(ids) == len(set(ids)) == 60


# =========================================================================
# Tests: Shapes
# =========================================================================

class TestShapes:
    @pytest.mark.parametrize("line,declaration", [
        ("START: x", 'N1(("x"))'),
        ("STEP: x", 'N1["x"]'),
        ("PROCESS: x", 'N1["x"]'),
        ("PREPARATION: x", 'N1["x"]'),
        ("DELAY: x", 'N1["x"]'),
        ("MANUAL LOOP: x", 'N1["x"]'),
        ("LOOP LIMIT: x", 'N1["x"]'),
        ("COLLATE: x", 'N1["x"]'),
        ("SORT: x", 'N1["x"]'),
        ("DOCUMENT: x", 'N1["x"]'),
        ("SUBPROCESS: x", 'N1("x")'),
        ("SUBROUTINE: x", 'N1[["x"]]'),
        ("MULTIPLE DOCUMENTS: x", 'N1[["x"]]'),
        ("MULTI DOCUMENT: x", 'N1[["x"]]'),
        ("INPUT: x", 'N1[/"x"/]'),
        ("OUTPUT: x", 'N1[/"x"/]'),
        ("MANUAL INPUT: x", 'N1[/"x"/]'),
        ("DATABASE: x", 'N1[("x")]'),
        ("STORED DATA: x", 'N1[("x")]'),
        ("DATA STORAGE: x", 'N1[("x")]'),
        ("INTERNAL STORAGE: x", 'N1[("x")]'),
        ("DISPLAY: x", 'N1>"x"]'),
        ("IF: x", 'N1{"x"}'),
        ("DECISION: x", 'N1{"x"}'),
        ("MERGE: x", 'N1{"x"}'),
        ("OR: x", 'N1{"x"}'),
        ("CONNECTOR: x", 'N1(("x"))'),
        ("SUMMING JUNCTION: x", 'N1(("x"))'),
        ("OFF PAGE: x", 'N1(("x"))'),
        ("OFFPAGE: x", 'N1(("x"))'),
    ])
    def test_declaration(self, line, declaration):
        flowchart = build_flowchart(line)
        assert flowchart.statements[0] == declaration

    def test_note_gets_style(self):
        flowchart = build_flowchart("NOTE: remember")
        assert flowchart.statements[0] == 'N1["remember"]'
        assert flowchart.statements[1].startswith("style N1 fill:")
        assert flowchart.nodes[0].shape == ShapeKind.NOTE


# =========================================================================
# Tests: Decisions and branches
# =========================================================================

class TestBranches:
    def test_nested_directives_use_their_own_shape(self):
        flowchart = build_flowchart("IF: Q\nYES: STEP: A\nNO: STEP: B")
        a = flowchart.node_by_label("A")
        b = flowchart.node_by_label("B")
        assert a.shape == ShapeKind.PROCESS
        assert b.shape == ShapeKind.PROCESS
        assert Edge("N1", a.node_id, label="Yes") in flowchart.edges
        assert Edge("N1", b.node_id, label="No") in flowchart.edges
        assert flowchart.node_by_label("STEP: A") is None

    def test_nested_output_directive(self):
        flowchart = build_flowchart("DECISION: Found?\n  YES: OUTPUT: Show results")
        assert flowchart.statements[1] == 'N2[/"Show results"/]'
        assert flowchart.statements[2] == "N1 -- Yes --> N2"

    def test_literal_branch_text(self):
        flowchart = build_flowchart("IF: Ready?\nYES: Approve order")
        node = flowchart.nodes[1]
        assert node.label == "Approve order"
        assert node.shape == ShapeKind.PROCESS

    def test_branch_without_decision_has_no_edge(self):
        flowchart = build_flowchart("YES: Just do it")
        assert len(flowchart.nodes) == 1
        assert flowchart.edges == []

    def test_branch_becomes_previous(self):
        flowchart = build_flowchart("IF: Q\nYES: STEP: A\nSTEP: next")
        assert ("N2", "N3") in _edge_pairs(flowchart)

    def test_stray_branch_attaches_to_stale_decision(self):
        # The decision pointer is never cleared after YES/NO
        flowchart = build_flowchart("IF: Q\nYES: STEP: A\nSTEP: B\nNO: STEP: C")
        c = flowchart.node_by_label("C")
        assert Edge("N1", c.node_id, label="No") in flowchart.edges

    def test_later_decision_replaces_pointer(self):
        flowchart = build_flowchart("IF: first\nSTEP: mid\nDECISION: second\nYES: STEP: A")
        a = flowchart.node_by_label("A")
        assert Edge("N3", a.node_id, label="Yes") in flowchart.edges

    def test_merge_does_not_become_decision(self):
        flowchart = build_flowchart("IF: Q\nMERGE: join\nYES: STEP: A")
        a = flowchart.node_by_label("A")
        assert Edge("N1", a.node_id, label="Yes") in flowchart.edges

    def test_branch_go_to(self):
        flowchart = build_flowchart("START: Loop top\nIF: Again?\nYES: GO TO: Loop top\nNO: END: Done")
        assert Edge("N2", "N1", label="Yes") in flowchart.edges
        assert Edge("N2", "N3", label="No") in flowchart.edges
        assert len(flowchart.nodes) == 3

    def test_branch_to_connector(self):
        flowchart = build_flowchart("DECISION: Passed?\nYES: CONNECTOR: Success")
        assert flowchart.node_by_label("Success").shape == ShapeKind.CONNECTOR

    @pytest.mark.parametrize("keyword", ["NOTE", "COMMENT"])
    def test_branch_annotation_hangs_off_decision(self, keyword):
        flowchart = build_flowchart(f"IF: Card valid?\nYES: {keyword}: check card\nSTEP: next")
        note = flowchart.nodes[1]
        assert note.shape == ShapeKind.NOTE
        assert note.label == "check card"
        assert Edge("N1", "N2", dotted=True) in flowchart.edges
        assert flowchart.node_by_label(f"{keyword}: check card") is None
        # Notes never become previous
        assert Edge("N1", "N3") in flowchart.edges

    def test_branch_group_start_opens_scope(self):
        flowchart = build_flowchart("IF: Q\nNO: GROUP START: Recovery\nSTEP: retry\nGROUP END")
        assert flowchart.node_by_label("GROUP START: Recovery") is None
        assert [g.title for g in flowchart.groups] == ["Recovery"]
        assert 'subgraph G1 ["Recovery"]' in flowchart.statements
        assert "    N2[\"retry\"]" in flowchart.statements
        assert flowchart.statements[-1] == "end"

    def test_branch_group_end_closes_scope(self):
        flowchart = build_flowchart("GROUP START: G\nIF: Q\nYES: GROUP END\nSTEP: after")
        assert flowchart.node_by_label("GROUP END") is None
        assert flowchart.statements.count("end") == 1
        assert flowchart.statements[-2:] == ['N2["after"]', "N1 --> N2"]


# =========================================================================
# Tests: GO TO and the label index
# =========================================================================

class TestGoTo:
    def test_back_reference_case_insensitive(self):
        flowchart = build_flowchart(LOOP_BACK)
        assert flowchart.edges[-1] == Edge("N3", "N2")
        assert len(flowchart.nodes) == 3

    def test_bare_form(self):
        flowchart = build_flowchart("STEP: Retry\nSTEP: Check\nGO TO Retry")
        assert flowchart.edges[-1] == Edge("N2", "N1")

    def test_forward_reference_dropped(self):
        flowchart = build_flowchart("STEP: A\nGO TO: Later\nSTEP: Later")
        assert _edge_pairs(flowchart) == [("N1", "N2")]

    def test_no_match_is_silent(self):
        code = generate("STEP: A\nGO TO: nowhere")
        assert code == 'graph TD\nN1["A"]\n'

    def test_go_to_does_not_move_previous(self):
        flowchart = build_flowchart("STEP: A\nSTEP: B\nGO TO: A\nSTEP: C")
        assert ("N2", "N3") in _edge_pairs(flowchart)

    def test_last_label_wins(self):
        flowchart = build_flowchart("STEP: Dup\nSTEP: Dup\nSTEP: Other\nGO TO: dup")
        assert flowchart.edges[-1] == Edge("N3", "N2")

    def test_target_brackets_cleaned(self):
        flowchart = build_flowchart("STEP: call api()\nSTEP: B\nGO TO: call api()")
        assert flowchart.edges[-1] == Edge("N2", "N1")


# =========================================================================
# Tests: Unknown lines
# =========================================================================

class TestUnknownLines:
    def test_unknown_line_has_no_effect(self):
        with_unknown = build_flowchart("STEP: A\nFOO: bar\nSTEP: B")
        without = build_flowchart("STEP: A\nSTEP: B")
        assert with_unknown.code == without.code
        assert with_unknown.skipped_lines == ["FOO: bar"]

    def test_lowercase_keyword_is_unknown(self):
        flowchart = build_flowchart("step: quiet")
        assert flowchart.nodes == []

    def test_prefix_without_colon_is_unknown(self):
        flowchart = build_flowchart("ORDER: pizza\nSTEPS: many")
        assert flowchart.nodes == []
        assert len(flowchart.skipped_lines) == 2


# =========================================================================
# Tests: Comments and notes
# =========================================================================

class TestAnnotations:
    def test_comment_links_dotted_and_keeps_previous(self):
        flowchart = build_flowchart("STEP: A\nCOMMENT: side note\nSTEP: B")
        assert Edge("N1", "N2", dotted=True) in flowchart.edges
        assert Edge("N1", "N3") in flowchart.edges
        assert "N1 -.-> N2" in flowchart.statements

    def test_comment_without_previous(self):
        flowchart = build_flowchart("COMMENT: lonely")
        assert flowchart.edges == []


# =========================================================================
# Tests: Parallel blocks
# =========================================================================

class TestParallel:
    def test_fan_out_from_anchor(self):
        flowchart = build_flowchart(PARALLEL_BLOCK)
        assert _edge_pairs(flowchart) == [
            ("N1", "N2"),  # Before -> P
            ("N2", "N3"),  # P -> A
            ("N2", "N4"),  # P -> B
            ("N4", "N5"),  # B -> C
        ]
        assert ("N3", "N4") not in _edge_pairs(flowchart)

    def test_step_after_parallel_start_is_unlinked(self):
        flowchart = build_flowchart("PARALLEL START: P\nSTEP: orphan")
        assert flowchart.edges == []

    def test_path_without_anchor_links_from_previous(self):
        flowchart = build_flowchart("STEP: A\nPARALLEL PATH: B")
        assert _edge_pairs(flowchart) == [("N1", "N2")]

    def test_parallel_end_clears_anchor(self):
        flowchart = build_flowchart(PARALLEL_BLOCK + "\nPARALLEL PATH: D")
        assert ("N5", "N6") in _edge_pairs(flowchart)


# =========================================================================
# Tests: Groups
# =========================================================================

class TestGroups:
    def test_group_wraps_and_indents(self):
        code = generate("START: S\nGROUP START: Payment\nSTEP: Pay\nGROUP END\nSTEP: Done")
        assert code == (
            "graph TD\n"
            'N1(("S"))\n'
            'subgraph G1 ["Payment"]\n'
            '    N2["Pay"]\n'
            "    N1 --> N2\n"
            "end\n"
            'N3["Done"]\n'
            "N2 --> N3\n"
        )

    def test_nested_groups(self):
        flowchart = build_flowchart(NESTED_GROUPS)
        assert flowchart.statements == [
            'subgraph G1 ["Outer"]',
            '    subgraph G2 ["Inner"]',
            '        N1["x"]',
            "    end",
            "end",
        ]
        assert [g.depth for g in flowchart.groups] == [1, 2]

    def test_unclosed_group_closed_at_end(self):
        code = generate("GROUP START: Open\nSTEP: x")
        assert code.endswith('    N1["x"]\nend\n')

    def test_extra_group_end_ignored(self):
        assert generate("GROUP END\nSTEP: x") == 'graph TD\nN1["x"]\n'

    def test_untitled_group(self):
        flowchart = build_flowchart("GROUP START\nSTEP: x\nGROUP END")
        assert flowchart.statements[0] == "subgraph G1"

    def test_bare_group_title(self):
        flowchart = build_flowchart("GROUP START Payment\nGROUP END")
        assert flowchart.groups[0].title == "Payment"


# =========================================================================
# Tests: Labels
# =========================================================================

class TestLabels:
    def test_structural_characters_stripped(self):
        flowchart = build_flowchart("STEP: Call api() [v2] {x}")
        assert flowchart.nodes[0].label == "Call api v2 x"

    def test_quotes_pass_through_by_default(self):
        assert generate('STEP: Say "hi"') == 'graph TD\nN1["Say "hi""]\n'

    def test_quotes_escaped_on_request(self):
        code = generate('STEP: Say "hi"', escape_quotes=True)
        assert code == 'graph TD\nN1["Say #quot;hi#quot;"]\n'

    def test_escaping_keeps_label_index(self):
        flowchart = build_flowchart('STEP: "A"\nSTEP: B\nGO TO: "a"', escape_quotes=True)
        assert flowchart.edges[-1] == Edge("N2", "N1")


# =========================================================================
# Tests: Determinism and isolation
# =========================================================================

class TestDeterminism:
    @pytest.mark.parametrize("key", sorted(SAMPLES))
    def test_same_input_same_output(self, key):
        text = SAMPLES[key]["documentation"]
        assert generate(text) == generate(text)

    @pytest.mark.parametrize("key", sorted(SAMPLES))
    def test_samples_have_no_skipped_lines(self, key):
        flowchart = build_flowchart(SAMPLES[key]["documentation"])
        assert flowchart.skipped_lines == []
        assert flowchart.nodes

    def test_builder_reuse_starts_fresh(self):
        builder = FlowchartBuilder()
        first = builder.build(LOOP_BACK)
        second = builder.build(LOOP_BACK)
        assert first.code == second.code

    def test_concurrent_calls_do_not_share_state(self):
        texts = [SAMPLES[k]["documentation"] for k in sorted(SAMPLES)] * 8
        expected = [generate(t) for t in texts]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(generate, texts))
        assert results == expected

    def test_shared_builder_across_threads(self):
        builder = FlowchartBuilder()
        texts = [SAMPLES[k]["documentation"] for k in sorted(SAMPLES)] * 16
        expected = [generate(t) for t in texts]

        # Force frequent thread switches so interleaved builds would collide
        interval = sys.getswitchinterval()
        sys.setswitchinterval(1e-6)
        try:
            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(pool.map(lambda t: builder.build(t).code, texts))
        finally:
            sys.setswitchinterval(interval)
        assert results == expected
