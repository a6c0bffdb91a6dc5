from __future__ import annotations

import logging

import pytest

from templet.decode import DeferredLookup
from templet.errors import TempletError
from templet.models import BaseBranch, EachBranch, IfBranch, TextBranch
from templet.template import compile_template
from templet.tree import ROOT, TreeBuilder


def test_builder_nests_branches_in_an_arena() -> None:
    builder = TreeBuilder()
    builder.add_text("a")
    builder.open_branch("if", "x", "${#if x}")
    builder.add_text("b")
    builder.close_branch("if")
    builder.add_text("c")

    nodes, open_kinds = builder.build()

    assert open_kinds == ()
    root = nodes[ROOT]
    assert isinstance(root, BaseBranch)
    assert [type(nodes[i]) for i in root.children] == [TextBranch, IfBranch, TextBranch]
    if_branch = nodes[root.children[1]]
    assert [nodes[i] for i in if_branch.children] == [TextBranch("b")]


def test_builder_reports_open_kinds_innermost_last() -> None:
    builder = TreeBuilder()
    builder.open_branch("if", "x", "${#if x}")
    builder.open_branch("each", "xs as x", "${#each xs as x}")

    _nodes, open_kinds = builder.build()

    assert open_kinds == ("if", "each")


def test_compile_tree_shape() -> None:
    tree = compile_template("a${#if x}b${#end if}c").to_dict()

    assert tree == {
        "kind": "base",
        "children": [
            {"kind": "text", "text": "a"},
            {
                "kind": "if",
                "path": "x",
                "negate": False,
                "operator": None,
                "children": [{"kind": "text", "text": "b"}],
            },
            {"kind": "text", "text": "c"},
        ],
    }


def test_placeholder_before_marker_stays_in_one_text_branch() -> None:
    template = compile_template("${#if a}${x}${#end if}")
    if_branch = template.nodes[template.nodes[ROOT].children[0]]

    assert [template.nodes[i] for i in if_branch.children] == [TextBranch("${x}")]


def test_if_marker_parsing() -> None:
    template = compile_template("${#if !count >= limits.max}x${#end if}")
    branch = template.nodes[template.nodes[ROOT].children[0]]

    assert branch == IfBranch(
        path="count",
        negate=True,
        operator=">=",
        operand=DeferredLookup("limits.max"),
        children=branch.children,
    )


def test_if_marker_with_quoted_operand_containing_spaces() -> None:
    template = compile_template("${#if name == 'Ana Lee'}x${#end if}")
    branch = template.nodes[template.nodes[ROOT].children[0]]

    assert branch.operand == "Ana Lee"


def test_each_marker_parsing() -> None:
    template = compile_template("${#each rows as i to row}${#end each}${#each tags as tag}${#end each}")
    first, second = (template.nodes[i] for i in template.nodes[ROOT].children)

    assert first == EachBranch(path="rows", value_name="row", key_name="i")
    assert second == EachBranch(path="tags", value_name="tag", key_name=None)


def test_unknown_branch_kind_fails_at_compile_time() -> None:
    with pytest.raises(TempletError) as exc:
        compile_template("${#unless x}y${#end unless}")

    assert exc.value.payload.error_code == "TPL_001"
    assert exc.value.payload.details["kind"] == "unless"


def test_marker_without_body_is_still_a_control_marker() -> None:
    with pytest.raises(TempletError) as exc:
        compile_template("${#if x}a${#else}b${#end if}")

    assert exc.value.payload.error_code == "TPL_001"


def test_mismatched_close_fails_at_compile_time() -> None:
    with pytest.raises(TempletError) as exc:
        compile_template("${#if x}a${#end each}")

    assert exc.value.payload.error_code == "TPL_002"
    assert str(exc.value) == "Expecting type if but got each"


def test_close_at_root_is_mismatched() -> None:
    with pytest.raises(TempletError) as exc:
        compile_template("text${#end if}")

    assert exc.value.payload.error_code == "TPL_002"
    assert exc.value.payload.details["expected"] == "base"


def test_unsupported_operator_fails_at_compile_time() -> None:
    with pytest.raises(TempletError) as exc:
        compile_template("${#if x => 5}y${#end if}")

    assert exc.value.payload.error_code == "TPL_004"
    assert exc.value.payload.details["operator"] == "=>"


@pytest.mark.parametrize("source", ["${#if x >}y${#end if}", "${#each items}x${#end each}"])
def test_malformed_marker_body(source: str) -> None:
    with pytest.raises(TempletError) as exc:
        compile_template(source)

    assert exc.value.payload.error_code == "TPL_005"


def test_close_marker_tolerates_whitespace() -> None:
    template = compile_template("${#if x}y${#end  if }")

    assert template.is_closed


def test_builder_logs_branch_structure(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="templet.tree"):
        compile_template("${#if x}y${#end if}")

    assert "Opened if branch at depth 1" in caplog.text
    assert "Closed if branch, back at depth 0" in caplog.text


@pytest.mark.parametrize("source", ["${#end base}hello", "a${#end base}"])
def test_root_cannot_be_closed(source: str) -> None:
    with pytest.raises(TempletError) as exc:
        compile_template(source)

    assert exc.value.payload.error_code == "TPL_002"
    assert exc.value.payload.details["depth"] == 0
