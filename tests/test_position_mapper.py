from __future__ import annotations

import pytest

from core.errors import LineIndexMismatch
from parse.syntax import Locate, SourceText, SyntaxTree, TokenKind
from semantic.position import Position, PositionMapper, Range
from sv_source import parse_sv, position_of

LF_SOURCE = "module a;\n  b u0();\nendmodule\n"
CRLF_SOURCE = "module a;\r\n\r\n  b u0();\r\n\r\n\r\nendmodule\r\n"
MIXED_SOURCE = "module a;\n\r\n\n  b u0();\r\n\nendmodule"
BLANK_SOURCE = "\n\n\nmodule a;\n\n\n\n  b u0();\n\nendmodule\n\n"


def _mapper(text: str) -> tuple[SyntaxTree, PositionMapper]:
    tree = parse_sv(text)
    return tree, PositionMapper.from_tree(tree)


@pytest.mark.parametrize(
    "text", [LF_SOURCE, CRLF_SOURCE, MIXED_SOURCE, BLANK_SOURCE]
)
def test_locate_and_offset_lookups_agree(text: str) -> None:
    tree, mapper = _mapper(text)

    for token in tree.tokens:
        locate = token.locate
        assert mapper.position_of(locate) == mapper.offset_to_position(locate.offset)


@pytest.mark.parametrize(
    "text", [LF_SOURCE, CRLF_SOURCE, MIXED_SOURCE, BLANK_SOURCE]
)
def test_positions_match_text_rows_and_columns(text: str) -> None:
    tree, mapper = _mapper(text)
    endmodule = next(
        token for token in tree.tokens if tree.get_str(token) == "endmodule"
    )

    assert mapper.position_of(endmodule.locate) == position_of(text, "endmodule")
    assert mapper.offset_to_position(endmodule.locate.offset) == position_of(
        text, "endmodule"
    )


def test_crlf_counts_as_one_terminator() -> None:
    _, mapper = _mapper(CRLF_SOURCE)

    assert mapper.line_count == CRLF_SOURCE.count("\n") + 1
    assert mapper.line_start(1) == len("module a;\r\n")
    assert mapper.line_start(2) == len("module a;\r\n\r\n")


def test_every_blank_line_adds_one_line_start() -> None:
    _, mapper = _mapper(BLANK_SOURCE)

    assert mapper.line_count == BLANK_SOURCE.count("\n") + 1
    assert [mapper.line_start(row) for row in range(4)] == [0, 1, 2, 3]


def test_lone_carriage_return_is_not_a_line_break() -> None:
    tree, mapper = _mapper("module a;\r  endmodule\n")
    endmodule = next(
        token for token in tree.tokens if tree.get_str(token) == "endmodule"
    )

    assert mapper.line_count == 2
    assert mapper.position_of(endmodule.locate) == Position(row=0, col=12)


def test_row_outside_table_is_a_line_index_mismatch() -> None:
    _, mapper = _mapper(LF_SOURCE)

    with pytest.raises(LineIndexMismatch) as excinfo:
        mapper.locate_to_position(99, 0)

    assert excinfo.value.details["line"] == 99
    assert excinfo.value.details["line_count"] == mapper.line_count


def test_offset_before_row_start_is_a_line_index_mismatch() -> None:
    _, mapper = _mapper(LF_SOURCE)

    with pytest.raises(LineIndexMismatch):
        mapper.locate_to_position(2, 0)


def test_line_zero_is_rejected() -> None:
    _, mapper = _mapper(LF_SOURCE)

    with pytest.raises(LineIndexMismatch):
        mapper.locate_to_position(0, 0)


def test_negative_offset_is_rejected() -> None:
    _, mapper = _mapper(LF_SOURCE)

    with pytest.raises(ValueError):
        mapper.offset_to_position(-1)


def test_tree_without_newline_tokens_has_one_line() -> None:
    mapper = PositionMapper.from_tree(
        SyntaxTree(source=b"a\nb", tokens=(), source_text=SourceText(descriptions=()))
    )

    assert mapper.line_count == 1
    assert mapper.offset_to_position(2) == Position(row=0, col=2)


def test_range_of_single_token() -> None:
    _, mapper = _mapper(LF_SOURCE)
    offset = LF_SOURCE.index("u0")

    span = mapper.range_of(Locate(offset=offset, line=2, length=2))

    assert span == Range(begin=Position(1, 4), end=Position(1, 6))


def test_newline_tokens_are_reported_by_the_tree() -> None:
    tree, _ = _mapper(MIXED_SOURCE)

    kinds = {token.kind for token in tree.newlines()}
    assert kinds == {TokenKind.NEWLINE}
    assert sum(tree.get_str(token).count("\n") for token in tree.newlines()) == 5


def test_range_compare_against_points() -> None:
    span = Range(begin=Position(1, 4), end=Position(3, 2))

    assert span.compare(Position(0, 9)) == 1
    assert span.compare(Position(1, 3)) == 1
    assert span.compare(Position(1, 4)) == 0
    assert span.compare(Position(2, 0)) == 0
    assert span.compare(Position(2, 99)) == 0
    assert span.compare(Position(3, 1)) == 0
    assert span.compare(Position(3, 2)) == -1
    assert span.compare(Position(4, 0)) == -1
