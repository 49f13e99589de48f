from __future__ import annotations

import pytest

from vcard_parser.errors import MalformedLine
from vcard_parser.lines import CRLF, LF, detect_newline, fold, fold_line, unfold


# ── Unfolding ──────────────────────────────────────────────────────────────────

def test_unfold_strips_one_space_and_adds_nothing():
    assert unfold("NOTE:This is a long\r\n  note.\n") == ["NOTE:This is a long note."]


def test_unfold_continuation_joins_without_separator():
    assert unfold("NOTE:This is a long\r\n note.\n") == ["NOTE:This is a longnote."]


def test_unfold_accepts_tab_continuation():
    assert unfold("NOTE:ab\n\tcd\nFN:x\n") == ["NOTE:abcd", "FN:x"]


def test_unfold_mixed_line_endings():
    assert unfold("A:1\r\nB:2\nC:3") == ["A:1", "B:2", "C:3"]


def test_unfold_leading_continuation_is_malformed():
    with pytest.raises(MalformedLine):
        unfold(" orphan\nFN:x\n")


# ── Folding ────────────────────────────────────────────────────────────────────

def test_short_line_is_not_folded():
    assert fold_line("FN:John Doe") == "FN:John Doe"


def test_fold_limits_physical_lines_to_75_octets():
    line = "NOTE:" + "x" * 200
    folded = fold_line(line)
    parts = folded.split(CRLF)
    assert all(len(p.encode("utf-8")) <= 75 for p in parts)
    assert len(parts[0]) == 75
    assert all(p.startswith(" ") for p in parts[1:])


def test_fold_never_splits_multibyte_sequences():
    line = "NOTE:" + "é" * 60 + "日本語" * 10
    for part in fold_line(line).split(CRLF):
        part.encode("utf-8").decode("utf-8")
        assert len(part.encode("utf-8")) <= 75


def test_fold_uses_given_newline():
    folded = fold(["NOTE:" + "y" * 100, "FN:a"], newline=LF)
    assert CRLF not in folded
    assert folded.endswith("FN:a\n")


@pytest.mark.parametrize("text", [
    "FN:short",
    "NOTE:" + "a" * 74,
    "NOTE:" + "b" * 75,
    "NOTE:" + "c" * 500,
    "NOTE:" + "ü" * 100 + "x",
    "NOTE:mixed 日本語 text " * 12,
])
def test_unfold_reverses_fold(text: str):
    assert unfold(fold([text])) == [text]


# ── Newline detection ──────────────────────────────────────────────────────────

def test_detect_newline():
    assert detect_newline("A\r\nB") == CRLF
    assert detect_newline("A\nB") == LF
    assert detect_newline("no break") == CRLF
