"""Vcard parsing, validation, editing and serialisation."""
from __future__ import annotations

import pytest

from vcard_parser.card import Vcard
from vcard_parser.errors import (
    CardinalityViolation,
    FnRequired,
    InvalidParameter,
    InvalidValue,
    MalformedDocument,
    MissingFn,
    MissingVersion,
    NotFound,
    UnknownValueType,
    UnsupportedVersion,
)
from vcard_parser.model import counter_identities
from vcard_parser.schema import PropertyType
from vcard_parser.values import ClientPidMapValue, DateValue, TextValue

CLIENT = "urn:uuid:53e374d9-337e-4727-8803-a1e9c14e0556"


# ── helpers ────────────────────────────────────────────────────────────────────

def _text(*lines: str, newline: str = "\r\n") -> str:
    return newline.join(["BEGIN:VCARD", *lines, "END:VCARD"]) + newline


def _card(*lines: str) -> Vcard:
    return Vcard.from_text(_text(*lines), identities=counter_identities())


# ── Parsing ────────────────────────────────────────────────────────────────────

def test_minimal_card_round_trips_exactly():
    text = "BEGIN:VCARD\nVERSION:4.0\nFN:John Doe\nEND:VCARD\n"
    card = Vcard.from_text(text)
    assert card.is_valid
    assert card.first(PropertyType.FN).value == TextValue("John Doe")
    assert card.fn == "John Doe"
    assert card.to_text() == text


def test_crlf_card_round_trips_exactly():
    text = _text(
        "VERSION:4.0",
        "FN:Mr. John Q. Public\\, Esq.",
        "N:Public;John;Quinlan;Mr.;Esq.",
        "BDAY:--0415",
        "item1.X-ABADR;X-SERVICE=TEST:us",
        'EMAIL;TYPE="INTERNET,HOME":jqp@example.com',
        "GEO:geo:37.386013,-122.082932",
    )
    assert Vcard.from_text(text).to_text() == text


def test_folded_input_is_unfolded_and_refolded():
    note = "NOTE:" + "This note is long enough that it has to be folded. " * 3
    card = _card("VERSION:4.0", "FN:A", note)
    text = card.to_text()
    assert "\r\n " in text
    assert Vcard.from_text(text).first("NOTE").value == card.first("NOTE").value


def test_properties_keep_parse_order():
    card = _card("VERSION:4.0", "NOTE:1", "FN:A", "NOTE:2", "X-Z:3")
    assert [p.name for p in card] == ["VERSION", "NOTE", "FN", "NOTE", "X-Z"]
    assert [p.identity for p in card] == ["p1", "p2", "p3", "p4", "p5"]


def test_marker_case_and_blank_lines():
    card = Vcard.from_text("begin:vcard\n\nVERSION:4.0\nFN:x\n\nend:vcard\n")
    assert len(card) == 2


def test_type_directed_values():
    card = _card("VERSION:4.0", "FN:A", "BDAY:19850604", "ANNIVERSARY;VALUE=text:circa 1990")
    assert card.first("BDAY").value == DateValue(1985, 6, 4)
    assert card.first("ANNIVERSARY").value == TextValue("circa 1990")


def test_strict_parse_raises_on_bad_property():
    with pytest.raises(InvalidValue):
        _card("VERSION:4.0", "FN:A", "BDAY:not a date")
    with pytest.raises(UnknownValueType):
        _card("VERSION:4.0", "FN;VALUE=uri:https://example.com")


def test_lenient_parse_drops_and_records():
    text = _text("VERSION:4.0", "FN:A", "BDAY:not a date", "garbage line", "NOTE:kept")
    card = Vcard.from_text_lenient(text)
    assert [p.name for p in card] == ["VERSION", "FN", "NOTE"]
    assert [line for line, _ in card.rejected] == ["BDAY:not a date", "garbage line"]
    assert isinstance(card.rejected[0][1], InvalidValue)
    assert card.is_valid


def test_lenient_parse_rejects_non_ascii_digits():
    text = _text("VERSION:4.0", "FN:A", "EMAIL;PREF=²:a@b.c", "BDAY:١٩٨٥٠٦٠٤", "NOTE:kept")
    card = Vcard.from_text_lenient(text)
    assert [p.name for p in card] == ["VERSION", "FN", "NOTE"]
    assert isinstance(card.rejected[0][1], InvalidParameter)
    assert isinstance(card.rejected[1][1], InvalidValue)


@pytest.mark.parametrize("text", [
    "VERSION:4.0\nFN:x\nEND:VCARD\n",
    "BEGIN:VCARD\nVERSION:4.0\nFN:x\n",
    "BEGIN:VCARD\nBEGIN:VCARD\nFN:x\nEND:VCARD\nEND:VCARD\n",
    "BEGIN:VCARD\nFN:x\nEND:VCARD\nBEGIN:VCARD\nFN:y\nEND:VCARD\n",
    "",
])
def test_unbalanced_blocks(text: str):
    with pytest.raises(MalformedDocument):
        Vcard.from_text(text)


# ── Validation ─────────────────────────────────────────────────────────────────

def test_two_fn_is_cardinality_violation():
    card = _card("VERSION:4.0", "FN:A", "FN:B")
    assert CardinalityViolation(PropertyType.FN, 2) in card.errors
    assert not card.is_valid


def test_missing_version():
    card = _card("FN:A")
    assert any(isinstance(e, MissingVersion) for e in card.errors)


def test_missing_fn_and_unsupported_version():
    card = _card("VERSION:3.0")
    kinds = {type(e) for e in card.errors}
    assert kinds == {UnsupportedVersion, MissingFn}
    assert card.errors[0].version == "3.0"


def test_duplicate_version():
    card = _card("VERSION:4.0", "VERSION:4.0", "FN:A")
    assert card.errors == [CardinalityViolation(PropertyType.VERSION, 2)]


@pytest.mark.parametrize("name, line", [
    ("N", "N:Doe;John;;;"),
    ("BDAY", "BDAY:19850604"),
    ("GENDER", "GENDER:M"),
    ("KIND", "KIND:individual"),
    ("UID", "UID:urn:uuid:1"),
    ("REV", "REV:19951031T222710Z"),
    ("PRODID", "PRODID:-//ONLINE DIRECTORY//NONSGML Version 1//EN"),
])
def test_single_cardinality_types(name: str, line: str):
    card = _card("VERSION:4.0", "FN:A", line, line)
    assert card.errors == [CardinalityViolation(PropertyType[name], 2)]


def test_multi_cardinality_types_are_fine():
    card = _card("VERSION:4.0", "FN:A", "EMAIL:a@b.c", "EMAIL:d@e.f", "TEL:1", "TEL:2", "NOTE:x", "NOTE:y")
    assert card.errors == []


def test_altid_instances_count_once():
    card = _card(
        "VERSION:4.0",
        "FN:A",
        "N;ALTID=1;LANGUAGE=ja:Yamada;Taro;;;",
        "N;ALTID=1;LANGUAGE=en:Yamada;Taro;;;",
    )
    assert card.is_valid
    card.add_property("N;ALTID=2:Other;Name;;;")
    assert card.errors == [CardinalityViolation(PropertyType.N, 2)]


def test_extensions_are_never_constrained():
    card = _card("VERSION:4.0", "FN:A", "X-ONE:1", "X-ONE:2", "X-ONE:3")
    assert card.is_valid


def test_validation_never_discards_properties():
    card = _card("FN:A", "FN:B", "GENDER:M", "GENDER:F")
    assert len(card) == 4
    assert len(card.errors) == 3


# ── Editing ────────────────────────────────────────────────────────────────────

def test_new_card_is_valid():
    card = Vcard.new("Jane, Smith", identities=counter_identities())
    assert card.is_valid
    assert card.fn == "Jane, Smith"
    assert card.to_text() == "BEGIN:VCARD\r\nVERSION:4.0\r\nFN:Jane\\, Smith\r\nEND:VCARD\r\n"


def test_add_property_returns_identity():
    card = _card("VERSION:4.0", "FN:A")
    identity = card.add_property("EMAIL;TYPE=work:a@example.com")
    assert identity == "p3"
    assert card.get(identity).value == TextValue("a@example.com")
    assert card.properties[-1].identity == identity


def test_add_property_parse_error_leaves_card_untouched():
    card = _card("VERSION:4.0", "FN:A")
    with pytest.raises(InvalidValue):
        card.add_property("BDAY:yesterday")
    assert len(card) == 2


def test_replace_property_keeps_identity_and_position():
    card = _card("VERSION:4.0", "FN:John", "NOTE:x")
    fn_id = card.first("FN").identity
    card.replace_property(fn_id, "FN:Johnny")
    assert card.properties[1].identity == fn_id
    assert card.properties[1].value == TextValue("Johnny")
    assert card.fn == "Johnny"


def test_replace_property_updates_errors():
    card = _card("VERSION:4.0", "FN:A", "NOTE:x")
    card.replace_property(card.first("NOTE").identity, "FN:B")
    assert card.errors == [CardinalityViolation(PropertyType.FN, 2)]


def test_replace_unknown_identity():
    card = _card("VERSION:4.0", "FN:A")
    with pytest.raises(NotFound):
        card.replace_property("nope", "FN:B")
    with pytest.raises(KeyError):
        card.get("nope")


def test_failed_replace_keeps_old_property():
    card = _card("VERSION:4.0", "FN:A", "BDAY:19850604")
    bday = card.first("BDAY")
    with pytest.raises(InvalidValue):
        card.replace_property(bday.identity, "BDAY:soon")
    assert card.first("BDAY") == bday


def test_remove_property():
    card = _card("VERSION:4.0", "FN:A", "NOTE:x")
    card.remove_property(card.first("NOTE").identity)
    assert [p.name for p in card] == ["VERSION", "FN"]
    with pytest.raises(FnRequired):
        card.remove_property(card.first("FN").identity)
    with pytest.raises(NotFound):
        card.remove_property("missing")


def test_find_matches_extension_names_case_insensitively():
    card = _card("VERSION:4.0", "FN:A", "X-Pet:cat", "x-pet:dog")
    assert [p.value for p in card.find("X-PET")] == [TextValue("cat"), TextValue("dog")]
    assert card.find(PropertyType.EXTENSION) == card.find("x-pet")
    assert card.first("NOTE") is None


def test_edit_then_serialise():
    card = Vcard.from_text("BEGIN:VCARD\nVERSION:4.0\nFN:A\nEND:VCARD\n")
    card.add_property("NOTE:added")
    assert card.to_text() == "BEGIN:VCARD\nVERSION:4.0\nFN:A\nNOTE:added\nEND:VCARD\n"
    assert card.to_text(newline="\r\n").count("\r\n") == 5


# ── Client ─────────────────────────────────────────────────────────────────────

def test_client_card_gets_a_pid_map():
    card = Vcard.from_text(_text("VERSION:4.0", "FN:A"), identities=counter_identities(), client=CLIENT)
    mapping = card.client_pid_map()
    assert mapping is not None
    assert mapping.value == ClientPidMapValue(1, CLIENT)
    assert card.to_text().endswith(f"FN:A\r\nCLIENTPIDMAP:1;{CLIENT}\r\nEND:VCARD\r\n")
    assert card.is_valid


def test_client_reuses_its_existing_map():
    text = _text("VERSION:4.0", "FN:A", "CLIENTPIDMAP:1;urn:uuid:other", f"CLIENTPIDMAP:2;{CLIENT}")
    card = Vcard.from_text(text, client=CLIENT)
    assert len(card.find(PropertyType.CLIENTPIDMAP)) == 2
    assert card.client_pid_map().value.source_id == 2


def test_new_client_takes_next_source_id():
    card = Vcard.from_text(_text("VERSION:4.0", "FN:A", "CLIENTPIDMAP:1;urn:uuid:other"), client=CLIENT)
    assert card.client_pid_map().value == ClientPidMapValue(2, CLIENT)


def test_add_property_assigns_client_pids():
    card = Vcard.new("A", identities=counter_identities(), client=CLIENT)
    first = card.add_property("EMAIL:a@example.com")
    second = card.add_property("EMAIL;TYPE=work:b@example.com")
    assert card.get(first).param("PID") == ("1.1",)
    assert card.get(second).param("PID") == ("2.1",)
    text = card.to_text()
    assert text.startswith("BEGIN:VCARD\r\nVERSION:4.0\r\nFN:A\r\n")
    assert "EMAIL;PID=1.1:a@example.com\r\n" in text
    assert "EMAIL;TYPE=work;PID=2.1:b@example.com\r\n" in text
    assert card.is_valid


def test_add_property_skips_pids_where_they_do_not_apply():
    card = Vcard.new("A", identities=counter_identities(), client=CLIENT)
    assert card.get(card.add_property("BDAY:19850604")).param("PID") == ()
    assert card.get(card.add_property("X-PET:cat")).param("PID") == ()
    assert card.get(card.add_property("EMAIL;PID=7.1:c@example.com")).param("PID") == ("7.1",)
    assert card.get(card.add_property("CLIENTPIDMAP:9;urn:uuid:late")).param("PID") == ()


def test_client_pids_skip_taken_numbers():
    text = _text("VERSION:4.0", "FN:A", f"CLIENTPIDMAP:1;{CLIENT}", "EMAIL;PID=2.1:a@example.com")
    card = Vcard.from_text(text, client=CLIENT)
    identity = card.add_property("EMAIL:b@example.com")
    assert card.get(identity).param("PID") == ("3.1",)


def test_no_client_means_no_pids():
    card = Vcard.new("A")
    assert card.client_pid_map() is None
    assert card.get(card.add_property("EMAIL:a@example.com")).param("PID") == ()


def test_client_must_be_a_uri():
    with pytest.raises(InvalidValue):
        Vcard.new("A", client="not a uri")
