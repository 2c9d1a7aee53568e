"""
Tests for participant extraction and transcript parsing
"""
import pytest

from extractor import extract_participants, parse_transcript


def test_extracts_both_profiles_in_order(users_info):
    first, second = extract_participants(users_info)
    assert (first.id, first.display_name) == ("P1", "Mark Brown")
    assert (second.id, second.display_name) == ("P2", "Tom Scott")


def test_no_recognizable_fields_gives_placeholders():
    participants = extract_participants("just some notes about two people")
    assert [(p.id, p.display_name) for p in participants] == [
        ("user_1", "User 1"),
        ("user_2", "User 2"),
    ]


@pytest.mark.parametrize("raw", [None, "", "   \n\n", "Profile ID:\nUser Name:"])
def test_always_two_non_empty_participants(raw):
    participants = extract_participants(raw)
    assert len(participants) == 2
    assert all(p.id and p.display_name for p in participants)


def test_missing_second_profile_is_filled():
    participants = extract_participants("profile id: abc-1\nuser name: Ana")
    assert (participants[0].id, participants[0].display_name) == ("abc-1", "Ana")
    assert (participants[1].id, participants[1].display_name) == ("user_2", "User 2")


def test_labels_are_case_insensitive_and_values_trimmed():
    raw = "PROFILE ID :   X9  \nUSERNAME:  Zoe  \nprofile id: Y7\nuser name: Yann"
    first, second = extract_participants(raw)
    assert (first.id, first.display_name) == ("X9", "Zoe")
    assert (second.id, second.display_name) == ("Y7", "Yann")


def test_bare_name_label_is_a_fallback():
    first, second = extract_participants("Profile ID: 1\nName: Ada\nProfile ID: 2\nName: Grace")
    assert first.display_name == "Ada"
    assert second.display_name == "Grace"


def test_user_name_is_not_counted_twice():
    raw = "Profile ID: 1\nUser Name: Ada\nProfile ID: 2\nName: Grace"
    first, second = extract_participants(raw)
    assert first.display_name == "Ada"
    assert second.display_name == "Grace"


def test_extra_profiles_are_ignored():
    raw = "\n".join(f"Profile ID: {i}\nUser Name: Person {i}" for i in range(1, 5))
    participants = extract_participants(raw)
    assert [p.id for p in participants] == ["1", "2"]


def test_empty_field_value_does_not_swallow_next_line():
    first, _ = extract_participants("Profile ID:\nUser Name: Ada")
    assert first.id == "user_1"
    assert first.display_name == "Ada"


def test_parse_empty_transcript():
    assert parse_transcript("") == []
    assert parse_transcript(None) == []


def test_parse_splits_on_first_colon():
    turns = parse_transcript("Mark Brown: Meet at 10:30?\n  AI(to Mark): Sure: noted  \n")
    assert [(t.speaker, t.text) for t in turns] == [
        ("Mark Brown", "Meet at 10:30?"),
        ("AI(to Mark)", "Sure: noted"),
    ]


def test_line_without_colon_continues_previous_turn():
    turns = parse_transcript("Tom Scott: first line\nsecond line\n\nthird line")
    assert len(turns) == 1
    assert turns[0].text == "first line\nsecond line\nthird line"


def test_leading_line_without_colon_has_empty_speaker():
    turns = parse_transcript("hello there\nMark Brown: hi")
    assert turns[0].speaker == ""
    assert turns[0].text == "hello there"
    assert turns[1].speaker == "Mark Brown"


def test_parse_is_restartable():
    raw = "A: one\nB: two"
    assert parse_transcript(raw) == parse_transcript(raw)


def test_only_newlines_split_turns():
    turns = parse_transcript("Mark Brown: a\x0cTom Scott: b c\r\nTom Scott: d")
    assert [(t.speaker, t.text) for t in turns] == [
        ("Mark Brown", "a\x0cTom Scott: b c"),
        ("Tom Scott", "d"),
    ]
