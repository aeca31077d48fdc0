import pytest

from models.schemas import DayOfWeek, SubjectType, TimeBlock
from services.validator import enrich_timeblocks, to_minutes, validate_extraction


def make_block(**overrides):
    block = {"day": "Monday", "start_time": "9:00", "end_time": "9:30", "subject": "Maths"}
    block.update(overrides)
    return block


def make_extraction(*blocks, **metadata):
    return {"metadata": dict(metadata), "timeblocks": list(blocks)}


def test_to_minutes():
    assert to_minutes("0:00") == 0
    assert to_minutes("9:05") == 545
    assert to_minutes("13:45") == 825


def test_durations_back_filled():
    outcome = validate_extraction(make_extraction(
        make_block(),
        make_block(start_time="10:30", end_time="10:45", subject="Break", subject_type="break"),
        make_block(start_time="13:00", end_time="15:10", subject="Science"),
    ))

    assert outcome.is_valid
    durations = [b.duration_minutes for b in outcome.data.timeblocks]
    assert durations == [30, 15, 130]
    for block in outcome.data.timeblocks:
        assert block.duration_minutes == to_minutes(block.end_time) - to_minutes(block.start_time)


def test_defaults_applied():
    outcome = validate_extraction(make_extraction(make_block()))

    block = outcome.data.timeblocks[0]
    assert block.subject_type == SubjectType.ACADEMIC
    assert block.confidence == 1.0
    assert block.notes is None
    assert outcome.data.metadata.extraction_confidence == 0.5


def test_explicit_nulls_fall_back_to_defaults():
    outcome = validate_extraction(make_extraction(
        make_block(subject_type=None, confidence=None),
        extraction_confidence=None,
    ))

    assert outcome.is_valid
    assert outcome.data.timeblocks[0].subject_type == SubjectType.ACADEMIC
    assert outcome.data.metadata.extraction_confidence == 0.5


def test_end_before_start_is_error():
    outcome = validate_extraction(make_extraction(
        make_block(start_time="10:00", end_time="9:30", subject="History"),
    ))

    assert not outcome.is_valid
    assert outcome.data is None
    assert outcome.errors[0].message == "End time must be after start time"
    assert outcome.errors[0].block == "History"
    assert outcome.errors[0].path == "timeblocks.0"


def test_equal_times_is_error():
    outcome = validate_extraction(make_extraction(make_block(start_time="9:00", end_time="9:00")))
    assert not outcome.is_valid


def test_one_bad_block_fails_whole_result():
    outcome = validate_extraction(make_extraction(
        make_block(),
        make_block(start_time="11:00", end_time="10:00", subject="PE"),
    ))
    assert not outcome.is_valid
    assert len(outcome.errors) == 1


@pytest.mark.parametrize("start,end", [("4:30", "5:30"), ("22:30", "24:00")])
def test_outside_school_hours_only_warns(start, end):
    outcome = validate_extraction(make_extraction(make_block(start_time=start, end_time=end, subject="Club")))

    assert outcome.is_valid
    assert [w.message for w in outcome.warnings] == ["Time outside reasonable school hours"]


@pytest.mark.parametrize("start,end", [("5:00", "6:00"), ("22:00", "23:59")])
def test_school_hours_boundaries_do_not_warn(start, end):
    outcome = validate_extraction(make_extraction(make_block(start_time=start, end_time=end)))

    assert outcome.is_valid
    assert outcome.warnings == []


def test_empty_timeblocks_fails():
    outcome = validate_extraction(make_extraction())

    assert not outcome.is_valid
    assert outcome.errors[0].path == "timeblocks"


@pytest.mark.parametrize("bad_time", ["9", "9:0", "09:000", "nine", "9.30", ""])
def test_bad_time_format_fails(bad_time):
    outcome = validate_extraction(make_extraction(make_block(start_time=bad_time)))

    assert not outcome.is_valid
    assert outcome.errors[0].path == "timeblocks.0.start_time"


def test_missing_required_fields_fail():
    outcome = validate_extraction(make_extraction({"day": "Monday", "start_time": "9:00"}))

    paths = {issue.path for issue in outcome.errors}
    assert "timeblocks.0.end_time" in paths
    assert "timeblocks.0.subject" in paths


def test_empty_subject_fails():
    outcome = validate_extraction(make_extraction(make_block(subject="")))
    assert not outcome.is_valid


def test_unknown_day_and_subject_type_fail():
    outcome = validate_extraction(make_extraction(make_block(day="Someday", subject_type="lunch")))

    paths = {issue.path for issue in outcome.errors}
    assert paths == {"timeblocks.0.day", "timeblocks.0.subject_type"}


def test_missing_metadata_fails():
    outcome = validate_extraction({"timeblocks": [make_block()]})
    assert not outcome.is_valid
    assert outcome.errors[0].path == "metadata"


def test_non_object_input_fails():
    outcome = validate_extraction(["not", "an", "object"])
    assert not outcome.is_valid


@pytest.mark.parametrize("raw,expected", [
    ("Mon", DayOfWeek.MONDAY),
    ("tuesday", DayOfWeek.TUESDAY),
    ("THU", DayOfWeek.THURSDAY),
    ("Sun", DayOfWeek.SUNDAY),
])
def test_day_aliases_normalized(raw, expected):
    outcome = validate_extraction(make_extraction(make_block(day=raw)))
    assert outcome.data.timeblocks[0].day == expected


def test_subject_preserved_verbatim():
    outcome = validate_extraction(make_extraction(make_block(subject="  Phonics (RWI) – Group 2 ")))
    assert outcome.data.timeblocks[0].subject == "  Phonics (RWI) – Group 2 "


def test_wrong_duration_corrected_with_warning():
    outcome = validate_extraction(make_extraction(make_block(duration_minutes=45)))

    assert outcome.is_valid
    assert outcome.data.timeblocks[0].duration_minutes == 30
    assert outcome.warnings[0].path == "timeblocks.0.duration_minutes"


def test_matching_duration_kept_without_warning():
    outcome = validate_extraction(make_extraction(make_block(duration_minutes=30)))

    assert outcome.data.timeblocks[0].duration_minutes == 30
    assert outcome.warnings == []


def test_low_confidence_block_warns():
    outcome = validate_extraction(
        make_extraction(make_block(confidence=0.3), make_block(start_time="10:00", end_time="11:00", confidence=0.9)),
        low_confidence_threshold=0.5,
    )

    assert outcome.is_valid
    assert [w.path for w in outcome.warnings] == ["timeblocks.0.confidence"]


def test_confidence_out_of_range_fails():
    outcome = validate_extraction(make_extraction(make_block(confidence=1.5)))
    assert not outcome.is_valid


def test_color_code_format():
    assert validate_extraction(make_extraction(make_block(color_code="#A1b2C3"))).is_valid
    assert not validate_extraction(make_extraction(make_block(color_code="red"))).is_valid


def test_enrich_does_not_mutate_input():
    block = TimeBlock(day="Monday", start_time="9:00", end_time="9:45", subject="Art")
    enriched, warnings = enrich_timeblocks([block])

    assert block.duration_minutes is None
    assert enriched[0].duration_minutes == 45
    assert warnings == []
