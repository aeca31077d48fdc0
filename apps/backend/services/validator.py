import logging
from typing import Any, List, Tuple

from pydantic import ValidationError

from models.schemas import TimeBlock, TimetableExtraction, ValidationIssue, ValidationOutcome

logger = logging.getLogger(__name__)

# Reasonable school hours (5 AM to 11 PM)
EARLIEST_HOUR = 5
LATEST_HOUR = 23


def parse_time(value: str) -> Tuple[int, int]:
    """Splits an "H:MM"/"HH:MM" string into (hour, minute)."""
    hour, minute = value.split(":")
    return int(hour), int(minute)


def to_minutes(value: str) -> int:
    hour, minute = parse_time(value)
    return hour * 60 + minute


def check_time_ranges(timeblocks: List[TimeBlock]) -> Tuple[List[ValidationIssue], List[ValidationIssue]]:
    """
    Business rules for each block.

    Returns:
        (errors, warnings): `end <= start` is an error; hours outside
        05:00-23:00 only warn.
    """
    errors, warnings = [], []

    for index, block in enumerate(timeblocks):
        start_hour, _ = parse_time(block.start_time)
        end_hour, _ = parse_time(block.end_time)
        path = f"timeblocks.{index}"

        if to_minutes(block.end_time) <= to_minutes(block.start_time):
            errors.append(ValidationIssue(
                path=path, block=block.subject,
                message="End time must be after start time",
            ))

        if start_hour < EARLIEST_HOUR or end_hour > LATEST_HOUR:
            warnings.append(ValidationIssue(
                path=path, block=block.subject,
                message="Time outside reasonable school hours",
            ))

    return errors, warnings


def check_confidence(timeblocks: List[TimeBlock], threshold: float) -> List[ValidationIssue]:
    return [
        ValidationIssue(
            path=f"timeblocks.{index}.confidence", block=block.subject,
            message=f"Low extraction confidence ({block.confidence:.2f})",
        )
        for index, block in enumerate(timeblocks)
        if block.confidence < threshold
    ]


def enrich_timeblocks(timeblocks: List[TimeBlock]) -> Tuple[List[TimeBlock], List[ValidationIssue]]:
    """
    Back-fills `duration_minutes` from the start/end times.

    A duration supplied by the model that disagrees with the times is
    overwritten and reported as a warning.
    """
    enriched, warnings = [], []

    for index, block in enumerate(timeblocks):
        duration = to_minutes(block.end_time) - to_minutes(block.start_time)
        if block.duration_minutes is not None and block.duration_minutes != duration:
            warnings.append(ValidationIssue(
                path=f"timeblocks.{index}.duration_minutes", block=block.subject,
                message=f"Duration {block.duration_minutes} does not match times, corrected to {duration}",
            ))
        enriched.append(block.model_copy(update={"duration_minutes": duration}))

    return enriched, warnings


def _schema_issues(exc: ValidationError) -> List[ValidationIssue]:
    return [
        ValidationIssue(
            path=".".join(str(part) for part in err["loc"]) or "(root)",
            message=err["msg"],
        )
        for err in exc.errors()
    ]


def validate_extraction(data: Any, low_confidence_threshold: float = 0.5) -> ValidationOutcome:
    """
    Validates and enriches a raw model reply.

    Steps:
    1. Schema check (pydantic): shape, types, time format, >= 1 block.
    2. Business check: time ranges per block.
    3. Enrichment: durations, plus low-confidence warnings.

    Any error makes the outcome invalid; warnings never do.
    """
    logger.info("Validating extracted data")

    try:
        extraction = TimetableExtraction.model_validate(data)
    except ValidationError as e:
        return ValidationOutcome(is_valid=False, errors=_schema_issues(e))

    errors, warnings = check_time_ranges(extraction.timeblocks)
    if errors:
        return ValidationOutcome(is_valid=False, errors=errors, warnings=warnings)

    timeblocks, duration_warnings = enrich_timeblocks(extraction.timeblocks)
    warnings.extend(duration_warnings)
    warnings.extend(check_confidence(timeblocks, low_confidence_threshold))

    return ValidationOutcome(
        is_valid=True,
        data=TimetableExtraction(metadata=extraction.metadata, timeblocks=timeblocks),
        warnings=warnings,
    )
