"""Content uploads partitioned by week, day, month, semester or year of a track."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.content_model import ContentModel
from app.models.track_model import TrackModel, TrackType
from app.schemas.content import ContentItemIn
from app.services.ingestion import (
    create_bulk_content_with_validation,
    validate_content_topics,
)
from app.services.query_service import MONTH_NAMES, period_value
from app.services.taxonomy import ResolvedContext

logger = structlog.get_logger()

SEMESTER_ORDINALS = {"first": 1, "second": 2, "third": 3, "fourth": 4}
SEMESTER_NAMES = {1: "First Semester", 2: "Second Semester", 3: "Third Semester"}


@dataclass(frozen=True)
class PeriodSpec:
    path: str
    key: str
    track_type: TrackType
    multiplier: int
    bounded: bool


PERIOD_SPECS = {
    "days": PeriodSpec("days", "day", TrackType.DAYS, 100, True),
    "weeks": PeriodSpec("weeks", "week", TrackType.WEEKS, 1000, True),
    "months": PeriodSpec("months", "month", TrackType.MONTHS, 10000, True),
    "semesters": PeriodSpec("semesters", "semester", TrackType.SEMESTER, 100000, True),
    "years": PeriodSpec("years", "year", TrackType.YEARS, 1000000, False),
}
SPEC_BY_TRACK_TYPE = {spec.track_type.value: spec for spec in PERIOD_SPECS.values()}


@dataclass(frozen=True)
class Period:
    spec: PeriodSpec
    number: int
    raw: str

    @property
    def label(self) -> str:
        if self.spec.key == "month" and 1 <= self.number <= 12:
            return MONTH_NAMES[self.number - 1]
        if self.spec.key == "semester":
            return self.raw if not self.raw.isdigit() else f"Semester {self.number}"
        if self.spec.key == "year":
            return str(self.number)
        return f"{self.spec.key.capitalize()} {self.number}"

    @property
    def token(self) -> str:
        if self.spec.key == "semester":
            return re.sub(r"[^a-z0-9]+", "", self.raw.lower()) or str(self.number)
        return str(self.number)

    @property
    def name_prefix(self) -> str:
        return f"{self.spec.key}{self.token}_"

    def metadata(self) -> Dict[str, Any]:
        if self.spec.key == "semester":
            return {"semester": self.number, "semesterName": self.raw}
        return {self.spec.key: self.number, f"{self.spec.key}Label": self.label}

    def matches(self, item: ContentModel) -> bool:
        if self.spec.key == "semester":
            name = (item.meta or {}).get("semesterName")
            if name is not None:
                return str(name) == self.raw
            return item.name.startswith(self.name_prefix)
        return period_value(item, self.spec.key) == self.number


def get_spec(period_type: str) -> PeriodSpec:
    spec = PERIOD_SPECS.get(period_type)
    if spec is None:
        raise ValidationError(
            f"Period type must be one of: {', '.join(PERIOD_SPECS)}", field="periodType"
        )
    return spec


def parse_period(spec: PeriodSpec, raw: str) -> Period:
    """Parse the period path segment.

    Semesters accept free text ("First Semester"); the text is kept as the
    period identity and its number is taken from the digits or ordinal word,
    defaulting to 1.
    """
    raw = raw.strip()
    if spec.key == "semester":
        if raw.isdigit():
            number = int(raw)
        else:
            first_word = raw.split()[0].lower() if raw else ""
            digits = re.search(r"\d+", raw)
            number = SEMESTER_ORDINALS.get(
                first_word, int(digits.group()) if digits else 1
            )
        if not raw or number < 1:
            raise ValidationError("Semester must be a positive number or a name")
        return Period(spec, number, raw)

    if not raw.isdigit():
        raise ValidationError(
            f"{spec.key.capitalize()} must be a positive whole number", field=spec.key
        )
    number = int(raw)
    if spec.key == "year" and not 1900 <= number <= 2100:
        raise ValidationError("Year must be between 1900 and 2100", field="year")
    if number < 1:
        raise ValidationError(f"{spec.key.capitalize()} must be at least 1", field=spec.key)
    return Period(spec, number, raw)


def check_track_period(track: TrackModel, period: Period) -> None:
    """The track must be of the period's type and long enough to contain it."""
    if track.track_type != period.spec.track_type.value:
        raise ValidationError(
            f"Track '{track.name}' is a {track.track_type} track and cannot hold "
            f"{period.spec.path} content",
            field="trackType",
        )
    if period.spec.bounded and track.duration and period.number > track.duration:
        raise ValidationError(
            f"{period.label} exceeds the track duration of {track.duration}",
            field=period.spec.key,
        )


def enrich_item(item: ContentItemIn, period: Period) -> ContentItemIn:
    """Stamp period metadata, name prefix and period-major order onto an item."""
    name = item.name
    if not name.startswith(period.name_prefix):
        name = f"{period.name_prefix}{name}"
    return item.model_copy(
        update={
            "name": name,
            "display_name": f"{period.label} - {item.display_name or item.name}",
            "order_index": period.number * period.spec.multiplier + item.order_index,
            "metadata": {**item.metadata, **period.metadata()},
        }
    )


async def _scope_content(db: AsyncSession, context: ResolvedContext) -> List[ContentModel]:
    result = await db.execute(
        select(ContentModel)
        .filter(ContentModel.exam_id == context.exam.id)
        .filter(ContentModel.subject_id == context.subject.id)
        .filter(ContentModel.track_id == context.track.id)
        .filter(ContentModel.sub_category_id == context.sub_category.id)
        .filter(ContentModel.is_active.is_(True))
        .order_by(ContentModel.order_index, ContentModel.id)
    )
    return list(result.scalars().all())


async def find_period_content(
    db: AsyncSession, context: ResolvedContext, period: Period
) -> List[ContentModel]:
    return [item for item in await _scope_content(db, context) if period.matches(item)]


def _soft_delete(items: Sequence[ContentModel]) -> int:
    for item in items:
        item.is_active = False
    return len(items)


async def _require_valid_topics(
    db: AsyncSession, context: ResolvedContext, contents: Sequence[ContentItemIn]
) -> None:
    validation, _ = await validate_content_topics(
        db, context.exam.id, context.subject.id, contents
    )
    if validation["invalid_count"]:
        raise ValidationError(
            "Some content items reference topics that are not approved for this subject",
            details={"validation": validation},
        )


async def _create(
    db: AsyncSession, context: ResolvedContext, contents: Sequence[ContentItemIn]
) -> Dict[str, Any]:
    return await create_bulk_content_with_validation(
        db,
        context.exam.id,
        context.subject.id,
        context.track.id,
        context.sub_category.id,
        contents,
    )


async def upload_period_content(
    db: AsyncSession,
    context: ResolvedContext,
    period_type: str,
    raw_period: str,
    contents: Sequence[ContentItemIn],
    force: bool = False,
) -> Dict[str, Any]:
    """Upload a period's content.

    An already populated period is a conflict unless ``force`` is set, in which
    case the previous content is soft-deleted. Nothing is touched when a topic
    fails validation.
    """
    period = parse_period(get_spec(period_type), raw_period)
    check_track_period(context.track, period)

    existing = await find_period_content(db, context, period)
    if existing and not force:
        raise ConflictError(
            f"Content for {period.label} already exists. Use force=true to replace it.",
            details={"existingCount": len(existing)},
        )

    enriched = [enrich_item(item, period) for item in contents]
    await _require_valid_topics(db, context, enriched)

    replaced_count = _soft_delete(existing)
    result = await _create(db, context, enriched)

    logger.info(
        "Period content uploaded",
        track_id=context.track.id,
        period=period.label,
        created=len(result["created"]),
        replaced=replaced_count,
    )
    return {
        "message": (
            f"{period.label} content replaced" if replaced_count else f"{period.label} content uploaded"
        ),
        "period_type": period.spec.path,
        "period": period.raw,
        "replaced": bool(replaced_count),
        "replaced_count": replaced_count,
        "result": result,
    }


async def update_period_content(
    db: AsyncSession,
    context: ResolvedContext,
    period_type: str,
    raw_period: str,
    contents: Sequence[ContentItemIn],
    replace_all: bool = False,
) -> Dict[str, Any]:
    """Replace a whole period, or update the listed items in place by name."""
    period = parse_period(get_spec(period_type), raw_period)
    check_track_period(context.track, period)

    if replace_all:
        outcome = await upload_period_content(
            db, context, period_type, raw_period, contents, force=True
        )
        return {
            "message": outcome["message"],
            "replaced_count": outcome["replaced_count"],
            "result": outcome["result"],
        }

    existing = await find_period_content(db, context, period)
    if not existing:
        raise NotFoundError(f"No content found for {period.label}", resource_type="content")

    by_name = {item.name: item for item in existing}
    with_topic = [item for item in contents if item.topic or item.topic_id is not None]
    validation, topic_ids = await validate_content_topics(
        db, context.exam.id, context.subject.id, with_topic
    )
    if validation["invalid_count"]:
        raise ValidationError(
            "Some content items reference topics that are not approved for this subject",
            details={"validation": validation},
        )
    topic_for_item = {id(item): topic_ids[index] for index, item in enumerate(with_topic)}

    updated, not_found = 0, []
    for item in contents:
        target = by_name.get(item.name) or by_name.get(f"{period.name_prefix}{item.name}")
        if target is None:
            not_found.append(item.name)
            continue
        if item.display_name:
            target.display_name = f"{period.label} - {item.display_name}"
        if item.description is not None:
            target.description = item.description
        if id(item) in topic_for_item:
            target.topic_id = topic_for_item[id(item)]
        if item.order_index:
            target.order_index = period.number * period.spec.multiplier + item.order_index
        if item.metadata:
            target.meta = {**(target.meta or {}), **item.metadata, **period.metadata()}
        for field in ("file_path", "file_type", "file_size"):
            value = getattr(item, field)
            if value is not None:
                setattr(target, field, value)
        updated += 1

    await db.commit()
    return {
        "message": f"Updated {updated} item(s) in {period.label}",
        "updated": updated,
        "not_found": not_found,
    }


async def delete_period_content(
    db: AsyncSession,
    context: ResolvedContext,
    period_type: str,
    raw_period: str,
    confirm: bool = False,
) -> Dict[str, Any]:
    period = parse_period(get_spec(period_type), raw_period)
    check_track_period(context.track, period)
    if not confirm:
        raise ValidationError(
            f"Deleting {period.label} content requires confirm=true", field="confirm"
        )

    existing = await find_period_content(db, context, period)
    if not existing:
        raise NotFoundError(f"No content found for {period.label}", resource_type="content")

    deleted = _soft_delete(existing)
    await db.commit()
    logger.info("Period content deleted", track_id=context.track.id, period=period.label)
    return {"message": f"Deleted {deleted} item(s) from {period.label}", "deleted": deleted}


async def get_period_content(
    db: AsyncSession, context: ResolvedContext, raw_period: str
) -> List[ContentModel]:
    """Content of one period, using the track's own type."""
    spec = SPEC_BY_TRACK_TYPE[context.track.track_type]
    period = parse_period(spec, raw_period)
    check_track_period(context.track, period)
    return await find_period_content(db, context, period)


async def list_track_periods(db: AsyncSession, context: ResolvedContext) -> Dict[str, Any]:
    """Every period of the track with the number of content items in it.

    Year tracks list ``duration`` years counting back from the current year,
    plus any other year that already holds content.
    """
    track = context.track
    spec = SPEC_BY_TRACK_TYPE[track.track_type]
    content = await _scope_content(db, context)

    counts: Dict[int, int] = {}
    for item in content:
        value = period_value(item, spec.key)
        if value is not None:
            counts[value] = counts.get(value, 0) + 1

    if spec.key == "year":
        current_year = datetime.now().year
        numbers = {current_year - offset for offset in range(track.duration or 1)}
        numbers.update(counts)
        ordered = sorted(numbers, reverse=True)
    else:
        numbers = set(range(1, (track.duration or 0) + 1))
        numbers.update(counts)
        ordered = sorted(numbers)

    periods = []
    for number in ordered:
        if spec.key == "semester":
            label = SEMESTER_NAMES.get(number, f"Semester {number}")
        else:
            label = Period(spec, number, str(number)).label
        periods.append(
            {"number": number, "label": label, "content_count": counts.get(number, 0)}
        )

    return {"track_type": track.track_type, "duration": track.duration, "periods": periods}
