from __future__ import annotations
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from blueprints.core.responses import MAX_DB_INT
from errors import ValidationError

Score = Annotated[int, Field(strict=True, ge=1, le=5)]
NonEmpty = Annotated[str, Field(strict=True, min_length=1, max_length=255)]
Text = Annotated[str, Field(strict=True)]
Strings = List[Annotated[str, Field(strict=True)]]
# anything wider overflows the INTEGER columns
DbInt = Annotated[int, Field(strict=True, ge=-MAX_DB_INT, le=MAX_DB_INT)]
Key = Annotated[int, Field(strict=True, ge=1, le=MAX_DB_INT)]

# explicit null is only meaningful for the image
NON_NULL_FIELDS = (
    "name", "publisher", "description", "grade_level_id",
    "target_age_grade_rating",
    "teaching_approach_style", "teaching_approach_description", "teaching_approach_rating",
    "subject_ids", "subject_comprehensiveness", "subjects_covered_rating",
    "materials_components", "materials_completeness", "materials_included_rating",
    "instruction_style_type", "instruction_support_level", "instruction_style_rating",
    "time_commitment_daily_minutes", "time_commitment_weekly_hours",
    "time_commitment_flexibility", "time_commitment_rating",
    "cost_price_range", "cost_value", "cost_rating",
    "strengths", "weaknesses", "best_for",
    "availability_in_print", "availability_digital", "availability_used_market", "availability_rating",
)

REQUIRED_MESSAGES = {
    "name": "Name is required",
    "publisher": "Publisher is required",
    "description": "Description is required",
    "gradeLevelId": "Grade level ID is required",
}


class CurriculumPatch(BaseModel):
    """Every field optional; only keys present in the request are applied."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    name: Optional[NonEmpty] = None
    publisher: Optional[NonEmpty] = None
    description: Optional[Annotated[str, Field(strict=True, min_length=1)]] = None
    image_url: Optional[Annotated[str, Field(strict=True, max_length=500)]] = None
    grade_level_id: Optional[Key] = None

    target_age_grade_rating: Optional[Score] = None

    teaching_approach_style: Optional[Annotated[str, Field(strict=True, max_length=255)]] = None
    teaching_approach_description: Optional[Text] = None
    teaching_approach_rating: Optional[Score] = None

    subject_ids: Optional[List[DbInt]] = None
    subject_comprehensiveness: Optional[Score] = None
    subjects_covered_rating: Optional[Score] = None

    materials_components: Optional[Strings] = None
    materials_completeness: Optional[Score] = None
    materials_included_rating: Optional[Score] = None

    instruction_style_type: Optional[Annotated[str, Field(strict=True, max_length=255)]] = None
    instruction_support_level: Optional[Score] = None
    instruction_style_rating: Optional[Score] = None

    time_commitment_daily_minutes: Optional[Annotated[int, Field(strict=True, ge=0, le=MAX_DB_INT)]] = None
    time_commitment_weekly_hours: Optional[Annotated[float, Field(strict=True, ge=0)]] = None
    time_commitment_flexibility: Optional[Score] = None
    time_commitment_rating: Optional[Score] = None

    cost_price_range: Optional[Literal["$", "$$", "$$$", "$$$$"]] = None
    cost_value: Optional[Score] = None
    cost_rating: Optional[Score] = None

    strengths: Optional[Strings] = None
    weaknesses: Optional[Strings] = None
    best_for: Optional[Strings] = None

    availability_in_print: Optional[StrictBool] = None
    availability_digital: Optional[StrictBool] = None
    availability_used_market: Optional[StrictBool] = None
    availability_rating: Optional[Score] = None

    @field_validator(*NON_NULL_FIELDS, mode="before")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class CurriculumCreate(CurriculumPatch):
    name: NonEmpty
    publisher: NonEmpty
    description: Annotated[str, Field(strict=True, min_length=1)]
    grade_level_id: Key


def _message(err: Dict[str, Any]) -> str:
    field = ".".join(str(part) for part in err.get("loc", ())) or "body"
    top = str(err["loc"][0]) if err.get("loc") else ""
    if top in REQUIRED_MESSAGES and err.get("type") in ("missing", "string_too_short"):
        return REQUIRED_MESSAGES[top]
    return f"{field}: {err.get('msg', 'is invalid')}"


def parse_curriculum(payload: Dict[str, Any], partial: bool = False) -> CurriculumPatch:
    schema = CurriculumPatch if partial else CurriculumCreate
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Validation failed", [_message(e) for e in exc.errors()]) from exc


def dedupe(ids: Optional[List[int]]) -> List[int]:
    seen: List[int] = []
    for i in ids or []:
        if i not in seen:
            seen.append(i)
    return seen
