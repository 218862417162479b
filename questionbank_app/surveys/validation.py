from __future__ import annotations

from dataclasses import dataclass, field
from typing import Collection, Optional
from uuid import UUID

from .exceptions import ValidationError
from .models import CHOICE_TYPES, SINGLE_CHOICE_TYPES, TEXT_TYPES, QuestionType
from .resolution import EffectiveQuestion


@dataclass(frozen=True)
class AnswerPayload:
    """One submitted answer, as received from the boundary layer."""

    question_id: UUID
    text_answer: Optional[str] = None
    selected_option_ids: tuple[UUID, ...] = field(default_factory=tuple)
    numeric_answer: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "AnswerPayload":
        return cls(
            question_id=_as_uuid(data["question_id"]),
            text_answer=data.get("text_answer"),
            selected_option_ids=tuple(
                _as_uuid(option_id) for option_id in data.get("selected_option_ids") or ()
            ),
            numeric_answer=data.get("numeric_answer"),
        )


def _as_uuid(value) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"Not a valid id: {value!r}") from None


def validate_answer(
    answer: AnswerPayload,
    effective: EffectiveQuestion,
    existing_option_ids: Optional[Collection[UUID]] = None,
) -> None:
    """Check one answer against its question's type-specific constraints.

    Raises ``ValidationError`` naming the question by its effective label.
    Whether an answer is required is decided by the caller, so empty answers
    pass here.

    ``existing_option_ids`` is the set of selected ids that still name an
    option anywhere in the bank. Ids outside it are stale (the option was
    deleted after the form was rendered) and are left for the caller to drop;
    ids that name an option of a different question are rejected. When it is
    omitted every selected id is treated as existing. Stale ids also do not
    count towards the one-option limit of single-choice questions.
    """
    question = effective.question
    label = effective.label

    if question.type in TEXT_TYPES:
        if answer.text_answer is not None and question.max_length is not None:
            if len(answer.text_answer) > question.max_length:
                raise ValidationError(
                    f"Answer exceeds maximum length for question: {label}"
                )

    elif question.type in CHOICE_TYPES:
        selected = [
            option_id
            for option_id in answer.selected_option_ids
            if existing_option_ids is None or option_id in existing_option_ids
        ]
        if question.type in SINGLE_CHOICE_TYPES and len(selected) > 1:
            raise ValidationError(f"Only one option can be selected for: {label}")
        valid_ids = question.option_ids
        for option_id in selected:
            if option_id not in valid_ids:
                raise ValidationError(
                    f"Invalid option selected for question: {label}"
                )

    elif question.type == QuestionType.LINEAR_SCALE:
        config = question.linear_scale_config
        # Without a config there is no range to check against
        if answer.numeric_answer is not None and config is not None:
            if not config.min_value <= answer.numeric_answer <= config.max_value:
                raise ValidationError(f"Scale value out of range for: {label}")

    # DATE and TIME answers are opaque text at this layer
