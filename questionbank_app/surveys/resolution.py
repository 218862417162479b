"""Resolution of per-survey overrides into the values a respondent sees.

The resolver works on plain value snapshots rather than model instances, so
callers load the question and link rows once and no lazy relation is touched
while resolving.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from .models import Question, SurveyQuestionLink


@dataclass(frozen=True)
class LinearScaleConfig:
    min_value: Optional[int]
    max_value: Optional[int]
    step: Optional[int] = None
    left_label: Optional[str] = None
    right_label: Optional[str] = None


@dataclass(frozen=True)
class OptionSnapshot:
    id: UUID
    label: str
    order_index: int


@dataclass(frozen=True)
class QuestionSnapshot:
    id: UUID
    title: str
    description: Optional[str]
    type: str
    required: bool
    max_length: Optional[int] = None
    linear_scale_config: Optional[LinearScaleConfig] = None
    options: tuple[OptionSnapshot, ...] = field(default_factory=tuple)

    @property
    def option_ids(self) -> frozenset[UUID]:
        return frozenset(option.id for option in self.options)


@dataclass(frozen=True)
class LinkSnapshot:
    id: UUID
    question_id: UUID
    order_index: int
    required_override: Optional[bool] = None
    label_override: Optional[str] = None
    description_override: Optional[str] = None
    hidden: bool = False


@dataclass(frozen=True)
class EffectiveQuestion:
    question: QuestionSnapshot
    link: LinkSnapshot
    label: str
    description: Optional[str]
    required: bool

    @property
    def question_id(self) -> UUID:
        return self.question.id

    @property
    def hidden(self) -> bool:
        return self.link.hidden


def resolve(question: QuestionSnapshot, link: LinkSnapshot) -> EffectiveQuestion:
    """Apply the link's overrides to the question, one field at a time."""
    label = link.label_override if link.label_override is not None else question.title
    description = (
        link.description_override
        if link.description_override is not None
        else question.description
    )
    required = (
        link.required_override
        if link.required_override is not None
        else question.required
    )
    return EffectiveQuestion(
        question=question,
        link=link,
        label=label,
        description=description,
        required=required,
    )


def snapshot_question(question: Question) -> QuestionSnapshot:
    config = question.linear_scale_config
    return QuestionSnapshot(
        id=question.id,
        title=question.title,
        description=question.description,
        type=question.type,
        required=question.required,
        max_length=question.max_length,
        linear_scale_config=LinearScaleConfig(**config) if config else None,
        options=tuple(
            OptionSnapshot(id=o.id, label=o.label, order_index=o.order_index)
            for o in question.options.all()
        ),
    )


def snapshot_link(link: SurveyQuestionLink) -> LinkSnapshot:
    return LinkSnapshot(
        id=link.id,
        question_id=link.question_id,
        order_index=link.order_index,
        required_override=link.required_override,
        label_override=link.label_override,
        description_override=link.description_override,
        hidden=link.hidden,
    )


def resolve_link(link: SurveyQuestionLink) -> EffectiveQuestion:
    """Snapshot an already-loaded link row (with its question) and resolve it."""
    return resolve(snapshot_question(link.question), snapshot_link(link))
