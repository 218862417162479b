"""
Question bank management.

Questions live independently of surveys and may be linked into many of them.
Deleting a question archives it; archived questions are invisible to lookups
but stay referenced by existing links and stored responses.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import transaction
from django.db.models import Q, QuerySet

from ..exceptions import NotFoundError, ValidationError
from ..models import CHOICE_TYPES, TEXT_TYPES, Question, QuestionOption, QuestionType

logger = logging.getLogger(__name__)


class QuestionService:
    """Create, update, copy and archive questions in the bank."""

    @staticmethod
    def list_questions(search: Optional[str] = None) -> QuerySet[Question]:
        qs = Question.objects.filter(archived=False).prefetch_related("options")
        if search and search.strip():
            term = search.strip()
            qs = qs.filter(Q(title__icontains=term) | Q(description__icontains=term))
        return qs

    @staticmethod
    def get_question(question_id) -> Question:
        question = (
            Question.objects.filter(id=question_id, archived=False)
            .prefetch_related("options")
            .first()
        )
        if question is None:
            raise NotFoundError("Question", "id", question_id)
        return question

    @staticmethod
    def validate_definition(data: dict[str, Any]) -> None:
        """Enforce the authoring rules for a question definition.

        Choice questions need at least one option; linear scales need a
        config with ``min_value < max_value`` and a positive step when one is
        given.
        """
        if not (data.get("title") or "").strip():
            raise ValidationError("Question title is required")
        qtype = data.get("type")
        if not qtype:
            raise ValidationError("Question type is required")
        if qtype not in QuestionType.values:
            raise ValidationError(f"Unknown question type: {qtype}")

        if qtype in CHOICE_TYPES and not data.get("options"):
            raise ValidationError(f"At least one option is required for {qtype}")

        if qtype == QuestionType.LINEAR_SCALE:
            config = data.get("linear_scale_config")
            if not config:
                raise ValidationError(
                    "Linear scale configuration is required for LINEAR_SCALE questions"
                )
            min_value = config.get("min_value")
            max_value = config.get("max_value")
            if min_value is None or max_value is None:
                raise ValidationError("Min and max values are required for linear scale")
            if min_value >= max_value:
                raise ValidationError("Min value must be less than max value")
            step = config.get("step")
            if step is not None and step <= 0:
                raise ValidationError("Step must be greater than 0")

        max_length = data.get("max_length")
        if max_length is not None and max_length < 1:
            raise ValidationError("Max length must be at least 1")

    @classmethod
    @transaction.atomic
    def create_question(cls, data: dict[str, Any]) -> Question:
        cls.validate_definition(data)
        question = Question(archived=False)
        cls._apply_definition(question, data)
        question.save()
        cls._replace_options(question, data.get("options"))
        logger.info("Created %s question %s", question.type, question.id)
        return cls.get_question(question.id)

    @classmethod
    @transaction.atomic
    def update_question(cls, question_id, data: dict[str, Any]) -> Question:
        cls.validate_definition(data)
        question = cls.get_question(question_id)
        cls._apply_definition(question, data)
        question.save()
        # Options are replaced wholesale; stored responses keep label snapshots
        question.options.all().delete()
        cls._replace_options(question, data.get("options"))
        logger.info("Updated question %s", question.id)
        return cls.get_question(question.id)

    @classmethod
    def archive_question(cls, question_id) -> None:
        question = cls.get_question(question_id)
        question.archived = True
        question.save(update_fields=["archived", "updated_at"])
        logger.info("Archived question %s", question.id)

    @classmethod
    @transaction.atomic
    def copy_question(cls, question_id) -> Question:
        original = cls.get_question(question_id)
        copy = Question.objects.create(
            title=f"{original.title} (Copy)",
            description=original.description,
            type=original.type,
            required=original.required,
            max_length=original.max_length,
            scale_min_value=original.scale_min_value,
            scale_max_value=original.scale_max_value,
            scale_step=original.scale_step,
            scale_left_label=original.scale_left_label,
            scale_right_label=original.scale_right_label,
        )
        QuestionOption.objects.bulk_create(
            [
                QuestionOption(
                    question=copy, label=option.label, order_index=option.order_index
                )
                for option in original.options.all()
            ]
        )
        logger.info("Copied question %s to %s", original.id, copy.id)
        return cls.get_question(copy.id)

    @staticmethod
    def _apply_definition(question: Question, data: dict[str, Any]) -> None:
        question.title = data["title"]
        question.description = data.get("description")
        question.type = data["type"]
        question.required = bool(data.get("required") or False)
        question.max_length = (
            data.get("max_length") if data["type"] in TEXT_TYPES else None
        )
        if data["type"] == QuestionType.LINEAR_SCALE:
            question.set_linear_scale_config(data.get("linear_scale_config"))
        else:
            question.set_linear_scale_config(None)

    @staticmethod
    def _replace_options(question: Question, options: Optional[list[dict]]) -> None:
        if not options or question.type not in CHOICE_TYPES:
            return
        # Explicit order_index values decide the order; positions fill the gaps.
        ranked = sorted(
            enumerate(options),
            key=lambda item: (
                item[1].get("order_index")
                if item[1].get("order_index") is not None
                else item[0]
            ),
        )
        QuestionOption.objects.bulk_create(
            [
                QuestionOption(question=question, label=option["label"], order_index=i)
                for i, (_, option) in enumerate(ranked)
            ]
        )
