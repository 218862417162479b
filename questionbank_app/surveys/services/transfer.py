"""
Survey export and import.

An export is a self-contained definition of a survey: its own fields and the
ordered list of links, each carrying the full definition of its question.
Importing one upserts the survey and its questions by id and rebuilds the
survey's links from scratch.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from django.db import transaction

from ..exceptions import ValidationError
from ..models import Question, Survey, SurveyQuestionLink
from .questions import QuestionService
from .surveys import SurveyService

logger = logging.getLogger(__name__)


def _existing_id(model, value) -> Optional[uuid.UUID]:
    """Return ``value`` as a UUID if it names a live row of ``model``."""
    if value in (None, ""):
        return None
    try:
        pk = value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError:
        return None
    if model.objects.filter(pk=pk, archived=False).exists():
        return pk
    return None


class TransferService:
    @staticmethod
    def export_survey(survey_id) -> dict[str, Any]:
        survey = SurveyService.get_survey(survey_id)
        links = (
            SurveyQuestionLink.objects.filter(survey=survey)
            .select_related("question")
            .prefetch_related("question__options")
        )
        return {
            "id": survey.id,
            "title": survey.title,
            "description": survey.description,
            "published": survey.published,
            "questions": [
                {
                    "order_index": link.order_index,
                    "required_override": link.required_override,
                    "label_override": link.label_override,
                    "description_override": link.description_override,
                    "hidden": link.hidden,
                    "question": {
                        "id": link.question.id,
                        "title": link.question.title,
                        "description": link.question.description,
                        "type": link.question.type,
                        "required": link.question.required,
                        "max_length": link.question.max_length,
                        "linear_scale_config": link.question.linear_scale_config,
                        "options": [
                            {"label": option.label, "order_index": option.order_index}
                            for option in link.question.options.all()
                        ],
                    },
                }
                for link in links
            ],
        }

    @classmethod
    @transaction.atomic
    def import_survey(cls, payload: dict[str, Any]) -> Survey:
        """Upsert a survey definition produced by ``export_survey``.

        The survey and each question are updated in place when their ``id``
        names an existing, non-archived row; otherwise a new row is created
        and the supplied id is ignored. The survey's existing links are
        replaced by the imported ones, in payload order.
        """
        if not payload.get("title"):
            raise ValidationError("Survey title is required")
        entries = payload.get("questions") or []
        published = bool(payload.get("published"))
        if published and not entries:
            raise ValidationError(
                "A survey must have at least one question to be published"
            )

        survey_id = _existing_id(Survey, payload.get("id"))
        if survey_id is not None:
            survey = Survey.objects.select_for_update().get(pk=survey_id)
            survey.title = payload["title"]
            survey.description = payload.get("description")
            survey.published = published
            survey.save()
            deleted, _ = SurveyQuestionLink.objects.filter(survey=survey).delete()
            logger.debug("Discarded %d link(s) of survey %s", deleted, survey.id)
        else:
            survey = Survey.objects.create(
                title=payload["title"],
                description=payload.get("description"),
                published=published,
            )

        linked = set()
        created = updated = 0
        for position, entry in enumerate(entries):
            definition = entry.get("question")
            if not definition:
                raise ValidationError(f"Question definition missing at position {position}")

            question_id = _existing_id(Question, definition.get("id"))
            if question_id is not None:
                question = QuestionService.update_question(question_id, definition)
                updated += 1
            else:
                question = QuestionService.create_question(definition)
                created += 1

            if question.id in linked:
                raise ValidationError(
                    f"Question appears more than once in the import: {question.title}"
                )
            linked.add(question.id)

            SurveyQuestionLink.objects.create(
                survey=survey,
                question=question,
                order_index=position,
                required_override=entry.get("required_override"),
                label_override=entry.get("label_override"),
                description_override=entry.get("description_override"),
                hidden=bool(entry.get("hidden") or False),
            )

        logger.info(
            "Imported survey %s: %d question(s) created, %d updated",
            survey.id,
            created,
            updated,
        )
        return survey
