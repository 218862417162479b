"""
Survey management and the question links that assemble a survey.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import transaction
from django.db.models import QuerySet

from .. import ordering
from ..exceptions import NotFoundError, ValidationError
from ..models import Survey, SurveyQuestionLink
from .questions import QuestionService

logger = logging.getLogger(__name__)

LINK_OVERRIDE_FIELDS = ("required_override", "label_override", "description_override")


class SurveyService:
    """Survey lifecycle (create, edit, publish, archive) and link management."""

    @staticmethod
    def list_surveys(search: Optional[str] = None) -> QuerySet[Survey]:
        qs = Survey.objects.filter(archived=False)
        if search and search.strip():
            qs = qs.filter(title__icontains=search.strip())
        return qs

    @staticmethod
    def get_survey(survey_id) -> Survey:
        survey = Survey.objects.filter(id=survey_id, archived=False).first()
        if survey is None:
            raise NotFoundError("Survey", "id", survey_id)
        return survey

    @staticmethod
    def create_survey(data: dict[str, Any]) -> Survey:
        # New surveys always start unpublished
        survey = Survey.objects.create(
            title=data["title"],
            description=data.get("description"),
            published=False,
        )
        logger.info("Created survey %s", survey.id)
        return survey

    @classmethod
    def update_survey(cls, survey_id, data: dict[str, Any]) -> Survey:
        survey = cls.get_survey(survey_id)
        survey.title = data["title"]
        survey.description = data.get("description")

        publish = data.get("published")
        if publish is not None:
            if publish and not survey.published:
                if not survey.question_links.exists():
                    raise ValidationError(
                        "A survey must have at least one question to be published"
                    )
                logger.info("Publishing survey %s", survey.id)
            survey.published = bool(publish)

        survey.save()
        return survey

    @classmethod
    def archive_survey(cls, survey_id) -> None:
        survey = cls.get_survey(survey_id)
        survey.archived = True
        survey.save(update_fields=["archived", "updated_at"])
        logger.info("Archived survey %s", survey.id)

    @classmethod
    def list_links(cls, survey_id) -> QuerySet[SurveyQuestionLink]:
        survey = cls.get_survey(survey_id)
        return (
            SurveyQuestionLink.objects.filter(survey=survey)
            .select_related("question")
            .prefetch_related("question__options")
        )

    @staticmethod
    def get_link(survey_id, link_id) -> SurveyQuestionLink:
        link = (
            SurveyQuestionLink.objects.filter(
                id=link_id, survey_id=survey_id, survey__archived=False
            )
            .select_related("survey", "question")
            .first()
        )
        if link is None:
            raise NotFoundError("Survey question link", "id", link_id)
        return link

    @classmethod
    @transaction.atomic
    def add_link(cls, survey_id, data: dict[str, Any]) -> SurveyQuestionLink:
        """Link a bank question into a survey.

        Without an ``order_index`` the link is appended after the current last
        one. An explicit index is stored as given.
        """
        survey = cls.get_survey(survey_id)
        question = QuestionService.get_question(data["question_id"])

        if SurveyQuestionLink.objects.filter(survey=survey, question=question).exists():
            raise ValidationError("Question is already added to this survey")

        order_index = data.get("order_index")
        if order_index is None:
            order_index = ordering.next_order_index(survey)

        link = SurveyQuestionLink.objects.create(
            survey=survey,
            question=question,
            order_index=order_index,
            required_override=data.get("required_override"),
            label_override=data.get("label_override"),
            description_override=data.get("description_override"),
            hidden=bool(data.get("hidden") or False),
        )
        logger.info(
            "Linked question %s into survey %s at index %d",
            question.id,
            survey.id,
            order_index,
        )
        return link

    @classmethod
    def update_link(cls, survey_id, link_id, changes: dict[str, Any]) -> SurveyQuestionLink:
        """Apply a partial update to a link.

        Only keys present in ``changes`` are touched. For the override fields
        an explicit ``None`` clears the override so the question's own value
        shows through again.
        """
        link = cls.get_link(survey_id, link_id)
        updated = []

        for name in LINK_OVERRIDE_FIELDS:
            if name in changes:
                setattr(link, name, changes[name])
                updated.append(name)

        if changes.get("order_index") is not None:
            link.order_index = changes["order_index"]
            updated.append("order_index")
        if changes.get("hidden") is not None:
            link.hidden = bool(changes["hidden"])
            updated.append("hidden")

        if updated:
            link.save(update_fields=updated + ["updated_at"])
            logger.debug("Updated link %s: %s", link.id, ", ".join(updated))
        return link

    @classmethod
    @transaction.atomic
    def remove_link(cls, survey_id, link_id) -> None:
        link = cls.get_link(survey_id, link_id)
        # Row lock serializes link removals within one survey
        survey = Survey.objects.select_for_update().get(pk=link.survey_id)
        if survey.published and survey.question_links.count() == 1:
            raise ValidationError(
                "A published survey must keep at least one question"
            )
        ordering.remove_link(link)
