"""
Respondent submissions.

A submission passes two gates before anything is written: every visible,
effectively required question must have an answer, then every answer to a
visible linked question must satisfy its type's constraints. Only then is the
response graph built and stored, all in one transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from django.db import transaction
from django.db.models import Count, QuerySet

from ..exceptions import ForbiddenError, NotFoundError, ValidationError
from ..models import (
    AnswerType,
    QuestionOption,
    QuestionResponse,
    QuestionType,
    SelectedOption,
    Survey,
    SurveyQuestionLink,
    SurveyResponse,
)
from ..resolution import EffectiveQuestion, resolve_link
from ..validation import AnswerPayload, validate_answer

logger = logging.getLogger(__name__)

ANSWER_TYPES = {
    QuestionType.SHORT_ANSWER: AnswerType.TEXT,
    QuestionType.PARAGRAPH: AnswerType.TEXT,
    QuestionType.MULTIPLE_CHOICE: AnswerType.SELECTION,
    QuestionType.CHECKBOXES: AnswerType.SELECTION,
    QuestionType.DROPDOWN: AnswerType.SELECTION,
    QuestionType.LINEAR_SCALE: AnswerType.NUMERIC,
    QuestionType.DATE: AnswerType.DATE,
    QuestionType.TIME: AnswerType.TIME,
}


class SubmissionService:
    """Accept respondent submissions and read back stored responses."""

    @staticmethod
    def answer_type_for(question_type: str) -> str:
        return ANSWER_TYPES[question_type]

    @staticmethod
    def _open_survey(survey_id) -> Survey:
        survey = Survey.objects.filter(
            id=survey_id, published=True, archived=False
        ).first()
        if survey is None:
            raise ForbiddenError("Survey is not accepting responses")
        return survey

    @staticmethod
    def _visible_questions(survey: Survey) -> list[EffectiveQuestion]:
        links = (
            SurveyQuestionLink.objects.filter(survey=survey, hidden=False)
            .select_related("question")
            .prefetch_related("question__options")
        )
        return [resolve_link(link) for link in links]

    @classmethod
    def get_public_survey(cls, survey_id) -> dict[str, Any]:
        """The survey as a respondent sees it: visible questions, effective values."""
        survey = cls._open_survey(survey_id)
        questions = []
        for effective in cls._visible_questions(survey):
            question = effective.question
            config = question.linear_scale_config
            questions.append(
                {
                    "question_id": question.id,
                    "title": effective.label,
                    "description": effective.description,
                    "type": question.type,
                    "required": effective.required,
                    "max_length": question.max_length,
                    "linear_scale_config": (
                        {
                            "min_value": config.min_value,
                            "max_value": config.max_value,
                            "step": config.step,
                            "left_label": config.left_label,
                            "right_label": config.right_label,
                        }
                        if config
                        else None
                    ),
                    "options": [
                        {"id": option.id, "label": option.label}
                        for option in question.options
                    ],
                }
            )
        return {
            "id": survey.id,
            "title": survey.title,
            "description": survey.description,
            "questions": questions,
        }

    @classmethod
    @transaction.atomic
    def submit(
        cls,
        survey_id,
        submission: dict[str, Any],
        submitter_ip: Optional[str] = None,
    ) -> SurveyResponse:
        """Validate and store one submission.

        ``submission`` holds ``answers`` (a list of answer dicts or
        ``AnswerPayload`` values) and an optional ``submitter_id``.
        ``submitter_ip`` is stored verbatim.

        Raises ``ForbiddenError`` when the survey is missing, unpublished or
        archived, and ``ValidationError`` when either gate fails. Nothing is
        written in either case. Reads, both gates and the writes share one
        transaction, so labels are snapshotted from the rows that were checked.
        """
        survey = cls._open_survey(survey_id)
        by_question = {eq.question_id: eq for eq in cls._visible_questions(survey)}

        answers = cls._dedupe(
            answer if isinstance(answer, AnswerPayload) else AnswerPayload.from_dict(answer)
            for answer in submission.get("answers") or ()
        )
        answered = {answer.question_id for answer in answers}

        for effective in by_question.values():
            if effective.required and effective.question_id not in answered:
                raise ValidationError(
                    f"Required question not answered: {effective.label}"
                )

        relevant = [a for a in answers if a.question_id in by_question]
        stray = len(answers) - len(relevant)
        if stray:
            logger.debug(
                "Ignoring %d answer(s) to questions not visible in survey %s",
                stray,
                survey.id,
            )

        selected_ids = {oid for a in relevant for oid in a.selected_option_ids}
        current_labels = dict(
            QuestionOption.objects.filter(id__in=selected_ids).values_list("id", "label")
        )

        for answer in relevant:
            validate_answer(answer, by_question[answer.question_id], current_labels)

        response = SurveyResponse.objects.create(
            survey=survey,
            submitter_id=submission.get("submitter_id"),
            submitter_ip=submitter_ip,
        )
        selections = []
        for position, answer in enumerate(relevant):
            question = by_question[answer.question_id].question
            question_response = QuestionResponse.objects.create(
                survey_response=response,
                question_id=answer.question_id,
                answer_type=cls.answer_type_for(question.type),
                text_answer=answer.text_answer,
                numeric_answer=answer.numeric_answer,
                position=position,
            )
            kept = [oid for oid in answer.selected_option_ids if oid in current_labels]
            if len(kept) < len(answer.selected_option_ids):
                logger.info(
                    "Dropped %d deleted option(s) from answer to question %s",
                    len(answer.selected_option_ids) - len(kept),
                    question.id,
                )
            selections.extend(
                SelectedOption(
                    question_response=question_response,
                    option_id=option_id,
                    label_snapshot=current_labels[option_id],
                    position=i,
                )
                for i, option_id in enumerate(kept)
            )
        SelectedOption.objects.bulk_create(selections)

        logger.info(
            "Stored response %s for survey %s (%d answer(s))",
            response.id,
            survey.id,
            len(relevant),
        )
        return response

    @staticmethod
    def _dedupe(answers: Iterable[AnswerPayload]) -> list[AnswerPayload]:
        # The first answer to a question wins
        seen = set()
        unique = []
        for answer in answers:
            if answer.question_id in seen:
                continue
            seen.add(answer.question_id)
            unique.append(answer)
        return unique

    @staticmethod
    def list_responses(survey_id) -> QuerySet[SurveyResponse]:
        if not Survey.objects.filter(id=survey_id, archived=False).exists():
            raise NotFoundError("Survey", "id", survey_id)
        return (
            SurveyResponse.objects.filter(survey_id=survey_id)
            .annotate(answer_count=Count("question_responses"))
            .order_by("-submitted_at", "-id")
        )

    @staticmethod
    def get_response(survey_id, response_id) -> SurveyResponse:
        response = (
            SurveyResponse.objects.filter(id=response_id, survey_id=survey_id)
            .prefetch_related("question_responses__selected_options")
            .first()
        )
        if response is None:
            raise NotFoundError("Response", "id", response_id)
        return response
