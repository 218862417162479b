"""
Read-only survey analytics.

Counts, averages and per-day totals are computed by the database. The scale
median is derived from the grouped value counts, so individual answers are
never loaded into memory.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from django.db.models import Avg, Count, Max
from django.db.models.functions import TruncDate

from ..models import (
    CHOICE_TYPES,
    TEXT_TYPES,
    QuestionResponse,
    QuestionType,
    SelectedOption,
    SurveyQuestionLink,
    SurveyResponse,
)
from ..resolution import EffectiveQuestion, resolve_link
from .surveys import SurveyService

logger = logging.getLogger(__name__)


class AnalyticsService:
    TEXT_SAMPLE_LIMIT = 10

    @staticmethod
    def percentage(count: int, total: int) -> float:
        if total <= 0:
            return 0.0
        return count * 100.0 / total

    @staticmethod
    def median_from_distribution(distribution: dict[int, int]) -> Optional[float]:
        """Median of the sample described by a ``value -> count`` mapping.

        Walks the values in ascending order until it reaches the middle
        position(s). Returns ``None`` for an empty sample.
        """
        size = sum(distribution.values())
        if size == 0:
            return None

        # 0-based positions of the middle element(s) in the sorted sample
        lower_pos = (size - 1) // 2
        upper_pos = size // 2
        lower = upper = None
        seen = 0
        for value in sorted(distribution):
            seen += distribution[value]
            if lower is None and seen > lower_pos:
                lower = value
            if seen > upper_pos:
                upper = value
                break
        return (lower + upper) / 2.0

    @classmethod
    def survey_analytics(cls, survey_id) -> dict[str, Any]:
        survey = SurveyService.get_survey(survey_id)
        responses = SurveyResponse.objects.filter(survey=survey)

        total_submissions = responses.count()
        per_day = (
            responses.annotate(day=TruncDate("submitted_at"))
            .values("day")
            .annotate(count=Count("id"))
            .order_by("day")
        )

        links = (
            SurveyQuestionLink.objects.filter(survey=survey)
            .select_related("question")
            .prefetch_related("question__options")
        )
        question_analytics = [
            cls._question_analytics(survey.id, resolve_link(link)) for link in links
        ]

        logger.debug(
            "Computed analytics for survey %s over %d submission(s)",
            survey.id,
            total_submissions,
        )
        return {
            "survey_id": survey.id,
            "survey_title": survey.title,
            "total_submissions": total_submissions,
            "submissions_over_time": [
                {"date": row["day"].isoformat(), "count": row["count"]}
                for row in per_day
            ],
            "question_analytics": question_analytics,
        }

    @classmethod
    def _question_analytics(cls, survey_id, effective: EffectiveQuestion) -> dict[str, Any]:
        question = effective.question
        answers = QuestionResponse.objects.filter(
            survey_response__survey_id=survey_id, question_id=question.id
        )
        total = answers.count()
        result: dict[str, Any] = {
            "question_id": question.id,
            "question_title": question.title,
            "effective_label": effective.label,
            "question_type": question.type,
            "total_responses": total,
        }

        if question.type in CHOICE_TYPES:
            result["option_counts"] = cls._option_counts(
                survey_id, effective, total
            )
        elif question.type == QuestionType.LINEAR_SCALE:
            result.update(cls._scale_summary(answers))
        elif question.type in TEXT_TYPES:
            result["text_samples"] = cls._text_samples(answers)
        return result

    @classmethod
    def _option_counts(cls, survey_id, effective: EffectiveQuestion, total: int) -> list[dict]:
        question = effective.question
        rows = (
            SelectedOption.objects.filter(
                question_response__survey_response__survey_id=survey_id,
                question_response__question_id=question.id,
            )
            .values("option_id")
            .annotate(count=Count("id"), snapshot=Max("label_snapshot"))
            .order_by()
        )
        counts = {row["option_id"]: row for row in rows}

        entries = []
        # Current options first, so unpicked ones show with a zero count
        for option in question.options:
            row = counts.pop(option.id, None)
            entries.append((option.id, option.label, row["count"] if row else 0))
        # Options deleted since they were picked keep their snapshot label
        for option_id, row in counts.items():
            entries.append((option_id, row["snapshot"], row["count"]))

        # Stable sort: equal counts keep option order
        entries.sort(key=lambda entry: -entry[2])
        return [
            {
                "option_id": option_id,
                "label": label,
                "count": count,
                "percentage": cls.percentage(count, total),
            }
            for option_id, label, count in entries
        ]

    @classmethod
    def _scale_summary(cls, answers) -> dict[str, Any]:
        numeric = answers.filter(numeric_answer__isnull=False)
        distribution = {
            row["numeric_answer"]: row["count"]
            for row in numeric.values("numeric_answer")
            .annotate(count=Count("id"))
            .order_by("numeric_answer")
        }
        average = numeric.aggregate(avg=Avg("numeric_answer"))["avg"]
        return {
            "scale_average": float(average) if average is not None else None,
            "scale_median": cls.median_from_distribution(distribution),
            "scale_distribution": distribution,
        }

    @classmethod
    def _text_samples(cls, answers) -> list[str]:
        return list(
            # Database TRIM only strips spaces, so match any non-whitespace instead
            answers.filter(text_answer__regex=r"\S")
            .order_by("survey_response__submitted_at", "id")
            .values_list("text_answer", flat=True)[: cls.TEXT_SAMPLE_LIMIT]
        )
