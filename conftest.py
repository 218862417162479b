import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from questionbank_app.surveys.models import (
    Question,
    QuestionOption,
    QuestionType,
    Survey,
    SurveyQuestionLink,
)


@pytest.fixture(autouse=True)
def clear_cache_between_tests():
    """Rate-limit counters live in the cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_question(db):
    def _make(
        title="Question",
        type=QuestionType.SHORT_ANSWER,
        options=(),
        scale=None,
        **fields,
    ):
        question = Question.objects.create(title=title, type=type, **fields)
        if scale is not None:
            question.set_linear_scale_config(scale)
            question.save()
        for i, label in enumerate(options):
            QuestionOption.objects.create(question=question, label=label, order_index=i)
        return question

    return _make


@pytest.fixture
def make_survey(db):
    def _make(title="Survey", questions=(), published=False, **fields):
        """Create a survey linking ``questions`` in order.

        Items may be a Question or a ``(question, link_fields)`` pair.
        """
        survey = Survey.objects.create(title=title, **fields)
        for i, item in enumerate(questions):
            question, link_fields = item if isinstance(item, tuple) else (item, {})
            SurveyQuestionLink.objects.create(
                survey=survey, question=question, order_index=i, **link_fields
            )
        if published:
            survey.published = True
            survey.save()
        return survey

    return _make
