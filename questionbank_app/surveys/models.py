from __future__ import annotations

import uuid

from django.db import models


class QuestionType(models.TextChoices):
    SHORT_ANSWER = "SHORT_ANSWER", "Short answer"
    PARAGRAPH = "PARAGRAPH", "Paragraph"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE", "Multiple choice"
    CHECKBOXES = "CHECKBOXES", "Checkboxes"
    DROPDOWN = "DROPDOWN", "Dropdown"
    DATE = "DATE", "Date"
    TIME = "TIME", "Time"
    LINEAR_SCALE = "LINEAR_SCALE", "Linear scale"


class AnswerType(models.TextChoices):
    TEXT = "TEXT", "Text"
    SELECTION = "SELECTION", "Selection"
    NUMERIC = "NUMERIC", "Numeric"
    DATE = "DATE", "Date"
    TIME = "TIME", "Time"


TEXT_TYPES = frozenset({QuestionType.SHORT_ANSWER, QuestionType.PARAGRAPH})
CHOICE_TYPES = frozenset(
    {QuestionType.MULTIPLE_CHOICE, QuestionType.CHECKBOXES, QuestionType.DROPDOWN}
)
SINGLE_CHOICE_TYPES = frozenset({QuestionType.MULTIPLE_CHOICE, QuestionType.DROPDOWN})


class Question(models.Model):
    """A reusable question in the question bank."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=500)
    description = models.TextField(max_length=2000, null=True, blank=True)
    type = models.CharField(max_length=20, choices=QuestionType.choices)
    required = models.BooleanField(default=False)
    max_length = models.PositiveIntegerField(null=True, blank=True)
    # Linear scale configuration, only set for LINEAR_SCALE questions
    scale_min_value = models.IntegerField(null=True, blank=True)
    scale_max_value = models.IntegerField(null=True, blank=True)
    scale_step = models.IntegerField(null=True, blank=True)
    scale_left_label = models.CharField(max_length=255, null=True, blank=True)
    scale_right_label = models.CharField(max_length=255, null=True, blank=True)
    archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return self.title

    @property
    def linear_scale_config(self) -> dict | None:
        if self.scale_min_value is None and self.scale_max_value is None:
            return None
        return {
            "min_value": self.scale_min_value,
            "max_value": self.scale_max_value,
            "step": self.scale_step,
            "left_label": self.scale_left_label,
            "right_label": self.scale_right_label,
        }

    def set_linear_scale_config(self, config: dict | None) -> None:
        config = config or {}
        self.scale_min_value = config.get("min_value")
        self.scale_max_value = config.get("max_value")
        self.scale_step = config.get("step")
        self.scale_left_label = config.get("left_label")
        self.scale_right_label = config.get("right_label")


class QuestionOption(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    question = models.ForeignKey(
        Question, on_delete=models.CASCADE, related_name="options"
    )
    label = models.CharField(max_length=500)
    order_index = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["order_index"]
        constraints = [
            models.UniqueConstraint(
                fields=["question", "order_index"],
                name="uq_questionoption_order_per_question",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.label


class Survey(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=500)
    description = models.TextField(max_length=2000, null=True, blank=True)
    published = models.BooleanField(default=False)
    archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return self.title

    def is_accepting_responses(self) -> bool:
        return self.published and not self.archived


class SurveyQuestionLink(models.Model):
    """Places a bank question in a survey, with its position and overrides.

    Overrides are nullable: ``None`` falls back to the question's own value,
    anything else (including an empty string) replaces it for this survey.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    survey = models.ForeignKey(
        Survey, on_delete=models.CASCADE, related_name="question_links"
    )
    question = models.ForeignKey(
        Question, on_delete=models.PROTECT, related_name="survey_links"
    )
    order_index = models.PositiveIntegerField()
    required_override = models.BooleanField(null=True, blank=True)
    label_override = models.CharField(max_length=500, null=True, blank=True)
    description_override = models.TextField(max_length=2000, null=True, blank=True)
    hidden = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["order_index", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["survey", "question"],
                name="uq_surveyquestionlink_question_per_survey",
            ),
        ]
        indexes = [models.Index(fields=["survey", "order_index"])]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.survey_id}#{self.order_index}: {self.question_id}"


class SurveyResponse(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    survey = models.ForeignKey(
        Survey, on_delete=models.CASCADE, related_name="responses"
    )
    submitted_at = models.DateTimeField(auto_now_add=True)
    submitter_id = models.CharField(max_length=255, null=True, blank=True)
    # Opaque origin string supplied by the HTTP layer
    submitter_ip = models.CharField(max_length=255, null=True, blank=True)

    class Meta:
        ordering = ["-submitted_at"]
        indexes = [models.Index(fields=["survey", "submitted_at"])]


class QuestionResponse(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    survey_response = models.ForeignKey(
        SurveyResponse, on_delete=models.CASCADE, related_name="question_responses"
    )
    # Plain reference: the question may change or be archived later
    question_id = models.UUIDField(db_index=True)
    answer_type = models.CharField(max_length=20, choices=AnswerType.choices)
    text_answer = models.TextField(max_length=10000, null=True, blank=True)
    numeric_answer = models.IntegerField(null=True, blank=True)
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "created_at"]


class SelectedOption(models.Model):
    """An option picked in a response, with the label it had at submission time."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    question_response = models.ForeignKey(
        QuestionResponse, on_delete=models.CASCADE, related_name="selected_options"
    )
    option_id = models.UUIDField(db_index=True)
    label_snapshot = models.CharField(max_length=500)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]
