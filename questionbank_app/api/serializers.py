from __future__ import annotations

from rest_framework import serializers

from questionbank_app.surveys.models import (
    Question,
    QuestionOption,
    QuestionResponse,
    QuestionType,
    Survey,
    SurveyQuestionLink,
    SurveyResponse,
)
from questionbank_app.surveys.resolution import resolve_link


class LinearScaleConfigSerializer(serializers.Serializer):
    min_value = serializers.IntegerField()
    max_value = serializers.IntegerField()
    step = serializers.IntegerField(required=False, allow_null=True)
    left_label = serializers.CharField(
        max_length=255, required=False, allow_null=True, allow_blank=True
    )
    right_label = serializers.CharField(
        max_length=255, required=False, allow_null=True, allow_blank=True
    )


class QuestionOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuestionOption
        fields = ["id", "label", "order_index"]


class OptionInputSerializer(serializers.Serializer):
    label = serializers.CharField(max_length=500)
    order_index = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class QuestionSerializer(serializers.ModelSerializer):
    linear_scale_config = serializers.JSONField(read_only=True)
    options = QuestionOptionSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = [
            "id",
            "title",
            "description",
            "type",
            "required",
            "max_length",
            "linear_scale_config",
            "options",
            "created_at",
            "updated_at",
        ]


class QuestionWriteSerializer(serializers.Serializer):
    """Shape of a question definition; authoring rules live in QuestionService."""

    title = serializers.CharField(max_length=500)
    description = serializers.CharField(
        max_length=2000, required=False, allow_null=True, allow_blank=True
    )
    type = serializers.ChoiceField(choices=QuestionType.choices)
    required = serializers.BooleanField(required=False, default=False)
    max_length = serializers.IntegerField(required=False, allow_null=True)
    linear_scale_config = LinearScaleConfigSerializer(required=False, allow_null=True)
    options = OptionInputSerializer(many=True, required=False, allow_null=True)


class SurveySerializer(serializers.ModelSerializer):
    class Meta:
        model = Survey
        fields = [
            "id",
            "title",
            "description",
            "published",
            "created_at",
            "updated_at",
        ]


class SurveyWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=500)
    description = serializers.CharField(
        max_length=2000, required=False, allow_null=True, allow_blank=True
    )
    published = serializers.BooleanField(required=False, allow_null=True)


class SurveyQuestionLinkSerializer(serializers.ModelSerializer):
    """A link with its question and the values the respondent will see."""

    question = QuestionSerializer(read_only=True)

    class Meta:
        model = SurveyQuestionLink
        fields = [
            "id",
            "order_index",
            "required_override",
            "label_override",
            "description_override",
            "hidden",
            "question",
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        effective = resolve_link(instance)
        data["effective_label"] = effective.label
        data["effective_description"] = effective.description
        data["effectively_required"] = effective.required
        return data


class LinkCreateSerializer(serializers.Serializer):
    question_id = serializers.UUIDField()
    order_index = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    required_override = serializers.BooleanField(required=False, allow_null=True)
    label_override = serializers.CharField(
        max_length=500, required=False, allow_null=True, allow_blank=True
    )
    description_override = serializers.CharField(
        max_length=2000, required=False, allow_null=True, allow_blank=True
    )
    hidden = serializers.BooleanField(required=False)


class LinkUpdateSerializer(serializers.Serializer):
    """Partial link update: absent keys are left alone, null clears an override."""

    order_index = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    required_override = serializers.BooleanField(required=False, allow_null=True)
    label_override = serializers.CharField(
        max_length=500, required=False, allow_null=True, allow_blank=True
    )
    description_override = serializers.CharField(
        max_length=2000, required=False, allow_null=True, allow_blank=True
    )
    hidden = serializers.BooleanField(required=False, allow_null=True)


class AnswerSerializer(serializers.Serializer):
    question_id = serializers.UUIDField()
    text_answer = serializers.CharField(
        max_length=10000,
        required=False,
        allow_null=True,
        allow_blank=True,
        trim_whitespace=False,
    )
    selected_option_ids = serializers.ListField(
        child=serializers.UUIDField(), required=False, allow_null=True
    )
    numeric_answer = serializers.IntegerField(required=False, allow_null=True)


class SubmissionSerializer(serializers.Serializer):
    submitter_id = serializers.CharField(
        max_length=255, required=False, allow_null=True, allow_blank=True
    )
    answers = AnswerSerializer(many=True, allow_empty=False)


class SurveyResponseSummarySerializer(serializers.ModelSerializer):
    survey_id = serializers.UUIDField(read_only=True)
    answer_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = SurveyResponse
        fields = ["id", "survey_id", "submitted_at", "submitter_id", "answer_count"]


class QuestionResponseSerializer(serializers.ModelSerializer):
    selected_options = serializers.SerializerMethodField()

    class Meta:
        model = QuestionResponse
        fields = [
            "id",
            "question_id",
            "answer_type",
            "text_answer",
            "numeric_answer",
            "selected_options",
        ]

    def get_selected_options(self, obj):
        return [
            {"option_id": selected.option_id, "label": selected.label_snapshot}
            for selected in obj.selected_options.all()
        ]


class SurveyResponseSerializer(serializers.ModelSerializer):
    survey_id = serializers.UUIDField(read_only=True)
    answers = QuestionResponseSerializer(
        source="question_responses", many=True, read_only=True
    )

    class Meta:
        model = SurveyResponse
        fields = ["id", "survey_id", "submitted_at", "submitter_id", "answers"]


class ImportQuestionSerializer(QuestionWriteSerializer):
    id = serializers.UUIDField(required=False, allow_null=True)


class ImportLinkSerializer(serializers.Serializer):
    order_index = serializers.IntegerField(required=False, allow_null=True)
    required_override = serializers.BooleanField(required=False, allow_null=True)
    label_override = serializers.CharField(
        max_length=500, required=False, allow_null=True, allow_blank=True
    )
    description_override = serializers.CharField(
        max_length=2000, required=False, allow_null=True, allow_blank=True
    )
    hidden = serializers.BooleanField(required=False, default=False)
    question = ImportQuestionSerializer()


class SurveyImportSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False, allow_null=True)
    title = serializers.CharField(max_length=500)
    description = serializers.CharField(
        max_length=2000, required=False, allow_null=True, allow_blank=True
    )
    published = serializers.BooleanField(required=False, default=False)
    questions = ImportLinkSerializer(many=True, required=False)
