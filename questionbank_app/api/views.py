from __future__ import annotations

from django.conf import settings
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response

from questionbank_app.surveys.services import (
    AnalyticsService,
    QuestionService,
    SubmissionService,
    SurveyService,
    TransferService,
)

from .serializers import (
    LinkCreateSerializer,
    LinkUpdateSerializer,
    QuestionSerializer,
    QuestionWriteSerializer,
    SubmissionSerializer,
    SurveyImportSerializer,
    SurveyQuestionLinkSerializer,
    SurveyResponseSerializer,
    SurveyResponseSummarySerializer,
    SurveySerializer,
    SurveyWriteSerializer,
)

UUID_PATTERN = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


def client_ip(request) -> str | None:
    """Best-effort origin of a request, stored with submissions and never trusted."""
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.META.get("HTTP_X_REAL_IP")
    if real_ip:
        return real_ip.strip()
    return request.META.get("REMOTE_ADDR")


def submission_rate(group, request):
    return settings.SUBMISSION_RATE_LIMIT


class QuestionViewSet(viewsets.GenericViewSet):
    serializer_class = QuestionSerializer
    lookup_value_regex = UUID_PATTERN

    def list(self, request):
        qs = QuestionService.list_questions(request.query_params.get("search"))
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(QuestionSerializer(page, many=True).data)

    def create(self, request):
        ser = QuestionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        question = QuestionService.create_question(ser.validated_data)
        return Response(QuestionSerializer(question).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(QuestionSerializer(QuestionService.get_question(pk)).data)

    def update(self, request, pk=None):
        ser = QuestionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        question = QuestionService.update_question(pk, ser.validated_data)
        return Response(QuestionSerializer(question).data)

    def destroy(self, request, pk=None):
        QuestionService.archive_question(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def copy(self, request, pk=None):
        question = QuestionService.copy_question(pk)
        return Response(QuestionSerializer(question).data, status=status.HTTP_201_CREATED)


class SurveyViewSet(viewsets.GenericViewSet):
    """Survey administration, results and export/import."""

    serializer_class = SurveySerializer
    lookup_value_regex = UUID_PATTERN

    def list(self, request):
        qs = SurveyService.list_surveys(request.query_params.get("search"))
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(SurveySerializer(page, many=True).data)

    def create(self, request):
        ser = SurveyWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        survey = SurveyService.create_survey(ser.validated_data)
        return Response(SurveySerializer(survey).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        survey = SurveyService.get_survey(pk)
        data = SurveySerializer(survey).data
        data["question_links"] = SurveyQuestionLinkSerializer(
            SurveyService.list_links(pk), many=True
        ).data
        return Response(data)

    def update(self, request, pk=None):
        ser = SurveyWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        survey = SurveyService.update_survey(pk, ser.validated_data)
        return Response(SurveySerializer(survey).data)

    def destroy(self, request, pk=None):
        SurveyService.archive_survey(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def results(self, request, pk=None):
        return Response(AnalyticsService.survey_analytics(pk))

    @action(detail=True, methods=["get"], url_path="results/submissions")
    def submissions(self, request, pk=None):
        qs = SubmissionService.list_responses(pk)
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(
            SurveyResponseSummarySerializer(page, many=True).data
        )

    @action(
        detail=True,
        methods=["get"],
        url_path=rf"results/submissions/(?P<response_id>{UUID_PATTERN})",
    )
    def submission_detail(self, request, pk=None, response_id=None):
        response = SubmissionService.get_response(pk, response_id)
        return Response(SurveyResponseSerializer(response).data)

    @action(detail=True, methods=["get"])
    def export(self, request, pk=None):
        return Response(TransferService.export_survey(pk))

    @action(detail=False, methods=["post"], url_path="import")
    def import_survey(self, request):
        ser = SurveyImportSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        survey = TransferService.import_survey(ser.validated_data)
        # Updated in place when the payload id named an existing survey
        updated = survey.id == ser.validated_data.get("id")
        return Response(
            SurveySerializer(survey).data,
            status=status.HTTP_200_OK if updated else status.HTTP_201_CREATED,
        )


class SurveyLinkViewSet(viewsets.GenericViewSet):
    """Questions placed in a survey, nested under ``surveys/{survey_pk}/links``."""

    serializer_class = SurveyQuestionLinkSerializer
    lookup_value_regex = UUID_PATTERN
    pagination_class = None

    def list(self, request, survey_pk=None):
        links = SurveyService.list_links(survey_pk)
        return Response(SurveyQuestionLinkSerializer(links, many=True).data)

    def create(self, request, survey_pk=None):
        ser = LinkCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        link = SurveyService.add_link(survey_pk, ser.validated_data)
        return Response(
            SurveyQuestionLinkSerializer(link).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request, survey_pk=None, pk=None):
        ser = LinkUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        link = SurveyService.update_link(survey_pk, pk, ser.validated_data)
        return Response(SurveyQuestionLinkSerializer(link).data)

    def destroy(self, request, survey_pk=None, pk=None):
        SurveyService.remove_link(survey_pk, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PublicSurveyViewSet(viewsets.GenericViewSet):
    """What respondents use: the published form and the submission endpoint."""

    lookup_value_regex = UUID_PATTERN

    def retrieve(self, request, pk=None):
        return Response(SubmissionService.get_public_survey(pk))

    @action(detail=True, methods=["post"], url_path="responses")
    @method_decorator(
        ratelimit(group="submissions", key="ip", rate=submission_rate, block=True)
    )
    def submit(self, request, pk=None):
        ser = SubmissionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        response = SubmissionService.submit(pk, ser.validated_data, client_ip(request))
        response = SubmissionService.get_response(pk, response.id)
        return Response(
            SurveyResponseSerializer(response).data, status=status.HTTP_201_CREATED
        )

    @action(
        detail=True,
        methods=["get"],
        url_path=rf"responses/(?P<response_id>{UUID_PATTERN})",
    )
    def response_detail(self, request, pk=None, response_id=None):
        response = SubmissionService.get_response(pk, response_id)
        return Response(SurveyResponseSerializer(response).data)


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def healthcheck(request):
    return Response({"status": "ok"})
