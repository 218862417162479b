from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r"questions", views.QuestionViewSet, basename="question")
router.register(r"surveys", views.SurveyViewSet, basename="survey")
router.register(
    rf"surveys/(?P<survey_pk>{views.UUID_PATTERN})/links",
    views.SurveyLinkViewSet,
    basename="survey-link",
)
router.register(r"public/surveys", views.PublicSurveyViewSet, basename="public-survey")

urlpatterns = [
    path("health", views.healthcheck, name="healthcheck"),
    path("", include(router.urls)),
]
