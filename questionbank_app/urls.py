from django.urls import include, path

urlpatterns = [
    path("api/", include("questionbank_app.api.urls")),
]
