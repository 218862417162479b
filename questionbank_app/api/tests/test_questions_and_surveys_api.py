import uuid

import pytest

from questionbank_app.surveys.models import Question, Survey


@pytest.mark.django_db
def test_question_crud_and_copy(api_client):
    resp = api_client.post(
        "/api/questions/",
        {
            "title": "Transport",
            "type": "CHECKBOXES",
            "options": [{"label": "Bus"}, {"label": "Bike"}],
        },
        format="json",
    )
    assert resp.status_code == 201, resp.content
    question_id = resp.json()["id"]
    assert [o["label"] for o in resp.json()["options"]] == ["Bus", "Bike"]

    resp = api_client.put(
        f"/api/questions/{question_id}/",
        {"title": "Transport mode", "type": "DROPDOWN", "options": [{"label": "Car"}]},
        format="json",
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Transport mode"

    resp = api_client.post(f"/api/questions/{question_id}/copy/")
    assert resp.status_code == 201
    assert resp.json()["title"] == "Transport mode (Copy)"

    resp = api_client.get("/api/questions/", {"search": "transport"})
    assert resp.status_code == 200
    assert resp.json()["count"] == 2

    assert api_client.delete(f"/api/questions/{question_id}/").status_code == 204
    assert api_client.get(f"/api/questions/{question_id}/").status_code == 404
    assert Question.objects.get(id=question_id).archived is True


@pytest.mark.django_db
def test_authoring_rule_violation_is_400(api_client):
    resp = api_client.post(
        "/api/questions/", {"title": "Pick", "type": "MULTIPLE_CHOICE"}, format="json"
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["status"] == 400
    assert body["error"] == "Bad Request"
    assert "At least one option" in body["detail"]


@pytest.mark.django_db
def test_malformed_body_keeps_drf_errors(api_client):
    resp = api_client.post("/api/questions/", {"type": "NOPE"}, format="json")
    assert resp.status_code == 400
    assert "title" in resp.json()


@pytest.mark.django_db
def test_not_found_body(api_client):
    missing = uuid.uuid4()
    resp = api_client.get(f"/api/surveys/{missing}/")
    assert resp.status_code == 404
    assert resp.json() == {
        "status": 404,
        "error": "Not Found",
        "detail": f"Survey not found with id: '{missing}'",
    }


@pytest.mark.django_db
def test_survey_lifecycle_with_links(api_client, make_question):
    q1 = make_question(title="One")
    q2 = make_question(title="Two", required=True)

    resp = api_client.post("/api/surveys/", {"title": "Census"}, format="json")
    assert resp.status_code == 201
    survey_id = resp.json()["id"]
    assert resp.json()["published"] is False

    resp = api_client.put(
        f"/api/surveys/{survey_id}/", {"title": "Census", "published": True}, format="json"
    )
    assert resp.status_code == 400

    links_url = f"/api/surveys/{survey_id}/links/"
    first = api_client.post(links_url, {"question_id": str(q1.id)}, format="json").json()
    second = api_client.post(
        links_url,
        {"question_id": str(q2.id), "required_override": False, "label_override": "2"},
        format="json",
    ).json()
    assert (first["order_index"], second["order_index"]) == (0, 1)
    assert second["effective_label"] == "2"
    assert second["effectively_required"] is False

    dup = api_client.post(links_url, {"question_id": str(q1.id)}, format="json")
    assert dup.status_code == 400

    resp = api_client.patch(
        f"{links_url}{second['id']}/", {"label_override": None}, format="json"
    )
    assert resp.status_code == 200
    assert resp.json()["effective_label"] == "Two"
    assert resp.json()["effectively_required"] is False

    resp = api_client.put(
        f"/api/surveys/{survey_id}/", {"title": "Census", "published": True}, format="json"
    )
    assert resp.status_code == 200
    assert resp.json()["published"] is True

    assert api_client.delete(f"{links_url}{first['id']}/").status_code == 204
    detail = api_client.get(f"/api/surveys/{survey_id}/").json()
    assert [(l["question"]["title"], l["order_index"]) for l in detail["question_links"]] == [
        ("Two", 0)
    ]

    assert api_client.delete(f"/api/surveys/{survey_id}/").status_code == 204
    assert Survey.objects.get(id=survey_id).archived is True
    assert api_client.get(links_url).status_code == 404


@pytest.mark.django_db
def test_export_then_import_endpoint(api_client, make_question, make_survey):
    survey = make_survey(
        title="Exported",
        questions=[make_question(title="Pick", type="DROPDOWN", options=["A", "B"])],
    )
    payload = api_client.get(f"/api/surveys/{survey.id}/export/").json()
    payload["id"] = None
    for entry in payload["questions"]:
        entry["question"]["id"] = None

    resp = api_client.post("/api/surveys/import/", payload, format="json")

    assert resp.status_code == 201, resp.content
    assert resp.json()["id"] != str(survey.id)
    assert Survey.objects.filter(title="Exported").count() == 2
    assert Question.objects.filter(title="Pick").count() == 2


@pytest.mark.django_db
def test_import_over_existing_survey_is_200(api_client, make_question, make_survey):
    survey = make_survey(title="Exported", questions=[make_question(title="Pick")])
    payload = api_client.get(f"/api/surveys/{survey.id}/export/").json()
    payload["title"] = "Renamed"

    resp = api_client.post("/api/surveys/import/", payload, format="json")

    assert resp.status_code == 200, resp.content
    assert resp.json()["id"] == str(survey.id)
    assert Survey.objects.get(id=survey.id).title == "Renamed"
    assert Survey.objects.count() == 1
