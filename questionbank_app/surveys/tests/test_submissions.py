import uuid

import pytest
from django.db import connection

from questionbank_app.surveys.exceptions import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from questionbank_app.surveys.models import (
    AnswerType,
    QuestionOption,
    QuestionResponse,
    SelectedOption,
    SurveyResponse,
)
from questionbank_app.surveys.services import SubmissionService, submissions


@pytest.fixture
def colours(make_question):
    return make_question(
        title="Colours", type="CHECKBOXES", options=["Red", "Green", "Blue"]
    )


def _option(question, label):
    return question.options.get(label=label)


@pytest.mark.django_db
def test_unpublished_survey_is_forbidden(make_question, make_survey):
    survey = make_survey(questions=[make_question()])
    with pytest.raises(ForbiddenError):
        SubmissionService.submit(survey.id, {"answers": []})


@pytest.mark.django_db
def test_archived_survey_is_forbidden_even_with_bad_answers(make_question, make_survey):
    question = make_question(required=True)
    survey = make_survey(questions=[question], published=True, archived=True)
    with pytest.raises(ForbiddenError):
        SubmissionService.submit(survey.id, {"answers": []})
    assert SurveyResponse.objects.count() == 0


@pytest.mark.django_db
def test_missing_required_answer_fails_without_writing(make_question, make_survey):
    required = make_question(title="Name", required=True)
    optional = make_question(title="Nickname")
    survey = make_survey(questions=[required, optional], published=True)

    with pytest.raises(ValidationError, match="Required question not answered: Name"):
        SubmissionService.submit(
            survey.id,
            {"answers": [{"question_id": optional.id, "text_answer": "Bo"}]},
        )
    assert SurveyResponse.objects.count() == 0
    assert QuestionResponse.objects.count() == 0


@pytest.mark.django_db
def test_required_override_and_hidden_links_drive_the_gate(make_question, make_survey):
    made_required = make_question(title="Age")
    hidden_required = make_question(title="Secret", required=True)
    survey = make_survey(
        questions=[
            (made_required, {"required_override": True, "label_override": "Your age"}),
            (hidden_required, {"hidden": True}),
        ],
        published=True,
    )
    with pytest.raises(ValidationError, match="Your age"):
        SubmissionService.submit(survey.id, {"answers": []})

    response = SubmissionService.submit(
        survey.id, {"answers": [{"question_id": made_required.id, "text_answer": "40"}]}
    )
    assert response.question_responses.count() == 1


@pytest.mark.django_db
def test_invalid_answer_aborts_whole_submission(make_question, make_survey):
    name = make_question(title="Name")
    rating = make_question(
        title="Rating", type="LINEAR_SCALE", scale={"min_value": 1, "max_value": 5}
    )
    survey = make_survey(questions=[name, rating], published=True)

    with pytest.raises(ValidationError, match="Rating"):
        SubmissionService.submit(
            survey.id,
            {
                "answers": [
                    {"question_id": name.id, "text_answer": "Ada"},
                    {"question_id": rating.id, "numeric_answer": 9},
                ]
            },
        )
    assert SurveyResponse.objects.count() == 0


@pytest.mark.django_db
def test_unknown_option_is_dropped_and_valid_one_kept(colours, make_survey):
    survey = make_survey(questions=[colours], published=True)
    red = _option(colours, "Red")

    response = SubmissionService.submit(
        survey.id,
        {"answers": [{"question_id": colours.id, "selected_option_ids": [red.id, uuid.uuid4()]}]},
    )

    selected = SelectedOption.objects.filter(question_response__survey_response=response)
    assert [(s.option_id, s.label_snapshot) for s in selected] == [(red.id, "Red")]


@pytest.mark.django_db
def test_option_from_another_question_is_rejected(colours, make_question, make_survey):
    other = make_question(title="Size", type="DROPDOWN", options=["S", "M"])
    survey = make_survey(questions=[colours, other], published=True)

    with pytest.raises(ValidationError, match="Invalid option selected for question: Colours"):
        SubmissionService.submit(
            survey.id,
            {
                "answers": [
                    {
                        "question_id": colours.id,
                        "selected_option_ids": [_option(other, "S").id],
                    }
                ]
            },
        )


@pytest.mark.django_db
def test_label_snapshot_survives_option_rename(colours, make_survey):
    survey = make_survey(questions=[colours], published=True)
    green = _option(colours, "Green")
    response = SubmissionService.submit(
        survey.id, {"answers": [{"question_id": colours.id, "selected_option_ids": [green.id]}]}
    )
    QuestionOption.objects.filter(id=green.id).update(label="Lime")

    stored = SelectedOption.objects.get(question_response__survey_response=response)
    assert stored.label_snapshot == "Green"


@pytest.mark.django_db
def test_stray_and_duplicate_answers_are_ignored(make_question, make_survey):
    kept = make_question(title="Kept")
    hidden = make_question(title="Hidden")
    survey = make_survey(questions=[kept, (hidden, {"hidden": True})], published=True)

    response = SubmissionService.submit(
        survey.id,
        {
            "answers": [
                {"question_id": kept.id, "text_answer": "first"},
                {"question_id": kept.id, "text_answer": "second"},
                {"question_id": hidden.id, "text_answer": "x"},
                {"question_id": uuid.uuid4(), "text_answer": "y"},
            ]
        },
    )
    answers = list(response.question_responses.all())
    assert [(a.question_id, a.text_answer) for a in answers] == [(kept.id, "first")]


@pytest.mark.django_db
def test_answer_types_and_submitter_details(make_question, make_survey):
    text = make_question(title="T")
    scale = make_question(
        title="S", type="LINEAR_SCALE", scale={"min_value": 0, "max_value": 10}
    )
    date = make_question(title="D", type="DATE")
    survey = make_survey(questions=[text, scale, date], published=True)

    response = SubmissionService.submit(
        survey.id,
        {
            "submitter_id": "respondent-7",
            "answers": [
                {"question_id": text.id, "text_answer": "hi"},
                {"question_id": scale.id, "numeric_answer": 10},
                {"question_id": date.id, "text_answer": "2024-02-30"},
            ],
        },
        submitter_ip="203.0.113.9",
    )

    assert response.submitter_id == "respondent-7"
    assert response.submitter_ip == "203.0.113.9"
    assert [a.answer_type for a in response.question_responses.all()] == [
        AnswerType.TEXT,
        AnswerType.NUMERIC,
        AnswerType.DATE,
    ]


def test_answer_type_mapping():
    assert SubmissionService.answer_type_for("PARAGRAPH") == AnswerType.TEXT
    assert SubmissionService.answer_type_for("DROPDOWN") == AnswerType.SELECTION
    assert SubmissionService.answer_type_for("TIME") == AnswerType.TIME


@pytest.mark.django_db
def test_public_survey_shows_visible_effective_questions(colours, make_question, make_survey):
    secret = make_question(title="Secret")
    survey = make_survey(
        questions=[(colours, {"label_override": "Pick colours"}), (secret, {"hidden": True})],
        published=True,
    )
    public = SubmissionService.get_public_survey(survey.id)

    assert [q["title"] for q in public["questions"]] == ["Pick colours"]
    assert [o["label"] for o in public["questions"][0]["options"]] == ["Red", "Green", "Blue"]


@pytest.mark.django_db
def test_public_survey_of_draft_is_forbidden(make_question, make_survey):
    survey = make_survey(questions=[make_question()])
    with pytest.raises(ForbiddenError):
        SubmissionService.get_public_survey(survey.id)


@pytest.mark.django_db
def test_get_response_scoped_to_survey(make_question, make_survey):
    question = make_question()
    first = make_survey(questions=[question], published=True)
    second = make_survey(title="Other", questions=[question], published=True)
    response = SubmissionService.submit(
        first.id, {"answers": [{"question_id": question.id, "text_answer": "a"}]}
    )

    assert SubmissionService.get_response(first.id, response.id) == response
    with pytest.raises(NotFoundError):
        SubmissionService.get_response(second.id, response.id)


@pytest.mark.django_db
def test_list_responses_counts_answers(make_question, make_survey):
    question = make_question()
    survey = make_survey(questions=[question], published=True)
    SubmissionService.submit(survey.id, {"answers": [{"question_id": question.id}]})

    (summary,) = SubmissionService.list_responses(survey.id)
    assert summary.answer_count == 1


@pytest.mark.django_db(transaction=True)
def test_answers_are_validated_inside_the_submission_transaction(
    make_question, make_survey, monkeypatch
):
    question = make_question(title="Name")
    survey = make_survey(questions=[question], published=True)
    in_atomic = []
    check = submissions.validate_answer

    def recording_check(*args, **kwargs):
        in_atomic.append(connection.in_atomic_block)
        return check(*args, **kwargs)

    monkeypatch.setattr(submissions, "validate_answer", recording_check)

    SubmissionService.submit(
        survey.id, {"answers": [{"question_id": question.id, "text_answer": "Ada"}]}
    )

    assert in_atomic == [True]
    assert SurveyResponse.objects.count() == 1
