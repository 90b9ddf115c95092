from fastapi.testclient import TestClient

from app.models.audit_event import AuditEvent
from app.models.form_submission import FormSubmission
from tests.helpers import add_submission, create_form, field


def _election_form(db_session, **kwargs):
    return create_form(
        db_session,
        title="Officer Election",
        slug="officer-election",
        fields=[
            field("member", "boolean"),
            field("chair", "multi_select", options=["A", "B", "C"], is_ranked=True),
            field("score", "rating", scale_min=1, scale_max=5, scale_type="numeric"),
        ],
        **kwargs,
    )


def test_submission_drops_unknown_and_hidden_answers(db_session, client: TestClient):
    form = create_form(
        db_session,
        fields=[
            field("country", "select", options=["US", "UK"]),
            field("visa", conditional={"field_key": "country", "option": "UK"}),
        ],
    )

    r = client.post(
        f"/forms/{form.id}/submissions",
        json={"answers": {"country": "US", "visa": "stale", "hacker": 1}},
    )
    assert r.status_code == 201, r.text
    assert r.json()["answers"] == {"country": "US"}
    assert r.json()["status"] == "submitted"

    stored = db_session.query(FormSubmission).one()
    assert stored.answers == {"country": "US"}

    event = db_session.query(AuditEvent).filter(AuditEvent.action == "FORM_SUBMISSION_CREATED").one()
    assert event.event_metadata["dropped"] == 2


def test_submission_rejected_for_inactive_form(db_session, client: TestClient):
    form = _election_form(db_session, is_active=False)
    r = client.post(f"/forms/{form.id}/submissions", json={"answers": {"member": True}})
    assert r.status_code == 409


def test_list_responses_newest_first(db_session, client: TestClient):
    form = _election_form(db_session)
    add_submission(db_session, form, {"member": True}, minutes_ago=10)
    add_submission(db_session, form, {"member": False}, status="flagged", minutes_ago=1)

    r = client.get(f"/forms/{form.id}/responses")
    assert r.status_code == 200
    rows = r.json()
    assert [row["answers"]["member"] for row in rows] == [False, True]
    assert set(rows[0]) == {"id", "form_id", "status", "answers", "created_at"}

    r = client.get(f"/forms/{form.id}/responses?status=flagged")
    assert [row["status"] for row in r.json()] == ["flagged"]


def test_analytics_end_to_end(db_session, client: TestClient):
    form = _election_form(db_session)
    ballots = [["A", "B", "C"], ["B", "A", "C"], ["A", "C", "B"], ["C", "A", "B"]]
    scores = [1, 3, 5, "bad"]
    for minutes_ago, (ballot, score) in enumerate(zip(ballots, scores)):
        add_submission(db_session, form, {"member": True, "chair": ballot, "score": score}, minutes_ago=minutes_ago)

    r = client.get(f"/forms/{form.id}/analytics")
    assert r.status_code == 200
    data = r.json()

    assert data["form_id"] == str(form.id)
    assert data["total_responses"] == 4
    assert data["status_counts"] == {"submitted": 4}

    by_key = {f["field_key"]: f for f in data["fields"]}
    assert by_key["member"]["counts"] == [{"option": "True", "count": 4}, {"option": "False", "count": 0}]
    assert by_key["score"]["average"] == 3
    assert by_key["score"]["total"] == 3
    assert by_key["chair"]["type"] == "ranked"
    assert by_key["chair"]["max_rank"] == 3

    (election,) = data["elections"]
    assert election["plurality"]["winner"] == {"option": "A", "count": 2}
    assert election["borda"]["winner"] == {"option": "A", "score": 18}
    assert election["irv"]["winner"] == "A"
    assert election["irv"]["rounds"] == [{"counts": {"A": 2, "B": 1, "C": 1}, "eliminated": ["B", "C"]}]


def test_analytics_without_responses(db_session, client: TestClient):
    form = _election_form(db_session)

    r = client.get(f"/forms/{form.id}/analytics")
    assert r.status_code == 200
    data = r.json()
    assert data["total_responses"] == 0
    assert data["latest_response_at"] is None

    (election,) = data["elections"]
    assert election["plurality"]["winner"] == {"option": "-", "count": 0}
    assert election["irv"] == {"winner": "-", "rounds": []}
    assert election["borda"]["winner"] == {"option": "-", "score": 0}
