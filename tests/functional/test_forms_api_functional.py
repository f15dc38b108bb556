"""HTTP contract for form endpoints, error bodies and health."""

from __future__ import annotations

from forms_api.logic import repository_forms
from forms_api.logic.form_aggregate import FormAggregate

API = "/api/v1"


def _create(client, **attrs):
    body = {"name": "Apply for a license to test forms", "org": "test-org", "creator_id": "123"}
    body.update(attrs)
    res = client.post(f"{API}/forms", json={"form": body})
    assert res.status_code == 201, res.text
    return res.json()["id"]


def test_create_and_show_form(client):
    form_id = _create(client, submission_email="submit@example.gov.uk")

    res = client.get(f"{API}/forms/{form_id}")
    assert res.status_code == 200
    body = res.json()
    assert body["id"] == form_id
    assert body["form_slug"] == "apply-for-a-license-to-test-forms"
    assert body["submission_email"] == "submit@example.gov.uk"
    assert body["start_page"] is None
    assert body["live_at"] is None
    assert body["has_draft_version"] is True
    assert body["has_live_version"] is False
    assert body["has_routing_errors"] is False
    assert body["routing_errors"] == []


def test_create_form_accepts_bare_attributes_and_drops_unknown_keys(client):
    res = client.post(f"{API}/forms", json={"name": "Bare form", "admin": True})
    assert res.status_code == 201
    body = client.get(f"{API}/forms/{res.json()['id']}").json()
    assert body["name"] == "Bare form"
    assert "admin" not in body


def test_list_forms_filters_by_org_and_creator(client):
    a = _create(client, name="A", org="org-1", creator_id="1")
    b = _create(client, name="B", org="org-1", creator_id="2")
    _create(client, name="C", org="org-2", creator_id="1")

    by_org = client.get(f"{API}/forms", params={"org": "org-1"}).json()
    assert [f["id"] for f in by_org] == [a, b]
    both = client.get(f"{API}/forms", params={"org": "org-1", "creator_id": "1"}).json()
    assert [f["id"] for f in both] == [a]
    assert len(client.get(f"{API}/forms").json()) == 3


def test_update_form_recomputes_slug(client):
    form_id = _create(client)
    res = client.patch(f"{API}/forms/{form_id}", json={"form": {"name": "New Name!", "form_slug": "ignored"}})
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert client.get(f"{API}/forms/{form_id}").json()["form_slug"] == "new-name"

    res = client.put(f"{API}/forms/{form_id}", json={"form": {"support_phone": "0100"}})
    assert res.status_code == 200
    assert client.get(f"{API}/forms/{form_id}").json()["support_phone"] == "0100"


def test_update_form_returns_error_map(client):
    form_id = _create(client)
    res = client.patch(f"{API}/forms/{form_id}", json={"form": {"name": ""}})
    assert res.status_code == 400
    assert res.json() == {"name": ["can't be blank"]}


def test_completed_flag_with_routing_errors_returns_base_error(client):
    form_id = _create(client)
    page_id = client.post(
        f"{API}/forms/{form_id}/pages",
        json={"page": {"question_text": "Do you agree?", "answer_type": "number"}},
    ).json()["id"]
    client.post(f"{API}/forms/{form_id}/pages/{page_id}/conditions", json={"condition": {"answer_value": "Yes"}})

    res = client.patch(f"{API}/forms/{form_id}", json={"form": {"question_section_completed": True}})
    assert res.status_code == 400
    assert res.json() == {"base": ["Form has routing validation errors"]}
    assert client.get(f"{API}/forms/{form_id}").json()["has_routing_errors"] is True


def test_form_lists_each_condition_without_a_destination(client):
    form_id = _create(client)
    page_id = client.post(
        f"{API}/forms/{form_id}/pages",
        json={"page": {"question_text": "Do you agree?", "answer_type": "number"}},
    ).json()["id"]
    broken = client.post(
        f"{API}/forms/{form_id}/pages/{page_id}/conditions", json={"condition": {"answer_value": "No"}}
    ).json()["id"]
    client.post(
        f"{API}/forms/{form_id}/pages/{page_id}/conditions",
        json={"condition": {"answer_value": "Yes", "skip_to_end": True}},
    )

    body = client.get(f"{API}/forms/{form_id}").json()
    assert body["routing_errors"] == [
        {"page_id": page_id, "condition_id": broken, "name": "goto_page_doesnt_exist"}
    ]


def test_make_live_then_live_and_draft(client):
    form_id = _create(client)
    client.post(f"{API}/forms/{form_id}/pages", json={"page": {"question_text": "How many?", "answer_type": "number"}})

    assert client.get(f"{API}/forms/{form_id}/live").status_code == 404

    res = client.post(f"{API}/forms/{form_id}/make-live")
    assert res.status_code == 200
    live_at = res.json()["live_at"]
    assert res.json()["success"] is True

    live = client.get(f"{API}/forms/{form_id}/live").json()
    assert live["live_at"] == live_at
    assert live["updated_at"] == live_at
    assert len(live["pages"]) == 1

    shown = client.get(f"{API}/forms/{form_id}").json()
    assert shown["live_at"] == live_at
    assert shown["has_draft_version"] is False

    draft = client.get(f"{API}/forms/{form_id}/draft").json()
    assert "live_at" not in draft
    assert draft["page_order"] == live["page_order"]


def test_destroy_form(client):
    form_id = _create(client)
    client.post(f"{API}/forms/{form_id}/make-live")

    res = client.delete(f"{API}/forms/{form_id}")
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert client.get(f"{API}/forms/{form_id}").status_code == 404
    assert client.get(f"{API}/forms/{form_id}/live").status_code == 404


def test_unknown_form_is_not_found(client):
    for method, path in (
        ("get", "/forms/missing"),
        ("patch", "/forms/missing"),
        ("delete", "/forms/missing"),
        ("post", "/forms/missing/make-live"),
        ("get", "/forms/missing/pages"),
    ):
        res = getattr(client, method)(f"{API}{path}", **({"json": {"name": "x"}} if method == "patch" else {}))
        assert res.status_code == 404, (method, path)
        assert res.json() == {"error": "not_found"}


def test_missing_body_is_a_bad_request(client):
    res = client.post(f"{API}/forms", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "param is missing or the value is empty: form"}

    res = client.post(f"{API}/forms", content=b"not json", headers={"content-type": "application/json"})
    assert res.status_code == 400


def test_wrong_attribute_type_is_an_error_map(client):
    res = client.post(f"{API}/forms", json={"form": {"name": "Typed", "question_section_completed": "maybe"}})
    assert res.status_code == 400
    assert "question_section_completed" in res.json()


def test_responses_carry_request_id(client):
    res = client.get(f"{API}/forms")
    assert res.headers.get("X-Request-Id")


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "db": True}


def test_make_live_refuses_invalid_form(client):
    form_id = _create(client)
    aggregate = FormAggregate.load(form_id)
    page = aggregate.add_page({"question_text": "Q", "answer_type": "number"})
    aggregate.add_condition(page.id, {"answer_value": "x"})
    # Write the flag directly, as a row saved before the routing rule existed
    repository_forms.update_form(form_id, {"question_section_completed": True})

    res = client.post(f"{API}/forms/{form_id}/make-live")
    assert res.status_code == 400
    assert res.json() == {"base": ["Form has routing validation errors"]}
