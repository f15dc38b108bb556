"""HTTP contract for page endpoints, including legacy answer types."""

from __future__ import annotations

import pytest

from forms_api.logic.form_aggregate import FormAggregate

API = "/api/v1"


@pytest.fixture
def form_id(make_form):
    return make_form().id


def _page(**overrides):
    body = {
        "question_text": "What is your work address?",
        "hint_text": "This should be the location stated in your contract.",
        "answer_type": "number",
        "is_optional": False,
    }
    body.update(overrides)
    return body


def _create_page(client, form_id, **overrides):
    res = client.post(f"{API}/forms/{form_id}/pages", json={"page": _page(**overrides)})
    assert res.status_code == 201, res.text
    return res.json()["id"]


def test_create_list_and_show_pages(client, form_id):
    first = _create_page(client, form_id, question_text="First")
    second = _create_page(client, form_id, question_text="Second")

    listed = client.get(f"{API}/forms/{form_id}/pages").json()
    assert [p["id"] for p in listed] == [first, second]
    assert [p["position"] for p in listed] == [1, 2]
    assert listed[0]["next_page"] == second
    assert listed[1]["next_page"] is None

    shown = client.get(f"{API}/forms/{form_id}/pages/{first}").json()
    assert shown["question_text"] == "First"
    assert shown["routing_conditions"] == []


def test_page_writes_reset_question_section_completed(client, form_id):
    FormAggregate.load(form_id).update({"question_section_completed": True})
    page_id = _create_page(client, form_id)
    assert FormAggregate.load(form_id).form.question_section_completed is False

    FormAggregate.load(form_id).update({"question_section_completed": True})
    res = client.patch(f"{API}/forms/{form_id}/pages/{page_id}", json={"page": {"hint_text": "Updated"}})
    assert res.json() == {"success": True}
    assert FormAggregate.load(form_id).form.question_section_completed is False

    FormAggregate.load(form_id).update({"question_section_completed": True})
    res = client.delete(f"{API}/forms/{form_id}/pages/{page_id}")
    assert res.json() == {"success": True}
    assert FormAggregate.load(form_id).form.question_section_completed is False


def test_update_page_is_partial(client, form_id):
    page_id = _create_page(client, form_id, answer_type="text", answer_settings={"input_type": "long_text"})
    res = client.put(f"{API}/forms/{form_id}/pages/{page_id}", json={"question_text": "Tell us more"})
    assert res.status_code == 200

    shown = client.get(f"{API}/forms/{form_id}/pages/{page_id}").json()
    assert shown["question_text"] == "Tell us more"
    assert shown["answer_type"] == "text"
    assert shown["answer_settings"] == {"input_type": "long_text"}


def test_invalid_page_returns_error_map(client, form_id):
    res = client.post(f"{API}/forms/{form_id}/pages", json={"page": _page(question_text="", answer_type="colour")})
    assert res.status_code == 400
    assert res.json() == {"question_text": ["can't be blank"], "answer_type": ["is not included in the list"]}

    res = client.post(f"{API}/forms/{form_id}/pages", json={"page": _page(answer_type="selection")})
    assert res.status_code == 400
    assert "answer_settings" in res.json()


def test_missing_page_param(client, form_id):
    res = client.post(f"{API}/forms/{form_id}/pages", json={"page": {}})
    assert res.status_code == 400
    assert res.json() == {"error": "param is missing or the value is empty: page"}


def test_move_endpoints(client, form_id):
    a = _create_page(client, form_id, question_text="A")
    b = _create_page(client, form_id, question_text="B")

    res = client.post(f"{API}/forms/{form_id}/pages/{b}/move_up")
    assert res.status_code == 200
    assert res.json() == {"success": 1}
    assert [p["id"] for p in client.get(f"{API}/forms/{form_id}/pages").json()] == [b, a]

    res = client.put(f"{API}/forms/{form_id}/pages/{b}/move_down")
    assert res.json() == {"success": 1}
    assert [p["id"] for p in client.get(f"{API}/forms/{form_id}/pages").json()] == [a, b]

    # Already last: still a success, order unchanged
    res = client.post(f"{API}/forms/{form_id}/pages/{b}/move_down")
    assert res.json() == {"success": 1}
    assert [p["id"] for p in client.get(f"{API}/forms/{form_id}/pages").json()] == [a, b]


def test_page_of_another_form_is_not_found(client, form_id, make_form):
    other = make_form(name="Other")
    foreign = _create_page(client, other.id)
    for method in ("get", "delete"):
        res = getattr(client, method)(f"{API}/forms/{form_id}/pages/{foreign}")
        assert res.status_code == 404
        assert res.json() == {"error": "not_found"}
    res = client.patch(f"{API}/forms/{form_id}/pages/{foreign}", json={"page": {"hint_text": "x"}})
    assert res.status_code == 404
    res = client.post(f"{API}/forms/{form_id}/pages/{foreign}/move_up")
    assert res.status_code == 404


# ---------------------------------------------------------------------------
# Legacy answer types
# ---------------------------------------------------------------------------


def test_legacy_types_are_rejected_when_switched_off(client, form_id):
    res = client.post(f"{API}/forms/{form_id}/pages", json={"page": _page(answer_type="single_line")})
    assert res.status_code == 400
    assert res.json() == {"answer_type": ["is not included in the list"]}


def test_legacy_single_line_is_stored_as_text(legacy_client, form_id):
    page_id = _create_page(legacy_client, form_id, answer_type="single_line")

    stored = FormAggregate.load(form_id).find_page(page_id)
    assert stored.answer_type == "text"
    assert stored.answer_settings == {"input_type": "single_line"}

    shown = legacy_client.get(f"{API}/forms/{form_id}/pages/{page_id}").json()
    assert shown["answer_type"] == "single_line"
    assert shown["answer_settings"] is None


def test_legacy_address_and_date_get_default_settings(legacy_client, form_id):
    address = _create_page(legacy_client, form_id, answer_type="address")
    date = _create_page(legacy_client, form_id, answer_type="date")

    form = FormAggregate.load(form_id)
    assert form.find_page(address).answer_settings == {
        "input_type": {"uk_address": True, "international_address": False}
    }
    assert form.find_page(date).answer_settings == {"input_type": "other_date"}
    assert legacy_client.get(f"{API}/forms/{form_id}/pages/{date}").json()["answer_settings"] is None


def test_legacy_update_converts_answer_type(legacy_client, form_id):
    page_id = _create_page(legacy_client, form_id)
    res = legacy_client.patch(f"{API}/forms/{form_id}/pages/{page_id}", json={"page": {"answer_type": "long_text"}})
    assert res.status_code == 200
    stored = FormAggregate.load(form_id).find_page(page_id)
    assert (stored.answer_type, stored.answer_settings) == ("text", {"input_type": "long_text"})


@pytest.mark.parametrize("sent_settings", [{}, {"answer_settings": None}])
def test_legacy_update_keeps_stored_date_settings(legacy_client, form_id, sent_settings):
    page_id = _create_page(legacy_client, form_id, answer_type="date", answer_settings={"input_type": "date_of_birth"})

    res = legacy_client.patch(
        f"{API}/forms/{form_id}/pages/{page_id}",
        json={"page": {"answer_type": "date", "question_text": "Edited", **sent_settings}},
    )

    assert res.status_code == 200
    stored = FormAggregate.load(form_id).find_page(page_id)
    assert stored.question_text == "Edited"
    assert stored.answer_settings == {"input_type": "date_of_birth"}


def test_legacy_update_to_a_new_type_still_gets_defaults(legacy_client, form_id):
    page_id = _create_page(legacy_client, form_id)
    res = legacy_client.patch(f"{API}/forms/{form_id}/pages/{page_id}", json={"page": {"answer_type": "date"}})
    assert res.status_code == 200
    assert FormAggregate.load(form_id).find_page(page_id).answer_settings == {"input_type": "other_date"}
