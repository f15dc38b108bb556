"""HTTP contract for routing condition endpoints."""

from __future__ import annotations

import pytest

API = "/api/v1"


@pytest.fixture
def graph(make_form, page_attrs):
    form = make_form()
    first = form.add_page(page_attrs(question_text="First"))
    second = form.add_page(page_attrs(question_text="Second"))
    return form.id, first.id, second.id


def _conditions_url(form_id, page_id):
    return f"{API}/forms/{form_id}/pages/{page_id}/conditions"


def test_create_and_list_conditions(client, graph):
    form_id, first, second = graph
    res = client.post(
        _conditions_url(form_id, first),
        json={"condition": {"check_page_id": first, "goto_page_id": second, "answer_value": "Yes", "admin": 1}},
    )
    assert res.status_code == 201
    condition_id = res.json()["id"]

    listed = client.get(_conditions_url(form_id, first)).json()
    assert [c["id"] for c in listed] == [condition_id]
    assert listed[0]["routing_page_id"] == first
    assert listed[0]["skip_to_end"] is False
    assert listed[0]["validation_errors"] == []
    assert "admin" not in listed[0]

    page = client.get(f"{API}/forms/{form_id}/pages/{first}").json()
    assert [c["id"] for c in page["routing_conditions"]] == [condition_id]


def test_answer_value_is_coerced_to_text(client, graph):
    form_id, first, _ = graph
    condition_id = client.post(
        _conditions_url(form_id, first), json={"condition": {"answer_value": 42, "skip_to_end": True}}
    ).json()["id"]
    shown = client.get(f"{_conditions_url(form_id, first)}/{condition_id}").json()
    assert shown["answer_value"] == "42"


def test_show_update_and_delete_condition(client, graph):
    form_id, first, second = graph
    condition_id = client.post(_conditions_url(form_id, first), json={"condition": {"answer_value": "No"}}).json()["id"]
    url = f"{_conditions_url(form_id, first)}/{condition_id}"

    shown = client.get(url).json()
    assert shown["validation_errors"] == [{"name": "goto_page_doesnt_exist"}]
    assert client.get(f"{API}/forms/{form_id}").json()["has_routing_errors"] is True

    res = client.patch(url, json={"condition": {"goto_page_id": second}})
    assert res.json() == {"success": True}
    assert client.get(url).json()["validation_errors"] == []
    assert client.get(f"{API}/forms/{form_id}").json()["has_routing_errors"] is False

    res = client.delete(url)
    assert res.json() == {"success": True}
    assert client.get(url).status_code == 404


def test_condition_must_route_from_a_form_page(client, graph, make_form, page_attrs):
    form_id, first, _ = graph
    foreign = make_form(name="Other").add_page(page_attrs())
    res = client.post(
        _conditions_url(form_id, first),
        json={"condition": {"routing_page_id": foreign.id, "skip_to_end": True}},
    )
    assert res.status_code == 400
    assert res.json() == {"routing_page_id": ["must be a page of this form"]}


def test_condition_under_wrong_page_is_not_found(client, graph):
    form_id, first, second = graph
    condition_id = client.post(
        _conditions_url(form_id, first), json={"condition": {"skip_to_end": True}}
    ).json()["id"]
    res = client.get(f"{_conditions_url(form_id, second)}/{condition_id}")
    assert res.status_code == 404
    assert res.json() == {"error": "not_found"}

    res = client.post(_conditions_url(form_id, "missing-page"), json={"condition": {"skip_to_end": True}})
    assert res.status_code == 404


def test_missing_condition_param(client, graph):
    form_id, first, _ = graph
    res = client.post(_conditions_url(form_id, first), json={})
    assert res.status_code == 400
    assert res.json() == {"error": "param is missing or the value is empty: condition"}
