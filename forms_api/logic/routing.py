"""Routing validation over a form's page/condition graph.

Checks are local to each condition: a condition must name a destination page
or end the form. No reachability or cycle analysis is performed.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from forms_api.models.form import Page, RoutingCondition

GOTO_PAGE_DOESNT_EXIST = "goto_page_doesnt_exist"
GOTO_PAGE_NOT_IN_FORM = "goto_page_not_in_form"


def condition_is_malformed(condition: RoutingCondition) -> bool:
    return not condition.goto_page_id and not condition.skip_to_end


def condition_validation_errors(condition: RoutingCondition, page_ids: Iterable[str]) -> List[Dict[str, str]]:
    """List problems with one condition as ``{"name": ...}`` entries."""
    if condition_is_malformed(condition):
        return [{"name": GOTO_PAGE_DOESNT_EXIST}]
    if condition.goto_page_id and condition.goto_page_id not in set(page_ids):
        return [{"name": GOTO_PAGE_NOT_IN_FORM}]
    return []


def has_routing_errors(pages: Iterable[Page]) -> bool:
    return any(condition_is_malformed(c) for page in pages for c in page.routing_conditions)


def routing_errors(pages: Iterable[Page]) -> List[Dict[str, str]]:
    """Every malformed condition in the form, in page order."""
    return [
        {"page_id": page.id, "condition_id": c.id, "name": GOTO_PAGE_DOESNT_EXIST}
        for page in pages
        for c in page.routing_conditions
        if condition_is_malformed(c)
    ]


__all__ = [
    "GOTO_PAGE_DOESNT_EXIST",
    "GOTO_PAGE_NOT_IN_FORM",
    "condition_is_malformed",
    "condition_validation_errors",
    "has_routing_errors",
    "routing_errors",
]
