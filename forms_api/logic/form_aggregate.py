"""Form aggregate: pages, routing conditions, snapshots and the live/draft lifecycle.

A ``FormAggregate`` is loaded per request, mutated through its methods and
discarded. Every mutation runs in one transaction that also touches the
form's ``updated_at``; once committed, a domain event is published for the
audit trail. ``make_live`` writes the form timestamp and the made-live record
in a single transaction so both carry the same instant.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from forms_api.db.base import reader, transaction
from forms_api.logic import events
from forms_api.logic import order_sequences
from forms_api.logic import repository_conditions
from forms_api.logic import repository_forms
from forms_api.logic import repository_made_live_forms
from forms_api.logic import repository_pages
from forms_api.logic.clock import to_iso, utcnow
from forms_api.logic.errors import NotFoundError, RecordInvalid
from forms_api.logic.routing import routing_errors
from forms_api.logic.serializers import dump_canonical, form_json, pages_json
from forms_api.logic.validation import form_slug_for, validate_condition, validate_form, validate_page
from forms_api.models.form import Form, MadeLiveForm, Page, RoutingCondition

logger = logging.getLogger(__name__)

FORM_ASSIGNABLE: tuple[str, ...] = (
    "name",
    "submission_email",
    "org",
    "creator_id",
    "privacy_policy_url",
    "what_happens_next_text",
    "support_email",
    "support_phone",
    "support_url",
    "support_url_text",
    "declaration_text",
    "question_section_completed",
    "declaration_section_completed",
)
PAGE_ASSIGNABLE: tuple[str, ...] = (
    "question_text",
    "question_short_name",
    "hint_text",
    "answer_type",
    "answer_settings",
    "is_optional",
)
CONDITION_ASSIGNABLE: tuple[str, ...] = (
    "routing_page_id",
    "check_page_id",
    "goto_page_id",
    "answer_value",
    "skip_to_end",
)
_FORM_FLAGS = ("question_section_completed", "declaration_section_completed")


def _changes(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, List[Any]]:
    keys = sorted(set(before) | set(after))
    return {k: [before.get(k), after.get(k)] for k in keys if before.get(k) != after.get(k)}


def _jsonable(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (to_iso(v) if isinstance(v, datetime) else v) for k, v in values.items()}


def _form_values(attrs: Dict[str, Any]) -> Dict[str, Any]:
    values = {k: attrs[k] for k in FORM_ASSIGNABLE if k in attrs}
    for flag in _FORM_FLAGS:
        if flag in values:
            values[flag] = bool(values[flag])
    return values


class FormAggregate:
    def __init__(self, form: Form, pages: List[Page], latest_live: Optional[MadeLiveForm] = None):
        self.form = form
        self._pages = sorted(pages, key=lambda p: p.position)
        self._latest_live = latest_live
        self._persisted = form.model_copy()

    # -- loading -----------------------------------------------------------

    @classmethod
    def load(cls, form_id: str) -> "FormAggregate":
        with reader() as conn:
            form = repository_forms.get_form(form_id, conn)
            if form is None:
                raise NotFoundError("Form", form_id)
            pages = repository_pages.list_pages(form_id, conn)
            latest = repository_made_live_forms.latest_made_live_form(form_id, conn)
        return cls(form, pages, latest)

    def reload(self) -> "FormAggregate":
        fresh = type(self).load(self.id)
        self.form = fresh.form
        self._pages = fresh._pages
        self._latest_live = fresh._latest_live
        self._persisted = fresh._persisted
        return self

    @classmethod
    def create(cls, attrs: Dict[str, Any], now: datetime | None = None) -> "FormAggregate":
        now = now or utcnow()
        values = _form_values(attrs)
        values["form_slug"] = form_slug_for(values.get("name"))
        errors = validate_form(values, [])
        if errors:
            raise RecordInvalid(errors)
        for flag in _FORM_FLAGS:
            values.setdefault(flag, False)
        form = Form(id=str(uuid.uuid4()), created_at=now, updated_at=now, **values)
        repository_forms.insert_form(form)
        logger.info("form.create form_id=%s slug=%s", form.id, form.form_slug)
        events.publish(
            events.FORM_CREATED,
            {
                "item_type": "Form",
                "item_id": form.id,
                "event": "create",
                "form_id": form.id,
                "changes": _changes({}, _jsonable(form.model_dump())),
            },
        )
        return cls(form, [], None)

    # -- derived state -----------------------------------------------------

    @property
    def id(self) -> str:
        return self.form.id

    @property
    def pages(self) -> List[Page]:
        return list(self._pages)

    @property
    def start_page(self) -> Optional[str]:
        return self._pages[0].id if self._pages else None

    @property
    def page_order(self) -> List[str]:
        return [p.id for p in self._pages]

    @property
    def routing_errors(self) -> List[Dict[str, str]]:
        return routing_errors(self._pages)

    @property
    def has_routing_errors(self) -> bool:
        return bool(self.routing_errors)

    @property
    def live_at(self) -> Optional[datetime]:
        return self._latest_live.created_at if self._latest_live else None

    @property
    def has_live_version(self) -> bool:
        return self._latest_live is not None

    @property
    def live_version(self) -> Optional[str]:
        """The latest published blob exactly as stored."""
        return self._latest_live.json_form_blob if self._latest_live else None

    @property
    def has_draft_version(self) -> bool:
        if self._latest_live is None:
            return True
        return self.form.updated_at > self._latest_live.created_at

    # -- validation and form attributes --------------------------------------

    def assign_attributes(self, attrs: Dict[str, Any]) -> None:
        """Assign form attributes in memory; the slug always follows the name."""
        for key, value in _form_values(attrs).items():
            setattr(self.form, key, value)
        self.form.form_slug = form_slug_for(self.form.name)

    @property
    def errors(self) -> Dict[str, List[str]]:
        return validate_form(self.form.model_dump(), self._pages)

    def is_valid(self) -> bool:
        return not self.errors

    def validate(self) -> None:
        errors = self.errors
        if errors:
            raise RecordInvalid(errors)

    def save(self, now: datetime | None = None) -> bool:
        """Persist assigned attributes; returns False when nothing changed."""
        self.form.form_slug = form_slug_for(self.form.name)
        self.validate()
        before = self._persisted.model_dump(include=set(FORM_ASSIGNABLE) | {"form_slug"})
        after = self.form.model_dump(include=set(FORM_ASSIGNABLE) | {"form_slug"})
        changes = _changes(before, after)
        if not changes:
            return False
        now = now or utcnow()
        with transaction() as conn:
            repository_forms.update_form(self.id, {k: after[k] for k in changes}, conn)
            self.form.updated_at = repository_forms.touch_form(self.id, now, conn)
        self._persisted = self.form.model_copy()
        logger.info("form.update form_id=%s fields=%s", self.id, sorted(changes))
        events.publish(
            events.FORM_UPDATED,
            {"item_type": "Form", "item_id": self.id, "event": "update", "form_id": self.id, "changes": changes},
        )
        return True

    def update(self, attrs: Dict[str, Any], now: datetime | None = None) -> bool:
        self.assign_attributes(attrs)
        return self.save(now)

    def destroy(self) -> None:
        snapshot = _jsonable(self._persisted.model_dump())
        repository_forms.delete_form(self.id)
        logger.info("form.destroy form_id=%s", self.id)
        events.publish(
            events.FORM_DESTROYED,
            {
                "item_type": "Form",
                "item_id": self.id,
                "event": "destroy",
                "form_id": self.id,
                "changes": _changes(snapshot, {}),
            },
        )

    # -- snapshots and publishing ------------------------------------------

    def snapshot(self, live_at: datetime | None = None) -> Dict[str, Any]:
        """Serialize the form with its pages; ``live_at`` is added only when given."""
        document = form_json(self.form)
        document["start_page"] = self.start_page
        document["pages"] = pages_json(self._pages)
        document["page_order"] = self.page_order
        if live_at is not None:
            document["live_at"] = to_iso(live_at)
        return document

    def make_live(self, now: datetime | None = None) -> MadeLiveForm:
        """Publish the stored form as a new made-live version at ``now``.

        The form row and its pages are re-read inside the transaction, so
        attributes assigned without ``save`` are never published; on success
        the aggregate holds the stored values.
        """
        now = now or utcnow()
        previous_form, previous_pages = self.form, self._pages
        try:
            with transaction() as conn:
                order_sequences.lock_form(self.id, conn)
                stored = repository_forms.get_form(self.id, conn)
                if stored is None:
                    raise NotFoundError("Form", self.id)
                previous_updated_at = stored.updated_at
                self.form = stored
                self._pages = repository_pages.list_pages(self.id, conn)
                self.validate()
                repository_forms.update_form(self.id, {"updated_at": now}, conn)
                self.form.updated_at = now
                blob = dump_canonical(self.snapshot(live_at=now))
                record = repository_made_live_forms.insert_made_live_form(self.id, blob, now, conn)
        except (NotFoundError, RecordInvalid):
            self.form, self._pages = previous_form, previous_pages
            raise
        except Exception:
            self.form, self._pages = previous_form, previous_pages
            logger.error("form.make_live failed form_id=%s", self.id, exc_info=True)
            raise
        self._latest_live = record
        self._persisted = self.form.model_copy()
        logger.info("form.make_live form_id=%s version=%s live_at=%s", self.id, record.version_number, to_iso(now))
        events.publish(
            events.FORM_MADE_LIVE,
            {
                "item_type": "Form",
                "item_id": self.id,
                "event": "update",
                "form_id": self.id,
                "made_live_form_id": record.id,
                "changes": {"updated_at": [to_iso(previous_updated_at), to_iso(now)]},
            },
        )
        return record

    def as_json(self) -> Dict[str, Any]:
        out = form_json(self.form)
        out.update(
            {
                "start_page": self.start_page,
                "live_at": to_iso(self.live_at),
                "has_draft_version": self.has_draft_version,
                "has_live_version": self.has_live_version,
                "has_routing_errors": self.has_routing_errors,
                "routing_errors": self.routing_errors,
            }
        )
        return out

    # -- pages -------------------------------------------------------------

    def find_page(self, page_id: str) -> Page:
        for page in self._pages:
            if page.id == str(page_id):
                return page
        raise NotFoundError("Page", page_id)

    def pages_json(self) -> List[Dict[str, Any]]:
        return pages_json(self._pages)

    def page_json(self, page_id: str) -> Dict[str, Any]:
        page = self.find_page(page_id)
        return pages_json(self._pages)[self._pages.index(page)]

    def add_page(self, attrs: Dict[str, Any], now: datetime | None = None) -> Page:
        now = now or utcnow()
        normalized, errors = validate_page({k: attrs.get(k) for k in PAGE_ASSIGNABLE})
        if errors:
            raise RecordInvalid(errors)
        page_id = str(uuid.uuid4())
        with transaction() as conn:
            position = order_sequences.next_position(self.id, conn)
            page = Page(
                id=page_id,
                form_id=self.id,
                position=position,
                created_at=now,
                updated_at=now,
                **{k: normalized.get(k) for k in PAGE_ASSIGNABLE},
            )
            repository_pages.insert_page(page, conn)
            repository_forms.touch_form(self.id, now, conn)
        self.reload()
        logger.info("page.create form_id=%s page_id=%s position=%s", self.id, page_id, position)
        events.publish(
            events.PAGE_CREATED,
            {
                "item_type": "Page",
                "item_id": page_id,
                "event": "create",
                "form_id": self.id,
                "changes": _changes({}, page.model_dump(include=set(PAGE_ASSIGNABLE) | {"position"})),
            },
        )
        return self.find_page(page_id)

    def update_page(self, page_id: str, attrs: Dict[str, Any], now: datetime | None = None) -> Page:
        """Apply a partial update to a page and touch the owning form."""
        page = self.find_page(page_id)
        before = page.model_dump(include=set(PAGE_ASSIGNABLE))
        merged = {**before, **{k: v for k, v in attrs.items() if k in PAGE_ASSIGNABLE}}
        normalized, errors = validate_page(merged)
        if errors:
            raise RecordInvalid(errors)
        after = {k: normalized.get(k) for k in PAGE_ASSIGNABLE}
        changes = _changes(before, after)
        if not changes:
            return page
        now = now or utcnow()
        with transaction() as conn:
            repository_pages.update_page(page.id, {**{k: after[k] for k in changes}, "updated_at": now}, conn)
            repository_forms.touch_form(self.id, now, conn)
        self.reload()
        logger.info("page.update form_id=%s page_id=%s fields=%s", self.id, page.id, sorted(changes))
        events.publish(
            events.PAGE_UPDATED,
            {"item_type": "Page", "item_id": page.id, "event": "update", "form_id": self.id, "changes": changes},
        )
        return self.find_page(page.id)

    def remove_page(self, page_id: str, now: datetime | None = None) -> None:
        """Delete a page with its outgoing conditions and close the position gap."""
        page = self.find_page(page_id)
        now = now or utcnow()
        with transaction() as conn:
            repository_pages.delete_page(page.id, conn)
            order_sequences.compact_positions(self.id, conn)
            repository_forms.touch_form(self.id, now, conn)
        self.reload()
        logger.info("page.destroy form_id=%s page_id=%s", self.id, page.id)
        for condition in page.routing_conditions:
            events.publish(
                events.CONDITION_DESTROYED,
                {
                    "item_type": "Condition",
                    "item_id": condition.id,
                    "event": "destroy",
                    "form_id": self.id,
                    "changes": _changes(_jsonable(condition.model_dump()), {}),
                },
            )
        events.publish(
            events.PAGE_DESTROYED,
            {
                "item_type": "Page",
                "item_id": page.id,
                "event": "destroy",
                "form_id": self.id,
                "changes": _changes(page.model_dump(include=set(PAGE_ASSIGNABLE) | {"position"}), {}),
            },
        )

    def move_page(self, page_id: str, direction: str, now: datetime | None = None) -> bool:
        page = self.find_page(page_id)
        now = now or utcnow()
        with transaction() as conn:
            moved = order_sequences.move_page(self.id, page.id, direction, conn)
            if moved:
                repository_forms.touch_form(self.id, now, conn)
        if not moved:
            return False
        self.reload()
        new_position = self.find_page(page.id).position
        events.publish(
            events.PAGE_UPDATED,
            {
                "item_type": "Page",
                "item_id": page.id,
                "event": "update",
                "form_id": self.id,
                "changes": {"position": [page.position, new_position]},
            },
        )
        return True

    def move_page_up(self, page_id: str, now: datetime | None = None) -> bool:
        return self.move_page(page_id, order_sequences.MOVE_UP, now)

    def move_page_down(self, page_id: str, now: datetime | None = None) -> bool:
        return self.move_page(page_id, order_sequences.MOVE_DOWN, now)

    # -- routing conditions --------------------------------------------------

    def find_condition(self, page_id: str, condition_id: str) -> RoutingCondition:
        page = self.find_page(page_id)
        for condition in page.routing_conditions:
            if condition.id == str(condition_id):
                return condition
        raise NotFoundError("Condition", condition_id)

    def conditions_json(self, page_id: str) -> List[Dict[str, Any]]:
        return self.page_json(page_id)["routing_conditions"]

    def condition_json(self, page_id: str, condition_id: str) -> Dict[str, Any]:
        self.find_condition(page_id, condition_id)
        for item in self.conditions_json(page_id):
            if item["id"] == str(condition_id):
                return item
        raise NotFoundError("Condition", condition_id)

    def add_condition(self, page_id: str, attrs: Dict[str, Any], now: datetime | None = None) -> RoutingCondition:
        page = self.find_page(page_id)
        now = now or utcnow()
        values = {k: attrs.get(k) for k in CONDITION_ASSIGNABLE}
        values["routing_page_id"] = values.get("routing_page_id") or page.id
        values["skip_to_end"] = bool(values.get("skip_to_end") or False)
        errors = validate_condition(values, self.page_order)
        if errors:
            raise RecordInvalid(errors)
        condition = RoutingCondition(id=str(uuid.uuid4()), created_at=now, updated_at=now, **values)
        with transaction() as conn:
            repository_conditions.insert_condition(condition, conn)
            repository_forms.touch_form(self.id, now, conn)
        self.reload()
        logger.info("condition.create form_id=%s page_id=%s condition_id=%s", self.id, page.id, condition.id)
        events.publish(
            events.CONDITION_CREATED,
            {
                "item_type": "Condition",
                "item_id": condition.id,
                "event": "create",
                "form_id": self.id,
                "changes": _changes({}, values),
            },
        )
        return condition

    def update_condition(
        self,
        page_id: str,
        condition_id: str,
        attrs: Dict[str, Any],
        now: datetime | None = None,
    ) -> RoutingCondition:
        condition = self.find_condition(page_id, condition_id)
        before = condition.model_dump(include=set(CONDITION_ASSIGNABLE))
        after = {**before, **{k: v for k, v in attrs.items() if k in CONDITION_ASSIGNABLE}}
        after["routing_page_id"] = after.get("routing_page_id") or condition.routing_page_id
        after["skip_to_end"] = bool(after.get("skip_to_end") or False)
        errors = validate_condition(after, self.page_order)
        if errors:
            raise RecordInvalid(errors)
        changes = _changes(before, after)
        if not changes:
            return condition
        now = now or utcnow()
        with transaction() as conn:
            repository_conditions.update_condition(
                condition.id, {**{k: after[k] for k in changes}, "updated_at": now}, conn
            )
            repository_forms.touch_form(self.id, now, conn)
        self.reload()
        events.publish(
            events.CONDITION_UPDATED,
            {"item_type": "Condition", "item_id": condition.id, "event": "update", "form_id": self.id, "changes": changes},
        )
        return self.find_condition(after["routing_page_id"], condition.id)

    def remove_condition(self, page_id: str, condition_id: str, now: datetime | None = None) -> None:
        condition = self.find_condition(page_id, condition_id)
        now = now or utcnow()
        with transaction() as conn:
            repository_conditions.delete_condition(condition.id, conn)
            repository_forms.touch_form(self.id, now, conn)
        self.reload()
        events.publish(
            events.CONDITION_DESTROYED,
            {
                "item_type": "Condition",
                "item_id": condition.id,
                "event": "destroy",
                "form_id": self.id,
                "changes": _changes(_jsonable(condition.model_dump()), {}),
            },
        )


__all__ = ["FormAggregate", "FORM_ASSIGNABLE", "PAGE_ASSIGNABLE", "CONDITION_ASSIGNABLE"]
