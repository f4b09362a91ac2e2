import pytest

from notestore.errors import AttributionFailure, ValidationFailure
from notestore.payments import events
from notestore.payments.metadata import (
    extract_attribution,
    make_metadata,
    owner_of,
    split_note_ids,
    STRIPE_METADATA_VALUE_MAX,
)


def test_split_note_ids_trims_and_dedupes():
    assert split_note_ids(" a, b,,a ,c") == ["a", "b", "c"]
    assert split_note_ids(None) == []


def test_make_metadata_refuses_truncation():
    long_ids = [f"note-{i:04d}" for i in range(STRIPE_METADATA_VALUE_MAX // 5)]
    with pytest.raises(ValidationFailure):
        make_metadata("u1", long_ids)


def test_extract_attribution():
    assert extract_attribution({"userId": "u1", "noteIds": "a,b"}) == ("u1", ["a", "b"])


@pytest.mark.parametrize("metadata", [{}, {"userId": "u1"}, {"noteIds": "a"}, {"userId": " ", "noteIds": "a"}, {"userId": "u1", "noteIds": " , "}])
def test_extract_attribution_failures(metadata):
    with pytest.raises(AttributionFailure):
        extract_attribution(metadata)


def test_owner_of():
    assert owner_of({"metadata": {"userId": "u1"}}) == "u1"
    assert owner_of({}) == ""


def test_parse_checkout_completed(make_event):
    event = events.parse_event(make_event())
    assert event == events.CheckoutCompleted(
        event_id="evt_1",
        session_id="cs_test_1",
        payment_reference="pi_1",
        customer_id="cus_1",
        metadata={"userId": "test-user", "noteIds": "tax-law-notes"},
    )


def test_payment_reference_falls_back_to_session_id(make_event):
    raw = make_event(payment_intent=None, customer=None)
    event = events.parse_event(raw)
    assert event.payment_reference == "cs_test_1"
    assert event.customer_id is None


def test_expanded_objects_are_reduced_to_ids():
    event = events.from_session({"id": "cs_1", "payment_intent": {"id": "pi_9"}, "customer": {"id": "cus_9"}})
    assert event.payment_reference == "pi_9"
    assert event.customer_id == "cus_9"


@pytest.mark.parametrize("event_type", ["payment_intent.succeeded", "checkout.session.expired", ""])
def test_other_types_are_ignored(event_type):
    parsed = events.parse_event({"id": "evt_2", "type": event_type, "data": {"object": {}}})
    assert parsed == events.IgnoredEvent(event_id="evt_2", type=event_type)
