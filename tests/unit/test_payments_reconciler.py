import logging

import pytest

from notestore.errors import PartialReconciliationFailure
from notestore.payments import events, reconciler


def _completed(note_ids="tax-law-notes", user_id="test-user", event_id="evt_1", customer="cus_1"):
    metadata = {}
    if user_id is not None:
        metadata["userId"] = user_id
    if note_ids is not None:
        metadata["noteIds"] = note_ids
    return events.CheckoutCompleted(
        event_id=event_id,
        session_id="cs_test_1",
        payment_reference="pi_1",
        customer_id=customer,
        metadata=metadata,
    )


def test_ignored_event_has_no_effect(purchase_store):
    result = reconciler.reconcile(events.IgnoredEvent(event_id="evt_x", type="invoice.paid"))
    assert result.status == reconciler.IGNORED
    assert purchase_store.insert_calls == []


def test_creates_one_purchase_per_note_and_merges_cache(purchase_store):
    purchase_store.add_profile("test-user", "test@example.com", purchased_notes=["old-note"])

    result = reconciler.reconcile(_completed("tax-law-notes,company-law-notes"))

    assert result.status == reconciler.RECONCILED
    assert result.created == ["tax-law-notes", "company-law-notes"]
    assert purchase_store.records_for("test-user") == ["company-law-notes", "tax-law-notes"]
    profile = purchase_store.profiles["test-user"]
    assert profile["purchased_notes"] == ["old-note", "tax-law-notes", "company-law-notes"]
    assert profile["stripe_customer_id"] == "cus_1"


def test_duplicate_delivery_is_idempotent(purchase_store):
    purchase_store.add_profile("test-user", "test@example.com")

    first = reconciler.reconcile(_completed())
    second = reconciler.reconcile(_completed())

    assert first.created == ["tax-law-notes"]
    assert second.created == []
    assert second.skipped == ["tax-law-notes"]
    assert purchase_store.records_for("test-user") == ["tax-law-notes"]
    assert purchase_store.profiles["test-user"]["purchased_notes"] == ["tax-law-notes"]


def test_concurrent_insert_absorbed_by_unique_constraint(purchase_store):
    purchase_store.add_profile("test-user")
    # Lecture en échec: l’insertion atomique est tentée quand même
    purchase_store.fail_reads = True
    purchase_store.purchases[("test-user", "tax-law-notes")] = {"note_id": "tax-law-notes"}

    result = reconciler.reconcile(_completed())

    assert result.skipped == ["tax-law-notes"]
    assert len(purchase_store.records_for("test-user")) == 1


def test_partial_failure_then_retry_completes_without_duplicates(purchase_store):
    purchase_store.add_profile("test-user")
    purchase_store.fail_inserts = {"company-law-notes"}

    with pytest.raises(PartialReconciliationFailure) as exc:
        reconciler.reconcile(_completed("tax-law-notes,company-law-notes"))
    assert exc.value.failed == ["company-law-notes"]
    assert exc.value.created == ["tax-law-notes"]
    # Les notes enregistrées restent en cache malgré l’échec partiel
    assert purchase_store.profiles["test-user"]["purchased_notes"] == ["tax-law-notes"]

    purchase_store.fail_inserts = set()
    retry = reconciler.reconcile(_completed("tax-law-notes,company-law-notes"))

    assert retry.skipped == ["tax-law-notes"]
    assert retry.created == ["company-law-notes"]
    assert purchase_store.records_for("test-user") == ["company-law-notes", "tax-law-notes"]


def test_merge_failure_is_reported_for_redelivery(purchase_store):
    purchase_store.add_profile("test-user")
    purchase_store.fail_merge = True

    with pytest.raises(PartialReconciliationFailure) as exc:
        reconciler.reconcile(_completed())
    assert exc.value.failed == []
    assert purchase_store.records_for("test-user") == ["tax-law-notes"]


def test_missing_profile_still_records_purchases(purchase_store):
    result = reconciler.reconcile(_completed())
    assert result.created == ["tax-law-notes"]
    assert purchase_store.records_for("test-user") == ["tax-law-notes"]


@pytest.mark.parametrize("user_id, note_ids", [(None, "tax-law-notes"), ("test-user", None), ("test-user", "")])
def test_unattributed_payment_is_acknowledged_and_logged(purchase_store, caplog, user_id, note_ids):
    with caplog.at_level(logging.ERROR):
        result = reconciler.reconcile(_completed(note_ids=note_ids, user_id=user_id))

    assert result.status == reconciler.UNATTRIBUTED
    assert purchase_store.insert_calls == []
    assert "unattributed" in caplog.text
    assert "pi_1" in caplog.text


def test_customer_id_is_not_overwritten(purchase_store):
    purchase_store.add_profile("test-user", stripe_customer_id="cus_first")
    reconciler.reconcile(_completed(customer="cus_second"))
    assert purchase_store.profiles["test-user"]["stripe_customer_id"] == "cus_first"


def test_reconcile_session_matches_webhook_path(purchase_store):
    session = {
        "id": "cs_test_1",
        "payment_intent": "pi_1",
        "customer": "cus_1",
        "metadata": {"userId": "test-user", "noteIds": "tax-law-notes"},
    }
    result = reconciler.reconcile_session(session)
    assert result.as_dict() == {
        "status": "reconciled",
        "event_id": None,
        "user_id": "test-user",
        "created": ["tax-law-notes"],
        "skipped": [],
        "failed": [],
    }
