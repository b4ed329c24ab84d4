"""Repository tests (ledger, audit trail and state mirrors)"""
import pytest
from datetime import datetime, timezone, timedelta

from billing.core.exceptions import PaymentMethodMappingError
from billing.models.customer_billing_info import CustomerBillingInfo
from billing.models.customer_payment_method import CustomerPaymentMethod
from billing.models.payment_intent import PaymentIntent
from billing.models.processed_billing_event import ProcessedBillingEvent
from billing.repositories import customer_billing_info, customer_payment_methods, payment_intents, zeus_subscriptions
from billing.repositories.idempotency import IdempotencyLedger
from billing.repositories.webhook_events import WebhookAuditStore


@pytest.mark.critical
class TestIdempotencyLedger:
    """Test the processed_billing_events ledger"""

    def test_claim_first_time_succeeds(self, db_session):
        ledger = IdempotencyLedger(db_session)

        assert ledger.claim("evt_1", "payment_intent.succeeded", "pi_1") is True

        row = ledger.get("evt_1")
        assert row is not None
        assert row.payment_intent_id == "pi_1"
        assert row.success is None  # in flight until finalized

    def test_second_claim_for_same_event_loses(self, db_session):
        ledger = IdempotencyLedger(db_session)
        ledger.claim("evt_1", "payment_intent.succeeded")

        assert ledger.claim("evt_1", "payment_intent.succeeded") is False
        assert db_session.query(ProcessedBillingEvent).count() == 1

    def test_mark_processed_is_durable_across_sessions(self, db_session, session_factory):
        """After mark_processed, a fresh session still sees the event as processed"""
        IdempotencyLedger(db_session).mark_processed("evt_1", "payment_intent.succeeded", success=True)

        fresh_session = session_factory()
        try:
            assert IdempotencyLedger(fresh_session).has_processed("evt_1") is True
        finally:
            fresh_session.close()

    def test_mark_processed_updates_claimed_row(self, db_session):
        ledger = IdempotencyLedger(db_session)
        ledger.claim("evt_1", "payment_intent.succeeded", "pi_1")

        ledger.mark_processed("evt_1", "payment_intent.succeeded", success=False, error="boom")

        db_session.expire_all()
        row = ledger.get("evt_1")
        assert row.success is False
        assert row.error_message == "boom"
        # Not passed on finalize, kept from the claim
        assert row.payment_intent_id == "pi_1"
        assert db_session.query(ProcessedBillingEvent).count() == 1

    def test_failed_event_still_counts_as_processed(self, db_session):
        ledger = IdempotencyLedger(db_session)
        ledger.mark_processed("evt_1", "customer.updated", success=False, error="boom")

        assert ledger.has_processed("evt_1") is True

    def test_unknown_event_not_processed(self, db_session):
        assert IdempotencyLedger(db_session).has_processed("evt_missing") is False

    def test_get_stats(self, db_session):
        ledger = IdempotencyLedger(db_session)
        ledger.mark_processed("evt_1", "payment_intent.succeeded", success=True)
        ledger.mark_processed("evt_2", "payment_intent.payment_failed", success=False, error="boom")
        ledger.mark_processed("evt_3", "customer.updated", success=False, error="boom")
        # In flight, not yet finalized
        ledger.claim("evt_4", "customer.created")

        assert ledger.get_stats() == {"total_processed": 3, "failed_count": 2}

    def test_cleanup_deletes_only_old_entries(self, db_session):
        now = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
        old_ledger = IdempotencyLedger(db_session, clock=lambda: now - timedelta(hours=48))
        old_ledger.mark_processed("evt_old", "payment_intent.succeeded")
        recent_ledger = IdempotencyLedger(db_session, clock=lambda: now - timedelta(hours=1))
        recent_ledger.mark_processed("evt_recent", "payment_intent.succeeded")

        deleted = IdempotencyLedger(db_session).cleanup(max_age_hours=24, now=now)

        assert deleted == 1
        assert recent_ledger.has_processed("evt_old") is False
        assert recent_ledger.has_processed("evt_recent") is True

    def test_release_allows_new_claim(self, db_session):
        ledger = IdempotencyLedger(db_session)
        ledger.mark_processed("evt_1", "payment_intent.succeeded", success=False, error="boom")

        assert ledger.release("evt_1") is True
        assert ledger.release("evt_1") is False
        assert ledger.claim("evt_1", "payment_intent.succeeded") is True


@pytest.mark.critical
class TestWebhookAuditStore:
    """Test the webhook_events audit trail"""

    def test_record_received(self, db_session):
        audit = WebhookAuditStore(db_session)

        assert audit.record_received("evt_1", "payment_intent.created", {"id": "evt_1"}, "pi_1") is True

        stored = audit.get("evt_1")
        assert stored.type == "payment_intent.created"
        assert stored.payment_intent_id == "pi_1"
        assert stored.data == {"id": "evt_1"}
        assert stored.processed is False

    def test_duplicate_record_is_swallowed(self, db_session):
        audit = WebhookAuditStore(db_session)
        audit.record_received("evt_1", "payment_intent.created", {"id": "evt_1"})

        assert audit.record_received("evt_1", "payment_intent.created", {"id": "evt_1"}) is False
        # Session is still usable after the rollback
        assert audit.get("evt_1") is not None

    def test_mark_processed_with_error(self, db_session):
        audit = WebhookAuditStore(db_session)
        audit.record_received("evt_1", "customer.updated", {"id": "evt_1"})

        assert audit.mark_processed("evt_1", processing_error="boom") is True

        stored = audit.get("evt_1")
        assert stored.processed is True
        assert stored.processing_error == "boom"
        assert stored.processed_at is not None

    def test_mark_processed_without_record(self, db_session):
        assert WebhookAuditStore(db_session).mark_processed("evt_missing") is False

    def test_list_unprocessed_oldest_first(self, db_session):
        base = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
        WebhookAuditStore(db_session, clock=lambda: base + timedelta(minutes=5)).record_received(
            "evt_newer", "customer.updated", {}
        )
        WebhookAuditStore(db_session, clock=lambda: base).record_received("evt_older", "customer.updated", {})
        audit = WebhookAuditStore(db_session)
        audit.record_received("evt_done", "customer.updated", {})
        audit.mark_processed("evt_done")

        assert [event.id for event in audit.list_unprocessed()] == ["evt_older", "evt_newer"]
        recent_cutoff = base + timedelta(minutes=1)
        assert [event.id for event in audit.list_unprocessed(received_before=recent_cutoff)] == ["evt_older"]


@pytest.mark.critical
class TestPaymentIntentMirror:
    """Test payment intent mapping and upserts"""

    def test_map_sets_optional_fields_only_when_present(self, make_payment_intent):
        record = payment_intents.map_stripe_payment_intent(make_payment_intent(
            "pi_1", customer={"id": "cus_1", "object": "customer"}, payment_method="pm_1",
            metadata=None
        ))

        assert record["customer_id"] == "cus_1"
        assert record["payment_method"] == "pm_1"
        assert record["client_secret"] == "pi_1_secret_abc"
        assert "description" not in record
        assert "metadata_" not in record

    def test_upsert_creates_then_updates(self, db_session, make_payment_intent):
        payment_intents.upsert_from_stripe(make_payment_intent("pi_1", status="requires_payment_method",
                                                               description="Season pass"), db_session)
        payment_intents.upsert_from_stripe(make_payment_intent("pi_1", status="succeeded"), db_session)

        db_session.expire_all()
        stored = payment_intents.get_payment_intent("pi_1", db_session)
        assert stored.status == "succeeded"
        # Absent from the second payload, so left alone
        assert stored.description == "Season pass"
        assert db_session.query(PaymentIntent).count() == 1

    def test_metadata_round_trips(self, db_session, make_payment_intent):
        payment_intents.upsert_from_stripe(
            make_payment_intent("pi_1", metadata={"save_payment_method": "true"}), db_session
        )

        stored = payment_intents.get_payment_intent("pi_1", db_session)
        assert stored.metadata_ == {"save_payment_method": "true"}
        assert payment_intents.payment_intent_to_dict(stored)["metadata"] == {"save_payment_method": "true"}

    def test_cleared_metadata_overwrites_mirror(self, db_session, make_payment_intent):
        payment_intents.upsert_from_stripe(
            make_payment_intent("pi_1", status="requires_payment_method", metadata={"order": "1"}), db_session
        )
        payment_intents.upsert_from_stripe(make_payment_intent("pi_1", status="succeeded", metadata={}), db_session)

        db_session.expire_all()
        assert payment_intents.get_payment_intent("pi_1", db_session).metadata_ == {}

    def test_list_accessors(self, db_session, make_payment_intent):
        payment_intents.upsert_from_stripe(make_payment_intent("pi_1", status="succeeded", customer="cus_1"), db_session)
        payment_intents.upsert_from_stripe(make_payment_intent("pi_2", status="canceled", customer="cus_1"), db_session)
        payment_intents.upsert_from_stripe(make_payment_intent("pi_3", status="succeeded", customer="cus_2"), db_session)

        assert {pi.id for pi in payment_intents.list_by_customer("cus_1", db_session)} == {"pi_1", "pi_2"}
        assert {pi.id for pi in payment_intents.list_by_status("succeeded", db_session)} == {"pi_1", "pi_3"}
        assert len(payment_intents.list_all(db_session)) == 3
        assert len(payment_intents.list_all(db_session, limit=2)) == 2


@pytest.mark.critical
class TestCustomerBillingInfo:
    """Insert-if-absent vs authoritative update"""

    def _customer(self, **overrides):
        customer = {
            "id": "cus_1",
            "object": "customer",
            "email": "old@example.com",
            "name": "Old Name",
            "address": {
                "line1": "1 Main St",
                "line2": None,
                "city": "Springfield",
                "state": "IL",
                "postal_code": "62701",
                "country": "US",
            },
        }
        customer.update(overrides)
        return customer

    def test_ensure_exists_inserts_when_absent(self, db_session):
        assert customer_billing_info.ensure_exists_from_stripe(self._customer(), db_session) is True

        stored = customer_billing_info.get_billing_info("cus_1", db_session)
        assert stored.email == "old@example.com"
        assert stored.city == "Springfield"
        assert stored.address_line_2 is None

    def test_ensure_exists_never_overwrites(self, db_session):
        customer_billing_info.ensure_exists_from_stripe(self._customer(), db_session)

        inserted = customer_billing_info.ensure_exists_from_stripe(
            self._customer(email="new@example.com", name="New Name"), db_session
        )

        assert inserted is False
        db_session.expire_all()
        stored = customer_billing_info.get_billing_info("cus_1", db_session)
        assert stored.email == "old@example.com"
        assert stored.name == "Old Name"

    def test_update_from_stripe_overwrites_every_field(self, db_session):
        customer_billing_info.ensure_exists_from_stripe(self._customer(), db_session)

        customer_billing_info.update_from_stripe(
            self._customer(email="new@example.com", name="New Name", address=None), db_session
        )

        db_session.expire_all()
        stored = customer_billing_info.get_billing_info("cus_1", db_session)
        assert stored.email == "new@example.com"
        assert stored.name == "New Name"
        assert stored.address_line_1 is None
        assert stored.city is None
        assert stored.country is None
        assert db_session.query(CustomerBillingInfo).count() == 1


@pytest.mark.critical
class TestCustomerPaymentMethods:
    """Test payment method mapping and persistence"""

    def test_map_card(self):
        record = customer_payment_methods.map_stripe_payment_method({
            "id": "pm_1",
            "type": "card",
            "customer": "cus_1",
            "card": {"brand": "visa", "last4": "4242", "exp_month": 12, "exp_year": 2030, "funding": "credit"},
        })

        assert record["customer_id"] == "cus_1"
        assert record["card_brand"] == "visa"
        assert record["card_last4"] == "4242"
        assert record["card_exp_year"] == 2030
        assert record["is_default"] is False

    def test_map_us_bank_account(self):
        record = customer_payment_methods.map_stripe_payment_method({
            "id": "pm_1",
            "type": "us_bank_account",
            "us_bank_account": {"bank_name": "STRIPE TEST BANK", "last4": "6789"},
        }, customer_id="cus_1")

        assert record["bank_name"] == "STRIPE TEST BANK"
        assert record["bank_last4"] == "6789"
        assert "card_brand" not in record

    def test_map_sepa_debit(self):
        record = customer_payment_methods.map_stripe_payment_method({
            "id": "pm_1",
            "type": "sepa_debit",
            "customer": {"id": "cus_1"},
            "sepa_debit": {"last4": "3000", "mandate": "mandate_1"},
        })

        assert record["customer_id"] == "cus_1"
        assert record["bank_last4"] == "3000"
        assert record["mandate_id"] == "mandate_1"

    def test_map_without_customer_raises(self):
        with pytest.raises(PaymentMethodMappingError):
            customer_payment_methods.map_stripe_payment_method({"id": "pm_1", "type": "card", "customer": None})

    def test_explicit_customer_takes_precedence(self):
        record = customer_payment_methods.map_stripe_payment_method(
            {"id": "pm_1", "type": "card", "customer": "cus_other"}, customer_id="cus_1"
        )
        assert record["customer_id"] == "cus_1"

    def test_upsert_then_remove(self, db_session):
        pm = {"id": "pm_1", "type": "card", "customer": "cus_1", "card": {"brand": "visa", "last4": "4242"}}
        customer_payment_methods.upsert_from_stripe_payment_method(pm, db_session)
        pm["card"] = {"brand": "visa", "last4": "1111"}
        customer_payment_methods.upsert_from_stripe_payment_method(pm, db_session)

        methods = customer_payment_methods.list_by_customer("cus_1", db_session)
        assert len(methods) == 1
        assert methods[0].card_last4 == "1111"

        assert customer_payment_methods.remove("pm_1", db_session) == 1
        assert db_session.query(CustomerPaymentMethod).count() == 0


@pytest.mark.critical
class TestZeusSubscriptions:
    """Test subscription status and notification bookkeeping"""

    def test_update_status_sets_paid_at(self, db_session, zeus_subscription):
        paid_at = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)

        zeus_subscriptions.update_status(123, "succeeded", db_session, paid_at=paid_at)

        db_session.expire_all()
        stored = zeus_subscriptions.get_by_subscription_id(123, db_session)
        assert stored.status == "succeeded"
        assert stored.paid_at is not None

    def test_update_status_rejects_unknown_status(self, db_session, zeus_subscription):
        with pytest.raises(ValueError):
            zeus_subscriptions.update_status(123, "refunded", db_session)

    def test_mark_notified_increments_attempts(self, db_session, zeus_subscription):
        zeus_subscriptions.mark_notified(123, db_session)
        zeus_subscriptions.mark_notified(123, db_session)

        db_session.expire_all()
        stored = zeus_subscriptions.get_by_payment_intent("pi_1", db_session)
        assert stored.zeus_notification_attempts == 2
        assert stored.zeus_notified_at is not None
