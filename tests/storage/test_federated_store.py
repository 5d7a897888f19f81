"""
Test Federated Record Store
===========================

Fan-out, merge, routing and write semantics of the facade.
"""

import pytest

from fedstore.models import ContactSubmission, EmailSignup, EventRegistration, RecordFilter, RecordType
from fedstore.storage.adapters import PROFILES, StoreAdapter
from fedstore.storage.errors import AdapterUnavailable, RecordNotFound, UnknownStoreTag
from fedstore.storage.federated import FederatedRecordStore
from fedstore.storage.identity import IdentityRouter
from fedstore.storage.merge import MergeEngine


@pytest.fixture
def two_stores(make_client):
    """Store A (primary) and store B (secondary), both holding contact forms."""
    store_a = make_client("primary")
    store_b = make_client("secondary")
    store_a.seed("contact_forms", "docA", {
        "email": "a@x.com", "firstName": "Ada", "source": "AIM", "company": "Acme",
        "created_at": "2025-03-01T12:00:00.000Z",
    })
    store_b.seed("contact_submissions", "doc123", {
        "email": "a@x.com", "firstName": "Ada", "company": "",
        "createdAt": "2025-02-01T12:00:00.000Z",
    })
    store_b.seed("contact_submissions", "doc456", {
        "email": "b@x.com", "firstName": "Bob",
        "createdAt": "2025-03-15T08:00:00.000Z",
    })
    return store_a, store_b


@pytest.fixture
def contact_store(two_stores):
    store_a, store_b = two_stores
    adapters = [
        StoreAdapter("primary", store_a, "contact_forms", PROFILES["default_contact"]),
        StoreAdapter("secondary", store_b, "contact_submissions", PROFILES["aimsatx_contact"]),
    ]
    return FederatedRecordStore(
        RecordType.CONTACT_FORMS,
        adapters=adapters,
        router=IdentityRouter("primary", ["primary", "secondary"]),
        merge_engine=MergeEngine(["primary", "secondary"]),
        primary_tag="primary",
        adapter_timeout=0.5,
    )


class TestListRecords:
    """Tests for list_records()."""

    @pytest.mark.asyncio
    async def test_duplicate_collapses_to_primary_copy(self, contact_store):
        records = await contact_store.list_records()

        matching = [r for r in records if r.email == "a@x.com"]
        assert len(matching) == 1
        assert matching[0].company == "Acme"
        assert matching[0].id == "docA"

    @pytest.mark.asyncio
    async def test_secondary_ids_are_composite(self, contact_store):
        records = await contact_store.list_records()
        assert {r.id for r in records} == {"docA", "secondary:doc456"}

    @pytest.mark.asyncio
    async def test_newest_first_by_default(self, contact_store):
        records = await contact_store.list_records()
        assert [r.id for r in records] == ["secondary:doc456", "docA"]

    @pytest.mark.asyncio
    async def test_date_filter_applies_to_store_without_pushdown(self, contact_store, two_stores):
        _, store_b = two_stores
        records = await contact_store.list_records(
            RecordFilter(start_date="2025-03-10", end_date="2025-03-31")
        )

        assert [r.id for r in records] == ["secondary:doc456"]
        # store B received no native date clause
        assert store_b.calls[-1][2] == []

    @pytest.mark.asyncio
    async def test_timed_out_store_yields_partial_result(self, contact_store, two_stores):
        _, store_b = two_stores
        store_b.delay = 2.0

        records = await contact_store.list_records()

        assert [r.id for r in records] == ["docA"]

    @pytest.mark.asyncio
    async def test_unavailable_store_yields_partial_result(self, contact_store, two_stores):
        store_a, _ = two_stores
        store_a.fail = True

        records = await contact_store.list_records()

        assert {r.id for r in records} == {"secondary:doc123", "secondary:doc456"}

    @pytest.mark.asyncio
    async def test_all_stores_failing_raises(self, contact_store, two_stores):
        for client in two_stores:
            client.fail = True
        with pytest.raises(AdapterUnavailable):
            await contact_store.list_records()

    @pytest.mark.asyncio
    async def test_unknown_filter_field_raises(self, contact_store):
        with pytest.raises(ValueError, match="Unknown filter field"):
            await contact_store.list_records(RecordFilter(equals={"shoe_size": 44}))

    @pytest.mark.asyncio
    async def test_unknown_sort_field_raises(self, contact_store):
        with pytest.raises(ValueError, match="Unknown sort field"):
            await contact_store.list_records(RecordFilter(sort_by="shoe_size"))


class TestReadHelpers:
    """Tests for counts, groups, single reads and export."""

    @pytest.mark.asyncio
    async def test_get_counts_after_dedup(self, contact_store):
        assert await contact_store.get_counts() == {"AIM": 2}

    @pytest.mark.asyncio
    async def test_list_groups(self, contact_store):
        assert await contact_store.list_groups() == ["AIM"]

    @pytest.mark.asyncio
    async def test_get_record_routes_to_origin(self, contact_store, two_stores):
        store_a, _ = two_stores
        record = await contact_store.get_record("secondary:doc456")

        assert record.id == "secondary:doc456"
        assert record.first_name == "Bob"
        assert store_a.calls == []

    @pytest.mark.asyncio
    async def test_export_csv(self, contact_store):
        csv_text = await contact_store.export_csv()
        lines = csv_text.splitlines()

        assert lines[0] == "First Name,Last Name,Company,Email,Phone,Message,Source,Date"
        assert len(lines) == 3
        assert lines[2] == "Ada,,Acme,a@x.com,,,AIM,2025-03-01"


class TestWrites:
    """Tests for routed writes."""

    @pytest.mark.asyncio
    async def test_delete_touches_only_owning_store(self, contact_store, two_stores):
        store_a, store_b = two_stores

        assert await contact_store.delete_record("secondary:doc123") is True

        assert store_b.mutations() == [("delete", "contact_submissions", "doc123")]
        assert store_a.calls == []

    @pytest.mark.asyncio
    async def test_deleting_winner_uncovers_other_copy(self, contact_store):
        await contact_store.delete_record("docA")

        records = await contact_store.list_records(RecordFilter(equals={"email": "a@x.com"}))

        assert [r.id for r in records] == ["secondary:doc123"]

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, contact_store):
        with pytest.raises(RecordNotFound):
            await contact_store.delete_record("secondary:missing")

    @pytest.mark.asyncio
    async def test_update_routes_and_normalizes_email(self, contact_store, two_stores):
        store_a, store_b = two_stores

        await contact_store.update_record("secondary:doc456", {"email": "  BOB@X.com "})

        assert store_b.collections["contact_submissions"]["doc456"]["email"] == "bob@x.com"
        assert store_a.mutations() == []

    @pytest.mark.asyncio
    async def test_update_rejects_non_updatable_field(self, contact_store, two_stores):
        with pytest.raises(ValueError, match="not updatable"):
            await contact_store.update_record("docA", {"created_at": "2020-01-01"})
        assert all(client.mutations() == [] for client in two_stores)

    @pytest.mark.asyncio
    async def test_update_requires_fields(self, contact_store):
        with pytest.raises(ValueError):
            await contact_store.update_record("docA", {})

    @pytest.mark.asyncio
    async def test_unconfigured_reserved_tag_raises(self, make_client):
        client = make_client("primary")
        store = FederatedRecordStore(
            RecordType.CONTACT_FORMS,
            adapters=[StoreAdapter("primary", client, "contact_forms", PROFILES["default_contact"])],
            router=IdentityRouter("primary", ["primary"], reserved_tags=["secondary"]),
            merge_engine=MergeEngine(["primary", "secondary"]),
            primary_tag="primary",
        )
        with pytest.raises(UnknownStoreTag):
            await store.delete_record("secondary:doc123")
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, contact_store, two_stores):
        _, store_b = two_stores
        store_b.fail = True
        with pytest.raises(AdapterUnavailable):
            await contact_store.delete_record("secondary:doc123")

    @pytest.mark.asyncio
    async def test_add_record_goes_to_primary(self, contact_store, two_stores):
        store_a, store_b = two_stores

        record_id = await contact_store.add_record(
            ContactSubmission(email=" New@X.com", first_name="Nia", source="AIM")
        )

        assert ":" not in record_id
        stored = store_a.collections["contact_forms"][record_id]
        assert stored["email"] == "new@x.com"
        assert stored["created_at"].endswith("Z")
        assert store_b.mutations() == []

    @pytest.mark.asyncio
    async def test_add_record_wrong_type_raises(self, contact_store):
        with pytest.raises(TypeError):
            await contact_store.add_record(EmailSignup(email="a@x.com"))


class TestIdempotentSignup:
    """Tests for idempotent email signup creation."""

    @pytest.fixture
    def signup_store(self, make_client):
        client = make_client("default")
        client.seed("email_signups", "s1", {"email": "a@x.com", "source": "footer"})
        return FederatedRecordStore(
            RecordType.EMAIL_SIGNUPS,
            adapters=[StoreAdapter("default", client, "email_signups", PROFILES["default_signup"])],
            router=IdentityRouter("default", ["default"]),
            merge_engine=MergeEngine(["default"]),
            primary_tag="default",
        )

    @pytest.mark.asyncio
    async def test_existing_signup_returns_existing_id(self, signup_store):
        client = signup_store.primary.client

        record_id = await signup_store.add_record(EmailSignup(email="A@X.com", source="footer"))

        assert record_id == "s1"
        assert client.mutations() == []

    @pytest.mark.asyncio
    async def test_new_signup_is_written(self, signup_store):
        record_id = await signup_store.add_record(EmailSignup(email="b@x.com", source="footer"))

        assert record_id != "s1"
        assert len(signup_store.primary.client.collections["email_signups"]) == 2


class TestConstruction:
    """Tests for facade validation."""

    def test_primary_adapter_required(self, make_client):
        adapter = StoreAdapter("other", make_client("other"), "contact_forms", PROFILES["default_contact"])
        with pytest.raises(ValueError, match="primary"):
            FederatedRecordStore(
                RecordType.CONTACT_FORMS,
                adapters=[adapter],
                router=IdentityRouter("other", ["other"]),
                merge_engine=MergeEngine(["other"]),
                primary_tag="default",
            )

    def test_adapter_record_type_must_match(self, make_client):
        adapter = StoreAdapter("default", make_client("default"), "email_signups", PROFILES["default_signup"])
        with pytest.raises(ValueError, match="expected contact_forms"):
            FederatedRecordStore(
                RecordType.CONTACT_FORMS,
                adapters=[adapter],
                router=IdentityRouter("default", ["default"]),
                merge_engine=MergeEngine(["default"]),
                primary_tag="default",
            )


class TestRegistrationFederation:
    """End-to-end registrations over the bundled layout."""

    @pytest.mark.asyncio
    async def test_cross_store_registrations(self, seeded_federation):
        records = await seeded_federation.registrations.list_records()

        by_email = {r.email.strip().lower(): r for r in records}
        assert by_email["a@x.com"].id == "reg1"
        assert by_email["a@x.com"].company == "Acme"
        assert by_email["linus@kernel.org"].id.startswith("techday:")
        assert by_email["alan@bletchley.uk"].id == "dc:dc1"
        assert len(records) == 4

    @pytest.mark.asyncio
    async def test_scope_filter_skips_other_single_event_stores(self, seeded_federation, fake_clients):
        records = await seeded_federation.registrations.list_records(
            RecordFilter(equals={"event": "AIMSummit2025"})
        )
        assert [r.id for r in records] == ["reg2"]
        assert fake_clients["techday"].calls == []

    @pytest.mark.asyncio
    async def test_counts_by_event_name(self, seeded_federation):
        counts = await seeded_federation.registrations.get_counts()
        assert counts == {
            "AIM Summit": 1,
            "More Human Than Human": 1,
            "SA Tech Day 2026": 2,
        }

    @pytest.mark.asyncio
    async def test_check_in_routes_to_techday(self, seeded_federation, fake_clients):
        assert await seeded_federation.check_in("techday:td1") is True

        stored = fake_clients["techday"].collections["registrations"]["td1"]
        assert stored["checkedIn"] is True
        assert stored["checkedInAt"].endswith("Z")
        assert fake_clients["default"].mutations() == []

    @pytest.mark.asyncio
    async def test_undo_check_in(self, seeded_federation, fake_clients):
        await seeded_federation.check_in("techday:td2", checked_in=False)

        stored = fake_clients["techday"].collections["registrations"]["td2"]
        assert stored["checkedIn"] is False
        assert stored["checkedInAt"] == ""

    @pytest.mark.asyncio
    async def test_contact_id_with_registration_only_tag_raises(self, seeded_federation):
        with pytest.raises(UnknownStoreTag):
            await seeded_federation.contact_forms.delete_record("techday:td1")

    @pytest.mark.asyncio
    async def test_add_registration_fills_time_field(self, seeded_federation, fake_clients):
        record_id = await seeded_federation.registrations.add_record(
            EventRegistration(email="walkup@x.com", event="SATechDay2026", event_name="SA Tech Day 2026")
        )

        stored = fake_clients["default"].collections["event_registrations"][record_id]
        assert stored["registeredAt"].endswith("Z")
        assert stored["email"] == "walkup@x.com"


class TestFilterValidation:
    """Tests for caller input errors."""

    @pytest.mark.asyncio
    async def test_invalid_date_bound_is_value_error(self, contact_store, two_stores):
        with pytest.raises(ValueError, match="Invalid date bound"):
            await contact_store.list_records(RecordFilter(start_date="yesterday"))
        assert all(client.calls == [] for client in two_stores)


class TestMixedEncodings:
    """Records whose native timestamps use different encodings."""

    @pytest.mark.asyncio
    async def test_date_range_matches_every_encoding(self, federation, fake_clients):
        """Date-only and offset timestamps both fall on 2025-03-01 once normalized."""
        default = fake_clients["default"]
        default.seed("contact_forms", "c1", {
            "email": "a@x.com", "source": "AIM", "created_at": "2025-03-01",
        })
        default.seed("contact_forms", "c2", {
            "email": "b@x.com", "source": "AIM", "created_at": "2025-03-02T01:00:00+05:00",
        })
        default.seed("contact_forms", "c3", {
            "email": "c@x.com", "source": "AIM", "created_at": {"_seconds": 1740700800},
        })

        records = await federation.contact_forms.list_records(
            RecordFilter(start_date="2025-03-01", end_date="2025-03-01")
        )

        assert sorted(r.id for r in records) == ["c1", "c2"]
        assert all(clause[1] == "==" for call in default.calls for clause in call[2])

    @pytest.mark.asyncio
    async def test_out_of_range_timestamp_keeps_store_visible(self, federation, fake_clients):
        """One bad epoch in a store must not hide that store's other records."""
        fake_clients["default"].seed("email_signups", "good", {
            "email": "good@x.com", "source": "footer", "created_at": "2025-03-01T00:00:00Z",
        })
        fake_clients["default"].seed("email_signups", "bad", {
            "email": "bad@x.com", "source": "footer", "created_at": 10**20,
        })
        fake_clients["aimsatx"].seed("email_signups", "aim", {
            "email": "aim@x.com", "created_at": {"_seconds": 1740787200},
        })

        records = await federation.email_signups.list_records()

        by_email = {r.email: r for r in records}
        assert set(by_email) == {"good@x.com", "bad@x.com", "aim@x.com"}
        assert by_email["bad@x.com"].created_at == ""
        assert by_email["aim@x.com"].id == "aimsatx:aim"
