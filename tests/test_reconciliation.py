import copy
from datetime import datetime, timezone

import pytest

from apps.ledger.exceptions import RoomNotFound
from apps.payments.reconciliation import (
    CASH, PAYMENT_REQUEST_MEMORY, UPI, apply_payment, classify_method,
)
from apps.rooms.lifecycle import MANAGER, apply_room_edit
from tests.factories import CHECK_IN, make_document

NOW = datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)


class TestClassifyMethod:
    @pytest.mark.parametrize('method', ['upi', 'UPI', ' Upi '])
    def test_upi(self, method):
        assert classify_method(method) == UPI

    @pytest.mark.parametrize('method', ['cash', 'CASH', 'card', '', None, 'upi-lite'])
    def test_everything_else_is_cash(self, method):
        assert classify_method(method) == CASH


class TestApplyPayment:
    def test_upi_then_cash(self):
        document = make_document()
        apply_payment(document, 500, 'UPI', now=NOW)
        apply_payment(document, 200, 'cash', now=NOW)

        payments = document['payments']
        assert payments['upi'] == 500
        assert payments['cash'] == 200
        assert payments['dayRevenue'] == 700
        assert payments['monthRevenue'] == 700
        assert payments['lastUpdated'] == NOW.isoformat()

    def test_bucket_total_grows_by_exact_amount(self):
        document = make_document()
        for amount, method in [(100.5, 'upi'), ('49.5', 'cash'), (0.1, 'card'), (0.2, 'card')]:
            before = document['payments']['cash'] + document['payments']['upi']
            outcome = apply_payment(document, amount, method, now=NOW)
            after = document['payments']['cash'] + document['payments']['upi']
            assert round(after - before, 2) == outcome.amount
        assert document['payments']['cash'] == 49.8
        assert document['payments']['upi'] == 100.5

    @pytest.mark.parametrize('delta', [0, -50, '', 'abc', None])
    def test_non_positive_is_a_no_op(self, delta):
        document = make_document()
        before = copy.deepcopy(document)
        outcome = apply_payment(document, delta, 'cash', now=NOW)
        assert outcome.applied is False
        assert document == before

    def test_room_payment_updates_room(self):
        document = make_document()
        apply_room_edit(document, 5, {**CHECK_IN, 'paidAmount': 1000}, MANAGER)

        outcome = apply_payment(document, 500, 'upi', room_id=5, now=NOW)

        room = document['rooms'][4]
        assert outcome.room is room
        assert room['paidAmount'] == 1500
        assert room['dueAmount'] == 1500
        assert room['paymentMode'] == 'upi'
        assert document['payments']['upi'] == 500

    def test_room_id_as_string(self):
        document = make_document()
        apply_room_edit(document, 5, CHECK_IN, MANAGER)
        outcome = apply_payment(document, 100, 'cash', room_id='5', now=NOW)
        assert outcome.room['paidAmount'] == 100

    def test_payment_against_free_room_only_counts_in_aggregate(self):
        document = make_document()
        outcome = apply_payment(document, 300, 'cash', room_id=2, now=NOW)
        assert outcome.applied is True
        assert outcome.room is None
        assert document['rooms'][1]['paidAmount'] == 0
        assert document['payments']['cash'] == 300

    def test_unknown_room_raises_without_mutation(self):
        document = make_document()
        before = copy.deepcopy(document)
        with pytest.raises(RoomNotFound):
            apply_payment(document, 100, 'cash', room_id=77, now=NOW)
        assert document == before

    def test_duplicate_request_id_applies_once(self):
        document = make_document()
        first = apply_payment(document, 250, 'upi', request_id='req-1', now=NOW)
        second = apply_payment(document, 250, 'upi', request_id='req-1', now=NOW)
        assert first.applied is True
        assert second.applied is False
        assert document['payments']['upi'] == 250

    def test_request_memory_is_bounded(self):
        document = make_document()
        for i in range(PAYMENT_REQUEST_MEMORY + 5):
            apply_payment(document, 1, 'cash', request_id=f'req-{i}', now=NOW)
        seen = document['paymentRequests']
        assert len(seen) == PAYMENT_REQUEST_MEMORY
        assert seen[-1] == f'req-{PAYMENT_REQUEST_MEMORY + 4}'
        assert 'req-0' not in seen
