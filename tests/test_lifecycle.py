import copy

import pytest

from apps.ledger.coercion import to_number
from apps.ledger.exceptions import RoomNotFound
from apps.rooms.lifecycle import (
    AVAILABLE, MANAGER, MAINTENANCE, OCCUPIED, OWNER, apply_changes, apply_room_edit, blank_room,
    recompute_room, stay_nights, writable_changes,
)
from tests.factories import CHECK_IN, make_document


class TestStayNights:
    def test_two_full_days(self):
        assert stay_nights('2024-01-01T10:00', '2024-01-03T10:00') == 2

    def test_partial_day_rounds_up(self):
        assert stay_nights('2024-01-01T10:00', '2024-01-02T11:00') == 2

    def test_short_stay_bills_one_night(self):
        assert stay_nights('2024-01-01T10:00', '2024-01-01T18:00') == 1

    @pytest.mark.parametrize('checkin,checkout', [
        ('', '2024-01-03T10:00'),
        ('2024-01-03T10:00', '2024-01-01T10:00'),
        ('not a date', '2024-01-03T10:00'),
    ])
    def test_unpriceable(self, checkin, checkout):
        assert stay_nights(checkin, checkout) is None


class TestRoomEdit:
    def test_room_five_totals(self):
        document = make_document()
        result = apply_room_edit(document, 5, {**CHECK_IN, 'paidAmount': '1000'}, MANAGER)

        room = document['rooms'][4]
        assert room is result.room
        assert room['totalAmount'] == 3000
        assert room['paidAmount'] == 1000
        assert room['dueAmount'] == 2000
        assert result.started_stay is True
        assert result.payment.delta == 1000

    def test_client_supplied_totals_are_recomputed(self):
        document = make_document()
        apply_room_edit(document, 5, {**CHECK_IN, 'totalAmount': 1, 'dueAmount': 99999}, OWNER)
        room = document['rooms'][4]
        assert room['totalAmount'] == 3000
        assert room['dueAmount'] == 3000

    def test_overpayment_never_goes_negative(self):
        document = make_document()
        apply_room_edit(document, 5, {**CHECK_IN, 'paidAmount': 5000}, MANAGER)
        assert document['rooms'][4]['dueAmount'] == 0

    def test_release_clears_guest_and_money(self):
        document = make_document()
        apply_room_edit(document, 7, {**CHECK_IN, 'paidAmount': 500, 'paymentMode': 'upi'}, MANAGER)

        # Stale guest fields sent alongside the release are discarded
        result = apply_room_edit(document, 7, {**CHECK_IN, 'status': AVAILABLE, 'paidAmount': 500}, MANAGER)

        room = result.room
        assert result.released is True
        assert result.payment is None
        for field in ('customerName', 'aadharNumber', 'phoneNumber', 'checkinTime', 'checkoutTime', 'paymentMode'):
            assert room[field] == ''
        assert (room['totalAmount'], room['paidAmount'], room['dueAmount']) == (0, 0, 0)

    def test_maintenance_also_clears(self):
        document = make_document()
        apply_room_edit(document, 2, CHECK_IN, OWNER)
        room = apply_room_edit(document, 2, {'status': MAINTENANCE}, OWNER).room
        assert room['status'] == MAINTENANCE
        assert room['customerName'] == ''

    def test_unknown_fields_ignored(self):
        document = make_document()
        room = apply_room_edit(document, 3, {'status': OCCUPIED, 'minibar': 'empty', 'id': 99}, OWNER).room
        assert 'minibar' not in room
        assert room['id'] == 3

    def test_unknown_status_keeps_previous(self):
        document = make_document()
        apply_room_edit(document, 3, CHECK_IN, OWNER)
        room = apply_room_edit(document, 3, {'status': 'cleaning'}, OWNER).room
        assert room['status'] == OCCUPIED
        assert room['customerName'] == 'A'

    def test_numeric_input_is_tolerated(self):
        document = make_document()
        room = apply_room_edit(
            document, 4, {**CHECK_IN, 'paidAmount': 'abc', 'numberOfPersons': '', 'price': ' 2000 '}, OWNER
        ).room
        assert room['paidAmount'] == 0
        assert room['numberOfPersons'] == 1
        assert room['price'] == 2000
        assert room['totalAmount'] == 4000

    def test_manager_cannot_change_rate_or_label(self):
        document = make_document()
        room = apply_room_edit(
            document, 5, {**CHECK_IN, 'price': 9999, 'label': 'Suite'}, MANAGER
        ).room
        assert room['price'] == 1500
        assert room['label'] == 'Room 5'
        assert room['totalAmount'] == 3000

    def test_owner_can_change_rate_and_label(self):
        document = make_document()
        room = apply_room_edit(document, 5, {'price': 2500, 'label': 'Suite'}, OWNER).room
        assert room['price'] == 2500
        assert room['label'] == 'Suite'

    def test_unknown_room_leaves_document_untouched(self):
        document = make_document()
        before = copy.deepcopy(document)
        with pytest.raises(RoomNotFound):
            apply_room_edit(document, 404, CHECK_IN, OWNER)
        assert document == before

    def test_new_identity_while_occupied_starts_stay(self):
        document = make_document()
        apply_room_edit(document, 6, CHECK_IN, MANAGER)
        assert apply_room_edit(document, 6, {'phoneNumber': '123'}, MANAGER).started_stay is False
        assert apply_room_edit(document, 6, {'aadharNumber': 'Y999'}, MANAGER).started_stay is True

    def test_lower_paid_amount_is_not_a_payment(self):
        document = make_document()
        apply_room_edit(document, 6, {**CHECK_IN, 'paidAmount': 800}, MANAGER)
        result = apply_room_edit(document, 6, {'paidAmount': 300}, MANAGER)
        assert result.payment is None
        assert result.room['dueAmount'] == 2700


class TestHelpers:
    def test_writable_changes_splits_by_role(self):
        accepted, dropped = writable_changes({'price': 1, 'status': OCCUPIED, 'bogus': 2}, MANAGER)
        assert accepted == {'status': OCCUPIED}
        assert sorted(dropped) == ['bogus', 'price']

    def test_apply_changes_returns_new_room(self):
        room = blank_room(1, 1500)
        updated = apply_changes(room, {'status': OCCUPIED})
        assert room['status'] == AVAILABLE
        assert updated['status'] == OCCUPIED

    def test_due_never_exceeds_outstanding_total(self):
        room = {**blank_room(1, 1750.5), **CHECK_IN, 'paidAmount': 1000.25}
        recompute_room(room)
        assert room['dueAmount'] == max(0, room['totalAmount'] - room['paidAmount'])


class TestOversizedInput:
    @pytest.mark.parametrize('value', ['1e27', '-1e30', 10 ** 40, '1e15'])
    def test_to_number_falls_back_to_default(self, value):
        assert to_number(value) == 0
        assert to_number(value, default=1) == 1

    def test_largest_accepted_amount(self):
        assert to_number('250000.75') == 250000.75
        assert to_number('999999999999999') == 999999999999999

    def test_room_edit_with_huge_amounts(self):
        document = make_document()
        room = apply_room_edit(document, 5, {**CHECK_IN, 'paidAmount': '1e27', 'price': '1e27'}, OWNER).room
        assert room['paidAmount'] == 0
        assert room['price'] == 0
        assert room['totalAmount'] == 0
        assert room['dueAmount'] == 0
