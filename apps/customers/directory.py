# apps/customers/directory.py - guest directory keyed by identity-document number
import logging
import uuid

from apps.ledger.coercion import to_number

logger = logging.getLogger(__name__)


def _text(value):
    return str(value).strip() if value is not None else ''


def stay_from_room(room):
    return {
        'roomId': room.get('id'),
        'checkinTime': room.get('checkinTime', ''),
        'checkoutTime': room.get('checkoutTime', ''),
        'totalAmount': to_number(room.get('totalAmount')),
        'paidAmount': to_number(room.get('paidAmount')),
        'dueAmount': to_number(room.get('dueAmount')),
    }


def _stay_from_fragment(fragment):
    stay = fragment.get('stay')
    if not isinstance(stay, dict):
        stay = fragment
    return {
        'roomId': stay.get('roomId'),
        'checkinTime': _text(stay.get('checkinTime')),
        'checkoutTime': _text(stay.get('checkoutTime')),
        'totalAmount': to_number(stay.get('totalAmount')),
        'paidAmount': to_number(stay.get('paidAmount')),
        'dueAmount': to_number(stay.get('dueAmount')),
    }


def find_customer(customers, aadhar):
    for customer in customers:
        if customer.get('aadhar') == aadhar:
            return customer
    return None


def merge_customer(document, fragment):
    """
    Upsert a guest by identity number and append exactly one stay entry.

    Returns the stored record, or None for anonymous walk-ins.
    """
    aadhar = _text(fragment.get('aadhar') or fragment.get('aadharNumber'))
    if not aadhar:
        return None

    name = _text(fragment.get('name') or fragment.get('customerName'))
    phone = _text(fragment.get('phoneNumber'))

    customers = document.setdefault('customers', [])
    customer = find_customer(customers, aadhar)
    if customer is None:
        customer = {'id': uuid.uuid4().hex, 'aadhar': aadhar, 'name': name, 'phoneNumber': phone, 'history': []}
        customers.append(customer)
        logger.info(f"New customer {aadhar} added to directory")
    else:
        # Known details are never blanked out by an empty edit
        if name:
            customer['name'] = name
        if phone:
            customer['phoneNumber'] = phone
        customer.setdefault('history', [])

    customer['history'].append(_stay_from_fragment(fragment))
    return customer
