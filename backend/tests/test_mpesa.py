"""
Tests for M-Pesa confirmation parsing.
"""
import pytest

from shopdesk.core.errors import ValidationError
from shopdesk.schemas import Client
from shopdesk.services.mpesa import INVALID_MESSAGE, parse_mpesa_message

MESSAGE = (
    "SBK7XYZ12Q Confirmed. Ksh12,500.00 sent to IMANI HOMES for account "
    "254712345678 on 3/8/24 at 10:15 AM."
)


def test_code_and_amount_extracted():
    payment = parse_mpesa_message(MESSAGE)

    assert payment.transaction_code == "SBK7XYZ12Q"
    assert payment.amount == 12500.0
    assert payment.raw_message == MESSAGE
    assert payment.client_id is None


def test_linked_to_client():
    client = Client(id="cli-jane", name="Jane Wanjiku", phone="+254712345678")
    payment = parse_mpesa_message(MESSAGE, client)

    assert payment.client_id == "cli-jane"
    assert payment.payer_name == "Jane Wanjiku"


def test_amount_without_decimals():
    payment = parse_mpesa_message("QWE1234567 Confirmed. Ksh500 received")
    assert payment.amount == 500.0


@pytest.mark.parametrize(
    "message",
    [
        "Confirmed. Ksh500 received",
        "QWE1234567 Confirmed. 500 shillings received",
        "",
    ],
)
def test_invalid_messages_rejected(message):
    with pytest.raises(ValidationError) as exc_info:
        parse_mpesa_message(message)
    assert exc_info.value.message == INVALID_MESSAGE
