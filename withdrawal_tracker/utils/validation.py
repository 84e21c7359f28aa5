import random
import re
import time
from datetime import datetime
from decimal import Decimal, InvalidOperation

SWIFT_RE = re.compile(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$")
IBAN_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]+$")


def parse_amount(value):
    """Parse a user-entered amount such as ``"1,250,000.50"``.

    Returns a ``Decimal`` rounded to cents, or ``None`` when the value is not a
    number.
    """
    if value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    else:
        raw = re.sub(r"[,\s]", "", str(value))
    if not raw:
        return None
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(Decimal("0.01"))


def is_valid_swift(code):
    return bool(code) and bool(SWIFT_RE.match(code))


def clean_iban(iban):
    return re.sub(r"\s", "", iban or "").upper()


def is_valid_iban(iban):
    cleaned = clean_iban(iban)
    return 15 <= len(cleaned) <= 34 and bool(IBAN_RE.match(cleaned))


def format_iban(iban):
    cleaned = clean_iban(iban)
    return " ".join(cleaned[i:i + 4] for i in range(0, len(cleaned), 4))


def generate_sequential_numbers():
    timestamp = str(int(time.time() * 1000))
    suffix = random.randint(0, 999)
    return {
        "project_number": f"ADFD-{timestamp[-6:]}-{suffix:03d}",
        "ref_number": f"REF-{datetime.utcnow().year}-{timestamp[-4:]}",
    }
