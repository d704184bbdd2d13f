"""Field cleaners and keyword vocabularies shared by the source mappers."""

import re
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Set, Dict

import phonenumbers
from nameparser import HumanName

from prospect_intel.config import settings

logger = logging.getLogger(__name__)

EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
EMAIL_IN_TEXT = re.compile(r"[^\s@<>(),;:\"']+@[^\s@<>(),;:\"']+\.[^\s@<>(),;:\"']+")
PHONE_IN_TEXT = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
BUDGET_AMOUNT = re.compile(r"\d[\d,]*(?:\.\d+)?")
MIN_PHONE_DIGITS = 7

INTEREST_VOCABULARY = {
    "business": "business_opportunity",
    "negosyo": "business_opportunity",
    "income": "income",
    "kita": "income",
    "investment": "investment",
    "invest": "investment",
    "health": "health",
    "insurance": "insurance",
    "property": "property",
    "properties": "property",
    "sales": "sales",
}

JOIN_PHRASES = ("how to join", "paano sumali", "want to join", "sign me up")
PRICE_PHRASES = ("how much", "magkano", "price", "presyo", "cost")
EXPENSE_PHRASES = ("too expensive", "mahal", "can't afford", "cannot afford", "walang pera")
TRUST_PHRASES = ("scam", "pyramid", "legit ba", "is this legit")
TIME_PHRASES = ("no time", "busy", "walang oras")

TIMELINE_PHRASES = (
    ("immediate", ("today", "right now", "asap", "ngayon")),
    ("this_week", ("this week", "ngayong linggo")),
    ("this_month", ("this month", "next week", "ngayong buwan")),
    ("this_quarter", ("next month", "this quarter", "in a few months")),
    ("long_term", ("next year", "someday", "in the future", "balang araw")),
)


def mentions(text: str, term: str, prefix: bool = False) -> bool:
    """Whole-word (or word-prefix) match of a term or phrase in lower-cased text."""
    if not text:
        return False
    tail = "" if prefix else r"\b"
    return re.search(rf"\b{re.escape(term)}{tail}", text) is not None


def mentions_any(text: str, terms: Iterable[str], prefix: bool = False) -> bool:
    return any(mentions(text, t, prefix) for t in terms)


def collapse_whitespace(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = " ".join(str(value).split())
    return cleaned or None


def clean_email(value: Any) -> Optional[str]:
    """Lower-case and trim; anything not RFC-shaped is dropped."""
    if not value or not isinstance(value, str):
        return None
    email = value.strip().lower()
    if not EMAIL_SHAPE.match(email):
        logger.debug(f"Dropping malformed email: {value!r}")
        return None
    return email


def clean_phone(value: Any, default_region: Optional[str] = None) -> Optional[str]:
    """
    Reduce to digits with an optional leading '+'.

    Numbers that parse as valid in the default region are rendered E.164,
    which keeps the same shape but makes local and international spellings
    of one number compare equal.
    """
    if value is None or value == "":
        return None
    raw = str(value).strip()
    digits = re.sub(r"[^\d+]", "", raw)
    cleaned = ("+" if digits.startswith("+") else "") + digits.replace("+", "")
    if len(cleaned.lstrip("+")) < MIN_PHONE_DIGITS:
        return None

    try:
        parsed = phonenumbers.parse(cleaned, default_region or settings.DEFAULT_PHONE_REGION)
        if phonenumbers.is_valid_number(parsed):
            return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    except phonenumbers.NumberParseException:
        logger.debug(f"Failed to parse phone number: {raw}")

    return cleaned


def clean_name(value: Any) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    return collapse_whitespace(value)


def split_name(full_name: Optional[str]) -> Dict[str, Optional[str]]:
    """First/last name via nameparser."""
    if not full_name:
        return {"first_name": None, "last_name": None}
    parsed = HumanName(full_name)
    return {
        "first_name": parsed.first or None,
        "last_name": parsed.last or None,
    }


def parse_budget(value: Any) -> Optional[float]:
    """
    '₱5,000' -> 5000.0. The first amount wins, so a range such as
    '₱5,000 - ₱10,000' reads as its lower bound. Unparseable values are dropped.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    match = BUDGET_AMOUNT.search(str(value))
    if not match:
        return None
    try:
        return float(match.group().replace(",", ""))
    except ValueError:
        logger.debug(f"Unparseable budget: {value!r}")
        return None


def extract_emails(text: Optional[str]) -> List[str]:
    if not text:
        return []
    found = []
    for match in EMAIL_IN_TEXT.findall(text):
        email = clean_email(match.rstrip(".,;:!?"))
        if email and email not in found:
            found.append(email)
    return found


def extract_phones(text: Optional[str]) -> List[str]:
    if not text:
        return []
    found = []
    for match in PHONE_IN_TEXT.finditer(text):
        phone = clean_phone(match.group(0))
        if phone and phone not in found:
            found.append(phone)
    return found


def extract_interest_tags(text: Optional[str]) -> Set[str]:
    lowered = (text or "").lower()
    return {
        tag for term, tag in INTEREST_VOCABULARY.items()
        if mentions(lowered, term, prefix=True)
    }


def detect_timeline(text: Optional[str]) -> Optional[str]:
    lowered = (text or "").lower()
    for timeline, phrases in TIMELINE_PHRASES:
        if mentions_any(lowered, phrases):
            return timeline
    return None


def as_string_set(value: Any) -> Set[str]:
    """Accept a list, a comma-separated string or nothing."""
    if not value:
        return set()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = value
    else:
        return set()
    return {str(item).strip().lower() for item in items if str(item).strip()}


@dataclass
class ConversationSignals:
    """Tags, objections and stage hints found in conversational text."""
    tags: Set[str] = field(default_factory=set)
    objections: Set[str] = field(default_factory=set)
    wants_to_join: bool = False


def analyze_conversation(text: Optional[str]) -> ConversationSignals:
    lowered = (text or "").lower()
    signals = ConversationSignals(tags=extract_interest_tags(lowered))

    if mentions_any(lowered, JOIN_PHRASES):
        signals.tags.add("interested")
        signals.wants_to_join = True

    if mentions_any(lowered, PRICE_PHRASES):
        signals.tags.add("price_inquiry")
    if mentions_any(lowered, EXPENSE_PHRASES):
        signals.objections.add("price")

    if mentions_any(lowered, TRUST_PHRASES):
        signals.objections.add("trust")
    if mentions_any(lowered, TIME_PHRASES):
        signals.objections.add("time")

    return signals


def flatten_strings(payload: Any) -> List[str]:
    """Every string leaf of a nested payload, in document order."""
    if payload is None:
        return []
    if isinstance(payload, str):
        return [payload]
    if isinstance(payload, dict):
        out = []
        for value in payload.values():
            out.extend(flatten_strings(value))
        return out
    if isinstance(payload, (list, tuple)):
        out = []
        for value in payload:
            out.extend(flatten_strings(value))
        return out
    if isinstance(payload, (int, float)) and not isinstance(payload, bool):
        return [str(payload)]
    return []
