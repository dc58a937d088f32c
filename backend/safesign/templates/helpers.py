"""Shared rendering helpers used by every document template.

All functions are pure: they never read the clock and never mutate their inputs.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Union

from num2words import num2words

from safesign.errors import MissingRequiredSignerError
from safesign.models.documents import Document, Signer
from safesign.models.document_types import DocumentOption

HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}

NARROW_NBSP = "\u202f"
NBSP = "\u00a0"

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$US",
    "GBP": "£GB",
    "CHF": "CHF",
}

MAX_WORDS_VALUE = 999_999_999_999


def escape_html(value: Any) -> str:
    if value is None:
        return ""
    return "".join(HTML_ESCAPES.get(ch, ch) for ch in str(value))


def format_address(address: Optional[str]) -> str:
    """Escape an address and break it on commas."""
    if not address:
        return ""
    return "<br>".join(escape_html(part.strip()) for part in address.split(",") if part.strip())


def _as_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def format_date(value: Union[date, datetime, str, None], fmt: str = "DD/MM/YYYY") -> str:
    parsed = _as_date(value)
    if parsed is None:
        return ""
    return (
        fmt.replace("DD", f"{parsed.day:02d}")
        .replace("MM", f"{parsed.month:02d}")
        .replace("YYYY", f"{parsed.year:04d}")
    )


def to_decimal(amount: Any) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, str):
        amount = amount.replace(" ", "").replace(NARROW_NBSP, "").replace(",", ".")
    return Decimal(str(amount))


def format_currency(amount: Any, currency: str = "EUR") -> str:
    """French currency formatting: ``1 234,56 €`` (narrow no-break thousands separator)."""
    value = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer_part, fraction = f"{abs(value):.2f}".split(".")
    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    return f"{sign}{NARROW_NBSP.join(groups)},{fraction}{NBSP}{symbol}"


def _spell(n: int) -> str:
    """Standard French spelling of 0 < n < 1000 (``deux cents``, ``soixante et onze``)."""
    return num2words(n, lang="fr")


def _multiplier(n: int) -> str:
    # cent and vingt stay singular when followed by mille
    words = _spell(n)
    if words.endswith(("cents", "vingts")):
        words = words[:-1]
    return words.replace(" ", "-")


def number_to_words(value: int) -> str:
    """Spell an integer in French.

    Hundreds are separated by spaces, thousands are hyphenated
    (``7100 -> "sept-mille-cent"``), millions and milliards are separate words.
    """
    if isinstance(value, bool) or int(value) != value:
        raise ValueError(f"number_to_words expects an integer, got {value!r}")
    n = int(value)
    if n == 0:
        return "zéro"
    if n < 0:
        return f"moins {number_to_words(-n)}"
    if n > MAX_WORDS_VALUE:
        raise ValueError(f"{n} is too large to spell out")

    billions, n = divmod(n, 1_000_000_000)
    millions, n = divmod(n, 1_000_000)
    thousands, rest = divmod(n, 1000)

    parts = []
    for count, singular, plural in ((billions, "milliard", "milliards"), (millions, "million", "millions")):
        if count:
            word = singular if count == 1 else plural
            parts.append(f"{_spell(count)} {word}")

    tail = ""
    if thousands:
        multiplier = "" if thousands == 1 else f"{_multiplier(thousands)}-"
        tail = f"{multiplier}mille"
        if rest:
            tail = f"{tail}-{_spell(rest)}"
    elif rest:
        tail = _spell(rest)
    if tail:
        parts.append(tail)
    return " ".join(parts)


def amount_in_words(amount: Any, unit: str = "euro", subunit: str = "centime") -> str:
    """Spell a monetary amount: ``650.50 -> "six cent cinquante euros et cinquante centimes"``."""
    value = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    negative = value < 0
    value = abs(value)
    whole = int(value)
    cents = int((value - whole) * 100)

    if whole >= 1_000_000 and whole % 1_000_000 == 0:
        words = f"{number_to_words(whole)} d'{unit}s"
    else:
        words = f"{number_to_words(whole)} {unit}{'s' if whole > 1 else ''}"
    if cents:
        words = f"{words} et {number_to_words(cents)} {subunit}{'s' if cents > 1 else ''}"
    return f"moins {words}" if negative else words


def placeholder(label: str) -> str:
    return f"[{escape_html(label.upper())}]"


def value_or_placeholder(value: Any, label: str) -> str:
    """Escaped value, or a bracketed placeholder when nothing was filled in."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return placeholder(label)
    return escape_html(value)


def date_or_placeholder(value: Any, label: str) -> str:
    formatted = format_date(value) if value else ""
    return formatted or placeholder(label)


def currency_or_placeholder(value: Any, label: str) -> str:
    if value is None or value == "":
        return placeholder(label)
    return format_currency(value)


def signer_full_name(signer: Optional[Signer]) -> str:
    if signer is None:
        return ""
    return f"{signer.first_name} {signer.last_name}".strip()


def find_signer(signers: Iterable[Signer], *roles: str) -> Optional[Signer]:
    """First signer matching the roles, tried in order."""
    signers = list(signers)
    for role in roles:
        for signer in signers:
            if signer.role == role:
                return signer
    return None


def require_signer(signers: Iterable[Signer], role: str, *fallbacks: str) -> Signer:
    signer = find_signer(signers, role, *fallbacks)
    if signer is None:
        raise MissingRequiredSignerError(role)
    return signer


def checkbox(checked: bool, label: str) -> str:
    return f"{'☒' if checked else '☐'} {escape_html(label)}"


def wrap_document(content: str, title: str, watermark: Optional[str] = None) -> str:
    watermark_html = ""
    if watermark:
        watermark_html = f'\n  <div class="watermark">{escape_html(watermark)}</div>'
    return f"""<!DOCTYPE html>
<html lang="fr">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape_html(title)}</title>
  <link rel="stylesheet" href="/styles.css">
</head>
<body>{watermark_html}
  {content}
</body>
</html>"""


def option_boxes(option: DocumentOption, selected: Any) -> str:
    """Render every choice of a document option as a ticked or empty box."""
    chosen = set(selected) if isinstance(selected, (list, tuple, set)) else {selected}
    return " ".join(checkbox(choice.value in chosen, choice.label) for choice in option.options)


def signature_block(title: str, signer: Signer, document: Document) -> str:
    signature = next((s for s in document.signatures if s.signer_id == signer.id), None)
    if signature is None:
        mark = '<div class="signature-line"></div>'
    else:
        mark = f'<p class="signed">Signé électroniquement le {format_date(signature.signed_at)}</p>'
    return f"""<div class="signature-block">
        <p><strong>{escape_html(title)}</strong></p>
        {mark}
        <p>{escape_html(signer_full_name(signer))}</p>
      </div>"""


def field_row(label: str, body: str) -> str:
    """A label/value line. ``body`` must already be escaped."""
    return f"""<div class="field-horizontal">
          <div class="field-label">{escape_html(label)}</div>
          <div class="field-body">{body}</div>
        </div>"""
