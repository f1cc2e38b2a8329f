"""Pull customer and device fields out of OCR text.

The scanning screen photographs subscription cards, device stickers and
handwritten receipts and hands us the recognised text. Printed cards carry
labels ("S/N:", "CCA NO.", "ACCOUNT NO:"), so the first pass reads the value
after each label. Handwritten receipts carry no labels at all; when the first
pass finds nothing we fall back to the receipt layout the shop uses:

    02780795236                               <- CCA / phone number
    7.07 Ruel M. Mendiog 12/5/20              <- box number, name, date
    113 Acct. 117807798 Podacion Cawayan 29/020  <- box, account, address, date
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Iterable

__all__ = ["OcrFields", "extract_ocr_fields", "extract_serial_candidates"]


_LINE_SPLIT_RE = re.compile(r"[\n\r]+")
_LEADING_PUNCT_RE = re.compile(r"^[:\s=]+")
_NON_DIGIT_RE = re.compile(r"\D")
_TOKEN_SPLIT_RE = re.compile(r"[:\s]+")
_WHOLE_SERIAL_RE = re.compile(r"^[A-Z0-9]{3,20}$", re.IGNORECASE)
_DASHED_SERIAL_RE = re.compile(r"[A-Z0-9]{2,}-[A-Z0-9]{2,}-?[A-Z0-9]*", re.IGNORECASE)
_ANY_NUMBER_RE = re.compile(r"\d{3,}")

_PHONE_RE = re.compile(r"^0?\d{10,11}$")
_ACCT_RE = re.compile(r"acct\.?\s*(\d+)", re.IGNORECASE)
_DATE_RE = re.compile(r"\d{1,2}/\d{1,2}/?\d{0,4}")
_NAME_RE = re.compile(r"[A-Za-z]+(?:\s+[A-Za-z]\.?)?\s+[A-Za-z]+")
_BOX_PREFIX_RE = re.compile(r"^([\d.]+)\s+")
_LONG_NUMBER_RE = re.compile(r"\b(\d{9,12})\b")
_HAS_LETTER_RE = re.compile(r"[A-Za-z]")

_SERIAL_LABELS = ("S/N", "SN:", "SN", "SERIAL NO", "SERIAL NUMBER", "SERIAL:", "SERIAL")
_CCA_LABELS = ("CCA NO.", "CCA NO", "CCA:", "CCA #", "CCA")
_BOX_LABELS = ("BOX NO.", "BOX NO", "BOX #", "BOX:", "BOX NUMBER", "BOX")
_NAME_LABELS = (
    "CUSTOMER NAME:",
    "CUSTOMER NAME",
    "SUBSCRIBER NAME:",
    "SUBSCRIBER NAME",
    "CUSTOMER:",
    "SUBSCRIBER:",
    "NAME:",
    "NAME",
)
_ACCOUNT_LABELS = (
    "ACCOUNT NUMBER:",
    "ACCOUNT NUMBER",
    "ACCOUNT NO.:",
    "ACCOUNT NO:",
    "ACCOUNT NO.",
    "ACCOUNT NO",
    "ACCOUNT:",
    "ACCT NO.:",
    "ACCT NO:",
    "ACCT NO.",
    "ACCT NO",
    "ACCT:",
    "ACCT #:",
    "ACCT #",
    "ACC NO:",
    "ACC NO",
    "ACC #",
)
_ADDRESS_LABELS = ("ADDRESS:", "ADDR:", "LOCATION:", "ADDRESS")
_LABEL_MARKERS = ("NAME:", "ADDRESS:", "ACCOUNT", "SERIAL", "BOX", "S/N", "CCA")

# Short addresses usually wrap onto the following line.
_SHORT_ADDRESS_LEN = 15


@dataclass
class OcrFields:
    serial_number: str | None = None
    cca_number: str | None = None
    box_number: str | None = None
    name: str | None = None
    account_number: str | None = None
    address: str | None = None
    pin: str | None = None

    @property
    def has_any_data(self) -> bool:
        return any(value is not None for value in asdict(self).values())

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


def _clean_lines(text: str) -> list[str]:
    return [line.strip() for line in _LINE_SPLIT_RE.split(text or "") if line.strip()]


def _value_after_label(line: str, labels: Iterable[str]) -> str | None:
    """Return the text following the first label found on ``line``."""

    upper = line.upper()
    for label in labels:
        index = upper.find(label)
        if index == -1:
            continue
        value = _LEADING_PUNCT_RE.sub("", line[index + len(label):].strip()).strip()
        if value:
            return value
    return None


def _is_label_line(line: str) -> bool:
    upper = line.upper()
    return any(marker in upper for marker in _LABEL_MARKERS)


def _extract_labelled(lines: list[str], fields: OcrFields) -> None:
    for i, line in enumerate(lines):
        upper = line.upper()
        next_line = lines[i + 1] if i + 1 < len(lines) else None

        if fields.serial_number is None and any(tag in upper for tag in ("S/N", "SERIAL", "SN:", "SN ")):
            fields.serial_number = _value_after_label(line, _SERIAL_LABELS)

        if fields.cca_number is None and "CCA" in upper:
            fields.cca_number = _value_after_label(line, _CCA_LABELS)

        if fields.box_number is None and any(tag in upper for tag in ("BOX NO", "BOX #", "BOX:", "BOX NUMBER")):
            fields.box_number = _value_after_label(line, _BOX_LABELS)

        if fields.name is None and (
            any(tag in upper for tag in ("NAME:", "CUSTOMER:", "CUSTOMER NAME", "SUBSCRIBER:", "SUBSCRIBER NAME"))
            or upper.startswith("NAME")
        ):
            fields.name = _value_after_label(line, _NAME_LABELS)

        if fields.account_number is None and any(tag in upper for tag in ("ACCOUNT", "ACCT", "ACC NO", "ACC #")):
            fields.account_number = _value_after_label(line, _ACCOUNT_LABELS)

        if fields.address is None and (
            any(tag in upper for tag in ("ADDRESS:", "ADDR:", "LOCATION:")) or upper.startswith("ADDRESS")
        ):
            address = _value_after_label(line, _ADDRESS_LABELS)
            if address and len(address) < _SHORT_ADDRESS_LEN and next_line and not _is_label_line(next_line):
                address = f"{address} {next_line}"
            fields.address = address

        # The security code label sits on its own line with the digits below it.
        if fields.pin is None and ("SECURITY" in upper or "SEC CODE" in upper or "SEC. CODE" in upper):
            if next_line:
                digits = _NON_DIGIT_RE.sub("", next_line)
                if digits:
                    fields.pin = digits


def _extract_labelless(lines: list[str], fields: OcrFields) -> None:
    for line in lines:
        digits_only = _NON_DIGIT_RE.sub("", line)
        if fields.cca_number is None and _PHONE_RE.match(digits_only):
            fields.cca_number = digits_only
            continue

        box_match = _BOX_PREFIX_RE.match(line)
        if box_match:
            box = box_match.group(1)
            if fields.box_number is None:
                fields.box_number = box
            elif box not in fields.box_number:
                fields.box_number = f"{fields.box_number}/{box}"

        acct_match = _ACCT_RE.search(line)
        if fields.account_number is None and acct_match:
            fields.account_number = acct_match.group(1)
            remainder = _DATE_RE.sub("", line[acct_match.end():]).strip()
            if remainder and fields.address is None:
                fields.address = remainder
            continue

        if fields.name is None:
            working = _BOX_PREFIX_RE.sub("", line, count=1).strip()
            working = _DATE_RE.sub("", working).strip()
            working = _ACCT_RE.sub("", working).strip()
            name_match = _NAME_RE.search(working)
            if name_match:
                fields.name = name_match.group(0).strip()
            elif working and _HAS_LETTER_RE.search(working) and not working.isdigit():
                fields.name = working

    if fields.account_number is None:
        for line in lines:
            match = _LONG_NUMBER_RE.search(line)
            if match and match.group(1) != fields.cca_number:
                fields.account_number = match.group(1)
                break


def extract_serial_candidates(text: str) -> list[str]:
    """Return serial-looking tokens in the order they appear, without duplicates."""

    serials: list[str] = []

    def add(candidate: str) -> None:
        if candidate and candidate not in serials:
            serials.append(candidate)

    for line in _clean_lines(text):
        upper = line.upper()
        if any(tag in upper for tag in ("S/N", "SERIAL", "CCA", "SN:", "SN ")):
            parts = _TOKEN_SPLIT_RE.split(line)
            for i, part in enumerate(parts[:-1]):
                if part.upper() in ("S/N", "SN", "SERIAL", "CCA") and len(parts[i + 1]) >= 4:
                    add(parts[i + 1])
        if _WHOLE_SERIAL_RE.match(line):
            add(line)
        for match in _DASHED_SERIAL_RE.finditer(line):
            add(match.group(0))
    return serials


def extract_ocr_fields(text: str, *, inventory_mode: bool = False) -> OcrFields:
    """Extract every field we can recognise from a block of OCR text.

    ``inventory_mode`` is used when scanning product stickers: any run of three
    or more digits is accepted as the serial number as a last resort.
    """

    fields = OcrFields()
    lines = _clean_lines(text)
    _extract_labelled(lines, fields)

    if not fields.has_any_data:
        _extract_labelless(lines, fields)

    if fields.serial_number is None:
        candidates = extract_serial_candidates(text)
        if candidates:
            fields.serial_number = candidates[0]

    if inventory_mode and fields.serial_number is None:
        match = _ANY_NUMBER_RE.search(text or "")
        if match:
            fields.serial_number = match.group(0)

    return fields
