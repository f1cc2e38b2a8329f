"""Scan code normalisation helpers.

Scanners hand us very different payloads for the same product: a plain
barcode, a printed label's QR code (``CODE|NAME|PRICE``), or a line of OCR
text. These helpers reduce every payload to one canonical lookup key so the
matcher only ever compares like with like.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = ["ScanSource", "ScanEvent", "normalize_scan_code", "LABEL_SEPARATOR"]


# Printed shelf labels encode "CODE|NAME|PRICE" in their QR code.
LABEL_SEPARATOR = "|"


class ScanSource(str, Enum):
    """Where a raw scan payload came from."""

    CODE_128 = "code128"
    CODE_39 = "code39"
    CODE_93 = "code93"
    CODABAR = "codabar"
    EAN_13 = "ean13"
    EAN_8 = "ean8"
    ITF = "itf"
    UPC_A = "upc_a"
    UPC_E = "upc_e"
    QR_CODE = "qr_code"
    DATA_MATRIX = "data_matrix"
    AZTEC = "aztec"
    PDF417 = "pdf417"
    OCR = "ocr"
    MANUAL = "manual"


@dataclass(frozen=True)
class ScanEvent:
    """A raw payload delivered by the scanning facility."""

    payload: str
    source: ScanSource = ScanSource.CODE_128

    @property
    def key(self) -> str:
        return normalize_scan_code(self.payload)


def normalize_scan_code(raw: str | None) -> str:
    """Return the canonical lookup key for a raw scan payload.

    * Structured label payloads keep only the segment before the first pipe.
    * Surrounding whitespace is trimmed and the result lower-cased.

    An empty result means there is nothing to match against.
    """

    if not raw:
        return ""
    code = raw.split(LABEL_SEPARATOR, 1)[0] if LABEL_SEPARATOR in raw else raw
    return code.strip().lower()
