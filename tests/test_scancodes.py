import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from phoneshoppe.core.scancodes import ScanEvent, ScanSource, normalize_scan_code


def test_label_payload_keeps_code_before_first_pipe():
    assert normalize_scan_code("SN123|Widget|19.99") == "sn123"
    assert normalize_scan_code("  AB-9 |Case|1|2") == "ab-9"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  ABC-42 ", "abc-42"),
        ("774053", "774053"),
        ("\tIPHONE 15\n", "iphone 15"),
    ],
)
def test_plain_payload_is_trimmed_and_lowercased(raw, expected):
    assert normalize_scan_code(raw) == expected


def test_empty_keys():
    assert normalize_scan_code("|") == ""
    assert normalize_scan_code("   ") == ""
    assert normalize_scan_code("") == ""
    assert normalize_scan_code(None) == ""


def test_scan_event_exposes_canonical_key():
    event = ScanEvent("QR-1|Charger|250", ScanSource.QR_CODE)
    assert event.key == "qr-1"
    assert ScanEvent("774053").source is ScanSource.CODE_128
