import asyncio
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from phoneshoppe.core.scancodes import ScanEvent, ScanSource
from phoneshoppe.schemas.catalog import CatalogItem
from phoneshoppe.services.basket import BasketLine, BasketSession
from phoneshoppe.services.scanning import (
    ScanChannel,
    ScanOutcomeKind,
    ScanProcessor,
    resolve_scan,
)
from phoneshoppe.services.sessions import BasketSessionRegistry


def _catalog():
    return [CatalogItem(id="1", name="Cherry Aqua", serial_number="774053", unit_price=500, quantity=3)]


def test_scan_to_basket_end_to_end():
    session = BasketSession(_catalog())
    cues = []
    processor = ScanProcessor(session, cue=cues.append)

    outcomes = [processor.handle(ScanEvent("774053")) for _ in range(3)]

    assert [outcome.kind for outcome in outcomes] == [ScanOutcomeKind.ADDED] * 3
    assert session.basket.lines[0].quantity == 3
    assert session.basket.total() == Decimal("1500")
    assert len(cues) == 3

    fourth = processor.handle(ScanEvent("774053"))
    assert fourth.kind is ScanOutcomeKind.MAX_STOCK
    assert fourth.message == "Maximum stock reached"
    assert session.basket.lines[0].quantity == 3


def test_label_qr_payload_matches_item():
    session = BasketSession(_catalog())
    outcome = ScanProcessor(session).handle(ScanEvent("774053|Cherry Aqua|500", ScanSource.QR_CODE))
    assert outcome.kind is ScanOutcomeKind.ADDED
    assert outcome.item.id == "1"


def test_no_match_and_empty_scans_leave_basket_alone():
    session = BasketSession(_catalog())
    cues = []
    processor = ScanProcessor(session, cue=cues.append)

    missing = processor.handle(ScanEvent("999999"))
    blank = processor.handle(ScanEvent("|"))

    assert missing.kind is ScanOutcomeKind.NO_MATCH
    assert not missing.matched
    assert blank.kind is ScanOutcomeKind.IGNORED
    assert len(session.basket) == 0
    assert cues == []


def test_resolve_scan_normalises_before_matching():
    catalog = _catalog()
    assert resolve_scan("  774053 ", catalog) is catalog[0]
    assert resolve_scan("", catalog) is None


def test_scan_channel_processes_events_in_order():
    async def scenario():
        session = BasketSession(_catalog())
        channel = ScanChannel(ScanProcessor(session))
        consumer = asyncio.create_task(channel.run())
        for payload in ("774053", "nothing", "774053"):
            channel.publish(ScanEvent(payload))
        await channel.join()
        channel.close()
        return await consumer, session

    outcomes, session = asyncio.run(scenario())

    assert [outcome.kind for outcome in outcomes] == [
        ScanOutcomeKind.ADDED,
        ScanOutcomeKind.NO_MATCH,
        ScanOutcomeKind.ADDED,
    ]
    assert session.basket.lines[0].quantity == 2


def test_registry_keeps_sessions_apart():
    registry = BasketSessionRegistry()
    first = registry.open(_catalog())
    second = registry.open(_catalog())

    ScanProcessor(first).handle(ScanEvent("774053"))

    assert len(registry) == 2
    assert len(registry.get(first.id).basket) == 1
    assert len(registry.get(second.id).basket) == 0
    assert registry.close(first.id) is True
    assert registry.get(first.id) is None
    assert registry.close(first.id) is False


def test_scans_after_refresh_follow_new_stock():
    session = BasketSession([CatalogItem(id="1", name="Cherry Aqua", serial_number="774053", unit_price=500, quantity=1)])
    processor = ScanProcessor(session)
    processor.handle(ScanEvent("774053"))

    session.refresh_catalog(
        [CatalogItem(id="1", name="Cherry Aqua", serial_number="774053", unit_price=500, quantity=5)]
    )

    assert processor.handle(ScanEvent("774053")).kind is ScanOutcomeKind.ADDED
    assert session.basket.lines[0].quantity == 2


def test_concurrent_scans_never_exceed_stock():
    session = BasketSession(
        [CatalogItem(id="1", name="Cherry Aqua", serial_number="774053", unit_price=500, quantity=10)]
    )
    processor = ScanProcessor(session)

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: processor.handle(ScanEvent("774053")), range(40)))

    kinds = [outcome.kind for outcome in outcomes]
    assert kinds.count(ScanOutcomeKind.ADDED) == 10
    assert kinds.count(ScanOutcomeKind.MAX_STOCK) == 30
    assert session.basket.lines[0].quantity == 10


def test_registry_drops_idle_sessions():
    now = [1000.0]
    registry = BasketSessionRegistry(idle_seconds=60, clock=lambda: now[0])
    idle = registry.open(_catalog())
    busy = registry.open(_catalog())

    now[0] += 45
    assert registry.get(busy.id) is busy
    now[0] += 30

    assert registry.get(idle.id) is None
    assert registry.get(busy.id) is busy
    assert len(registry) == 1


def test_release_record_clears_editing_sessions():
    registry = BasketSessionRegistry()
    editing = registry.open(_catalog())
    other = registry.open(_catalog())
    line = BasketLine(_catalog()[0], 2)
    editing.load_record("7", [line], "Maria")
    other.load_record("8", [line])

    assert registry.release_record("7") == 1

    assert editing.editing_record_id is None
    assert len(editing.basket) == 0
    assert editing.customer_name == ""
    assert other.editing_record_id == "8"
