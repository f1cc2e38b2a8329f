#!/usr/bin/env python3
"""
scan_to_basket.py

Purpose:
  Feed a keyboard-wedge barcode scanner into a Phone Shoppe basket session.
  Each line read from stdin is posted as one scan; the JSON outcome is printed
  to stdout ("added", "no_match", "max_stock" or "ignored").

API:
  Base: http://localhost:8089/api/v1
  Open session: POST /basket/sessions                   -> {"session_id": "...", ...}
  Scan:         POST /basket/sessions/<id>/scan         -> body: {"payload": "...", "source": "code128"}

Examples:
  python scan_to_basket.py
  python scan_to_basket.py --session 4f0c... --source qr_code
  printf '774053\\n774053\\n' | python scan_to_basket.py -v

Exit codes:
  0 = success (stdin exhausted)
  1 = handled application error
  2 = network/HTTP error
"""

from __future__ import annotations
import sys
import json
import argparse
import requests
from typing import Any, Dict, Iterator, Optional, TextIO

DEFAULT_BASE_URL = "http://localhost:8089/api/v1"
SOURCES = (
    "code128", "code39", "code93", "codabar", "ean13", "ean8", "itf",
    "upc_a", "upc_e", "qr_code", "data_matrix", "aztec", "pdf417", "ocr", "manual",
)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Post scanner input to a basket session.")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL,
                   help=f"Base API URL (default: {DEFAULT_BASE_URL})")
    p.add_argument("--session", default=None,
                   help="Existing basket session id. A new session is opened when omitted.")
    p.add_argument("--source", default="code128", choices=SOURCES,
                   help="Scan source tag sent with every payload (default: code128)")
    p.add_argument("--timeout", type=float, default=15.0,
                   help="HTTP timeout in seconds (default: 15)")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Verbose logging to stderr.")
    return p.parse_args(argv)


def vprint(enabled: bool, *args: Any) -> None:
    if enabled:
        print(*args, file=sys.stderr)


def _headers() -> Dict[str, str]:
    return {"Accept": "application/json", "Content-Type": "application/json"}


def open_session(session: requests.Session, base_url: str, timeout: float, verbose: bool) -> str:
    url = f"{base_url.rstrip('/')}/basket/sessions"
    vprint(verbose, f"POST {url}")
    r = session.post(url, headers=_headers(), timeout=timeout)
    r.raise_for_status()
    data = r.json()
    if not isinstance(data, dict) or "session_id" not in data:
        raise ValueError(f"Unexpected response from POST {url}: {data!r}")
    return data["session_id"]


def post_scan(session: requests.Session, base_url: str, session_id: str, payload: str,
              source: str, timeout: float, verbose: bool) -> Dict[str, Any]:
    url = f"{base_url.rstrip('/')}/basket/sessions/{session_id}/scan"
    body = {"payload": payload, "source": source}
    vprint(verbose, f"POST {url} json={body}")
    r = session.post(url, headers=_headers(), json=body, timeout=timeout)
    if r.status_code == 404:
        raise ValueError(f"Basket session {session_id} not found")
    r.raise_for_status()
    return r.json()


def read_scans(stream: TextIO) -> Iterator[str]:
    """Yield non-blank lines; the scanner terminates every code with Enter."""
    for line in stream:
        code = line.strip()
        if code:
            yield code


def summarize(result: Dict[str, Any]) -> Dict[str, Any]:
    basket = result.get("basket") or {}
    item = result.get("item") or {}
    return {
        "outcome": result.get("outcome"),
        "key": result.get("key"),
        "item": item.get("name"),
        "cue": result.get("cue"),
        "message": result.get("message"),
        "lines": len(basket.get("lines") or []),
        "total": basket.get("total"),
    }


def main(argv: Optional[list[str]] = None, stream: TextIO = sys.stdin) -> int:
    args = parse_args(argv)
    http = requests.Session()
    try:
        session_id = args.session or open_session(http, args.base_url, args.timeout, args.verbose)
        vprint(args.verbose, f"Using basket session {session_id}")
        for code in read_scans(stream):
            result = post_scan(http, args.base_url, session_id, code, args.source,
                               args.timeout, args.verbose)
            print(json.dumps(summarize(result)))
            sys.stdout.flush()
    except requests.RequestException as e:
        print(json.dumps({"status": "error", "kind": "http", "message": str(e)}))
        return 2
    except ValueError as e:
        print(json.dumps({"status": "error", "kind": "app", "message": str(e)}))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
