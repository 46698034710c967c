"""Output validator — checks the invariants of the per-symbol report files.

History CSV checks:
  1. All columns present and at least one row
  2. Zero nulls in date and price
  3. Each indicator column is null only in a leading warm-up prefix
  4. rsi within [0, 100]

News JSON checks (optional second argument):
  5. Every article sentiment and averageSentiment within [-1.0, 1.0]

Usage:
    python -m src.pipeline.validator output/history_AAPL.csv [output/news_AAPL.json]
"""

import sys
import csv
import json
from typing import List, Optional, Tuple

_REQUIRED_COLS = [
    "date", "price", "volume",
    "sma20", "sma50", "ema12", "ema26", "rsi", "macd", "signal", "histogram",
]
_INDICATOR_COLS = _REQUIRED_COLS[3:]


def _leading_prefix_ok(values: List[str]) -> Tuple[bool, int]:
    """Return (ok, null_count); ok is False when a null follows a value."""
    seen_value = False
    nulls = 0
    for v in values:
        if v.strip():
            seen_value = True
        elif seen_value:
            return False, nulls
        else:
            nulls += 1
    return True, nulls


def validate(csv_path: str) -> Tuple[bool, List[str]]:
    """Run all history checks against csv_path.

    Args:
        csv_path: Path to a ``history_<SYMBOL>.csv`` file.

    Returns:
        Tuple of ``(passed: bool, messages: list[str])``.
        ``messages`` contains PASS/FAIL lines for each check.
    """
    messages: List[str] = []
    passed = True

    # ── load ──────────────────────────────────────────────────────────────────
    try:
        with open(csv_path, encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            rows = list(reader)
    except FileNotFoundError:
        return False, [f"FAIL  file not found: {csv_path}"]
    except (OSError, csv.Error) as exc:
        return False, [f"FAIL  could not read CSV: {exc}"]

    # ── check 1: columns ──────────────────────────────────────────────────────
    if not rows:
        return False, ["FAIL  CSV is empty"]
    missing = [c for c in _REQUIRED_COLS if c not in rows[0]]
    if missing:
        return False, [f"FAIL  missing columns: {missing}"]
    messages.append(f"PASS  {len(rows)} rows, all columns present")

    # ── check 2: no nulls in date/price ──────────────────────────────────────
    for col in ("date", "price"):
        null_rows = [i + 2 for i, r in enumerate(rows) if not r.get(col, "").strip()]
        if not null_rows:
            messages.append(f"PASS  {col}: 0 nulls")
        else:
            messages.append(f"FAIL  {col}: {len(null_rows)} null(s) at rows {null_rows}")
            passed = False

    # ── check 3: warm-up nulls form a leading prefix ─────────────────────────
    for col in _INDICATOR_COLS:
        ok, nulls = _leading_prefix_ok([r.get(col, "") for r in rows])
        if ok:
            messages.append(f"PASS  {col}: {nulls} leading null(s)")
        else:
            messages.append(f"FAIL  {col}: null after first value")
            passed = False

    # ── check 4: rsi in [0, 100] ─────────────────────────────────────────────
    bad_rsi = []
    for i, row in enumerate(rows, start=2):
        raw = row.get("rsi", "").strip()
        if not raw:
            continue
        try:
            value = float(raw)
            if not (0.0 <= value <= 100.0):
                bad_rsi.append((i, value))
        except ValueError:
            bad_rsi.append((i, raw))
    if not bad_rsi:
        messages.append("PASS  rsi ∈ [0, 100] for all rows")
    else:
        messages.append(f"FAIL  rsi out of range in {len(bad_rsi)} rows: {bad_rsi[:3]}")
        passed = False

    return passed, messages


def validate_news(json_path: str) -> Tuple[bool, List[str]]:
    """Check that every sentiment value in a news report is within [-1, 1]."""
    try:
        with open(json_path, encoding="utf-8") as f:
            report = json.load(f)
    except FileNotFoundError:
        return False, [f"FAIL  file not found: {json_path}"]
    except (OSError, ValueError) as exc:
        return False, [f"FAIL  could not read JSON: {exc}"]

    def in_range(value: Optional[float]) -> bool:
        return isinstance(value, (int, float)) and -1.0 <= value <= 1.0

    bad = [
        a.get("title") for a in report.get("articles", [])
        if not in_range(a.get("sentiment"))
    ]
    if not in_range(report.get("averageSentiment")):
        bad.append("averageSentiment")
    if bad:
        return False, [f"FAIL  sentiment out of range for {len(bad)} item(s): {bad[:3]}"]
    return True, [f"PASS  sentiment ∈ [-1.0, 1.0] for {len(report.get('articles', []))} articles"]


def main() -> int:
    if len(sys.argv) < 2:
        print("Usage: python -m src.pipeline.validator <history_csv> [news_json]")
        return 1
    passed, messages = validate(sys.argv[1])
    if len(sys.argv) > 2:
        news_passed, news_messages = validate_news(sys.argv[2])
        passed = passed and news_passed
        messages.extend(news_messages)
    for msg in messages:
        print(msg)
    if passed:
        print("\nVALIDATION PASSED ✓")
        return 0
    else:
        print("\nVALIDATION FAILED ✗")
        return 1


if __name__ == "__main__":
    sys.exit(main())
