#!/usr/bin/env python3
"""Query LLM API call tracking data locally.

Usage:
    python scripts/query_llm_tracking.py --summary                    # Overall totals
    python scripts/query_llm_tracking.py --stage brainstorm           # Calls for one feature
    python scripts/query_llm_tracking.py --organization "Acme Corp"   # Calls for one company
    python scripts/query_llm_tracking.py --cost-by-model              # Cost breakdown
    python scripts/query_llm_tracking.py --audit --since 2026-10-01   # Newest records first
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from activitymind.services.llm_call_tracker import LLMCallTracker, get_tracker  # noqa: E402


def _print_call_line(call: dict[str, Any]) -> None:
    status = "✓" if call.get("success") else "✗"
    print(
        f"  {status} {str(call.get('timestamp', ''))[:19]} | "
        f"{call.get('stage', '?'):<12} | "
        f"{call.get('input_tokens', 0):5d}→{call.get('output_tokens', 0):5d} tokens | "
        f"${call.get('cost_usd', 0):.6f}"
    )


def print_summary(tracker: LLMCallTracker) -> None:
    summary = tracker.get_summary()
    if not summary.get("total_calls"):
        print("No LLM tracking data found.")
        return

    print("\n" + "=" * 70)
    print("LLM API CALL TRACKING SUMMARY")
    print("=" * 70)
    print(f"\nTotal Calls: {summary.get('total_calls', 0):,}")
    print(f"Total Cost: ${summary.get('total_cost_usd', 0.0):.4f} USD")
    print(f"Last Updated: {summary.get('last_updated', 'N/A')}")

    print("\n" + "-" * 70)
    print("By Model:")
    print("-" * 70)
    for model, stats in summary.get("models", {}).items():
        success = stats.get("success_count", 0)
        error = stats.get("error_count", 0)
        total = success + error
        cost = stats.get("total_cost_usd", 0.0)
        print(f"\n{model}:")
        print(f"  Calls: {total} (Success: {success}, Error: {error})")
        print(
            f"  Tokens: {stats.get('total_input_tokens', 0):,} (input) + "
            f"{stats.get('total_output_tokens', 0):,} (output)"
        )
        print(f"  Cost: ${cost:.4f} USD (avg ${cost / total if total > 0 else 0:.6f}/call)")


def print_calls(title: str, calls: list[dict[str, Any]]) -> None:
    if not calls:
        print(f"No calls found for {title}")
        return

    success_count = sum(1 for c in calls if c.get("success"))
    total_cost = sum(c.get("cost_usd", 0.0) for c in calls)

    print(f"\n{title.upper()} - {len(calls)} CALLS")
    print("=" * 70)
    print(f"Success: {success_count}/{len(calls)}")
    print(f"Total Cost: ${total_cost:.4f} USD")
    print(f"Avg Cost: ${total_cost / len(calls):.6f} USD/call")

    print("\nLast 5 calls:")
    for call in calls[-5:]:
        _print_call_line(call)


def print_cost_by_model(tracker: LLMCallTracker) -> None:
    calls = tracker.iter_calls()
    if not calls:
        print("No LLM tracking data found.")
        return

    by_model: dict[str, list[dict[str, Any]]] = {}
    for call in calls:
        by_model.setdefault(call.get("model", "unknown"), []).append(call)

    total_cost = sum(c.get("cost_usd", 0.0) for c in calls)

    print("\nCOST BREAKDOWN BY MODEL")
    print("=" * 70)
    for model in sorted(by_model):
        model_calls = by_model[model]
        model_cost = sum(c.get("cost_usd", 0.0) for c in model_calls)
        model_tokens = sum(c.get("total_tokens", 0) for c in model_calls)
        percentage = (model_cost / total_cost * 100) if total_cost > 0 else 0
        print(f"\n{model}")
        print(f"  Calls: {len(model_calls)} (Success: {sum(1 for c in model_calls if c.get('success'))})")
        print(f"  Tokens: {model_tokens:,} ({model_tokens // len(model_calls)}/call avg)")
        print(f"  Cost: ${model_cost:.4f} ({percentage:.1f}% of total)")


def main() -> None:
    parser = argparse.ArgumentParser(description="Query LLM API call tracking data")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--summary", action="store_true", help="Print overall summary")
    group.add_argument("--stage", metavar="STAGE", help="Show calls for a feature stage")
    group.add_argument("--organization", metavar="NAME", help="Show calls made for a company")
    group.add_argument("--cost-by-model", action="store_true", help="Show cost breakdown by model")
    group.add_argument("--audit", action="store_true", help="Print the audit trail, newest first")
    parser.add_argument("--since", metavar="YYYY-MM-DD", help="Audit trail start date")
    parser.add_argument("--limit", type=int, default=20, help="Audit trail size")

    args = parser.parse_args()
    tracker = get_tracker()

    if args.summary:
        print_summary(tracker)
    elif args.stage:
        print_calls(f"stage {args.stage}", tracker.get_calls_by_stage(args.stage))
    elif args.organization:
        print_calls(f"organization {args.organization}", tracker.get_calls_by_organization(args.organization))
    elif args.cost_by_model:
        print_cost_by_model(tracker)
    elif args.audit:
        for call in tracker.export_audit_trail(limit=args.limit, start_date=args.since):
            _print_call_line(call)


if __name__ == "__main__":
    main()
