"""Fetch and print the reconciliation report for one account."""

import argparse
import json
import sys

import httpx


def main() -> None:
    """CLI entrypoint for per-account chain checks."""

    parser = argparse.ArgumentParser(description="Replay one account's ledger and print the report.")
    parser.add_argument("account_id")
    parser.add_argument("--ledger-url", default="http://localhost:8004")
    parser.add_argument("--api-key", default="dev-secret")
    parser.add_argument("--caller-id", default="ops")
    parser.add_argument("--caller-role", default="banker")
    args = parser.parse_args()

    resp = httpx.get(
        f"{args.ledger_url}/reconciliation/{args.account_id}",
        headers={
            "x-api-key": args.api_key,
            "x-caller-id": args.caller_id,
            "x-caller-role": args.caller_role,
        },
        timeout=10.0,
    )
    resp.raise_for_status()
    report = resp.json()
    print(json.dumps(report, indent=2))
    if not report["consistent"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
