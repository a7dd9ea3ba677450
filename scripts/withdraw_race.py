"""Fire concurrent withdrawals at one account to exercise the overdraft guard.

Deposits `--amount` once, then sends `--concurrency` withdrawals of the full
balance at the same time. Exactly one should succeed.
"""

import argparse
import asyncio
from uuid import uuid4

import httpx


async def main() -> None:
    parser = argparse.ArgumentParser(description="Race full-balance withdrawals against one account.")
    parser.add_argument("--base-url", default="http://localhost:8004")
    parser.add_argument("--api-key", default="dev-secret")
    parser.add_argument("--account-id", default=f"race-{uuid4()}")
    parser.add_argument("--amount", default="100.00")
    parser.add_argument("--concurrency", type=int, default=10)
    args = parser.parse_args()

    headers = {"x-api-key": args.api_key, "x-caller-id": args.account_id, "x-caller-role": "customer"}
    body = {"account_id": args.account_id, "amount": args.amount}
    async with httpx.AsyncClient(base_url=args.base_url, headers=headers, timeout=10.0) as client:
        resp = await client.post("/transactions/deposit", json=body)
        resp.raise_for_status()
        print("deposit", resp.json()["balance"])

        results = await asyncio.gather(
            *(client.post("/transactions/withdraw", json=body) for _ in range(args.concurrency))
        )
        balance = (await client.get(f"/accounts/{args.account_id}/balance")).json()["balance"]

    statuses: dict[int, int] = {}
    for resp in results:
        statuses[resp.status_code] = statuses.get(resp.status_code, 0) + 1
    print("status_counts=", statuses)
    print("final_balance=", balance)


if __name__ == "__main__":
    asyncio.run(main())
