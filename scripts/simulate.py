"""
Quote Load Simulation Script

Fires concurrent delivery-quote and slot requests at a running API and
reports deliverability, latency and failures.
Run from project root: python scripts/simulate.py --requests 100
"""

import argparse
import asyncio
import random
import time
from datetime import date, datetime, timedelta
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:3001"
TOTAL_REQUESTS = 50

# Mix of in-area, out-of-area and malformed postcodes
POSTCODES = [
    "WF9 4PY", "wf94py", "WF9 2AB", "WF9 3LT", "WF7 6AA", "DN6 7BB",
    "LS1 4AP", "S71 1AA", "NOT A CODE", "", "WF9",
]
STREETS = ["Barnsley Road", "High Street", "Westfield Lane", "Church Street", "Ash Grove"]


def generate_quote_payload() -> dict[str, Any]:
    """Random delivery quote request."""
    postcode = random.choice(POSTCODES)
    return {
        "mode": random.choice(["delivery"] * 9 + ["collection"]),
        "postcode": postcode,
        "address": random.choice([
            "",
            f"{random.randint(1, 200)} {random.choice(STREETS)}, {postcode}",
        ]),
        "subtotal_pence": random.choice([500, 950, 1000, 1850, 3200]),
    }


async def send_quote(client: httpx.AsyncClient, num: int) -> dict[str, Any]:
    """POST /api/delivery/quote and time it."""
    payload = generate_quote_payload()
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/delivery/quote", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)
        if response.status_code != 200:
            return {"num": num, "success": False, "error": response.text[:100], "time": elapsed, "kind": "quote"}

        data = response.json()
        return {
            "num": num,
            "success": True,
            "deliverable": data.get("is_deliverable"),
            "reason": data.get("reason"),
            "fee": data.get("fee_pence", 0),
            "time": elapsed,
            "kind": "quote",
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {"num": num, "success": False, "error": str(e)[:100], "time": elapsed, "kind": "quote"}


async def send_slots(client: httpx.AsyncClient, num: int) -> dict[str, Any]:
    """GET collection/delivery times for a random date this week."""
    on_date = date.today() + timedelta(days=random.randint(0, 6))
    kind = random.choice(["collection", "delivery"])
    params = {"date": on_date.isoformat()}
    if kind == "delivery":
        params["postcode"] = "WF9 4PY"

    start_time = time.time()
    try:
        response = await client.get(f"{API_BASE_URL}/api/store/{kind}-times", params=params, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)
        if response.status_code != 200:
            return {"num": num, "success": False, "error": response.text[:100], "time": elapsed, "kind": kind}

        data = response.json()
        return {
            "num": num,
            "success": True,
            "slots": len(data.get("available_times", [])),
            "time": elapsed,
            "kind": kind,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {"num": num, "success": False, "error": str(e)[:100], "time": elapsed, "kind": kind}


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(mode: str = "both", num_requests: int = TOTAL_REQUESTS) -> dict[str, Any]:
    """
    Run the load simulation.

    Args:
        mode: "quote", "slots", or "both"
        num_requests: Number of requests to send
    """
    print("=" * 70)
    print("QUOTE LOAD SIMULATION")
    print("=" * 70)
    print(f"Requests: {num_requests}")
    print(f"Target: {API_BASE_URL}")
    print(f"Mode: {mode}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        tasks = []
        for i in range(num_requests):
            if mode == "quote" or (mode == "both" and i % 2 == 0):
                tasks.append(send_quote(client, i + 1))
            else:
                tasks.append(send_slots(client, i + 1))
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    quotes = [r for r in successful if r["kind"] == "quote"]

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"\nSuccessful requests: {len(successful)}/{num_requests}")
    print(f"Failed requests: {len(failed)}/{num_requests}")
    print(f"Total time: {total_time}s")

    if quotes:
        deliverable = [q for q in quotes if q["deliverable"]]
        print(f"\nQuotes: {len(deliverable)}/{len(quotes)} deliverable")
        reasons: dict[str, int] = {}
        for q in quotes:
            if not q["deliverable"]:
                reasons[q["reason"]] = reasons.get(q["reason"], 0) + 1
        for reason, count in sorted(reasons.items(), key=lambda kv: -kv[1]):
            print(f"   {reason}: {count}")

    if successful:
        times = [r["time"] for r in successful]
        print("\nLatency:")
        print(f"   Average: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")

    if failed:
        print("\nFailed request details (showing first 5):")
        for f in failed[:5]:
            print(f"   #{f['num']} [{f['kind']}]: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_requests,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


def main() -> None:
    global API_BASE_URL

    parser = argparse.ArgumentParser(description="Delivery quote load simulation")
    parser.add_argument("--mode", choices=["quote", "slots", "both"], default="both")
    parser.add_argument("--requests", type=int, default=TOTAL_REQUESTS)
    parser.add_argument("--url", default=API_BASE_URL)
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    asyncio.run(run_simulation(args.mode, args.requests))


if __name__ == "__main__":
    main()
