#!/usr/bin/env python3
"""Smoke check a running Commute Stations API instance."""

import asyncio
import sys
from datetime import datetime, timedelta

import httpx


async def smoke_check(base_url: str = "http://localhost:8080", contract_name: str = "Paris") -> bool:
    print("Commute Stations API smoke check")
    print("=" * 50)
    ok = True

    async with httpx.AsyncClient(base_url=base_url, timeout=10) as client:
        # 1. Health checks
        print("\n1. Health...")
        try:
            response = await client.get("/health/ready")
            checks = response.json().get("checks", {})
            print(f"   status={response.json().get('status')} checks={checks}")
            ok = ok and all(checks.values())
        except httpx.HTTPError as e:
            print(f"   API connection failed: {e}")
            return False

        # 2. Whole contract
        print(f"\n2. Stations of {contract_name}...")
        response = await client.get("/stations", params={"contract-name": contract_name})
        stations = response.json() if response.status_code == 200 else []
        print(f"   HTTP {response.status_code}, {len(stations)} stations")
        ok = ok and response.status_code == 200
        if not stations:
            return ok

        first = stations[0]

        # 3. By number
        print(f"\n3. Station {first['number']} by number...")
        response = await client.get(
            "/stations",
            params={"contract-name": contract_name, "numbers": str(first["number"])},
        )
        print(f"   HTTP {response.status_code}, {len(response.json())} stations")
        ok = ok and response.status_code == 200

        # 4. Nearby
        print(f"\n4. Stations near {first['name']}...")
        response = await client.get(
            "/stations",
            params={
                "contract-name": contract_name,
                "lat": first["position"]["lat"],
                "lng": first["position"]["lng"],
            },
        )
        nearby = response.json() if response.status_code == 200 else []
        print(f"   HTTP {response.status_code}, {len(nearby)} stations")
        ok = ok and response.status_code == 200

        # 5. Yesterday's history
        date = (datetime.utcnow() - timedelta(days=1)).strftime("%Y%m%d-0000")
        print(f"\n5. Availability of station {first['number']} from {date}...")
        response = await client.get(f"/stations/{contract_name}/{first['number']}/{date}/availability-infos")
        print(f"   HTTP {response.status_code}, {len(response.json())} samples")
        ok = ok and response.status_code == 200

    print("\n" + "=" * 50)
    print("Smoke check passed" if ok else "Smoke check FAILED")
    return ok


if __name__ == "__main__":
    base = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8080"
    sys.exit(0 if asyncio.run(smoke_check(base)) else 1)
