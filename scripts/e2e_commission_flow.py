#!/usr/bin/env python3
"""
E2E smoke run for the Commission & Withdrawal Ledger
=====================================================
Runs against a live server seeded by scripts/seed_data.py:
1. Associate balance and listings
2. Project approval with batch commission generation
3. Duplicate generation is rejected
4. Withdrawal request validation and balance gate
5. Admin processing (exactly once)
6. Admin dashboard

Usage:
    python scripts/seed_data.py          # prints the export lines below
    export ADMIN_TOKEN=... ASSOCIATE_TOKEN=... PROJECT_ID=...
    python scripts/e2e_commission_flow.py
"""

import asyncio
import os
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

# Configuration
BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
API = "/api/v1/commissions"
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")
ASSOCIATE_TOKEN = os.getenv("ASSOCIATE_TOKEN", "")
PROJECT_ID = os.getenv("PROJECT_ID", "")


# Test Results Tracking
@dataclass
class TestResult:
    name: str
    passed: bool
    duration_ms: float
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class LedgerFlowSuite:
    def __init__(self):
        self.results: List[TestResult] = []
        self.client: Optional[httpx.AsyncClient] = None

        # Values carried between steps
        self.ids = {
            "payment_id": None,
            "withdrawal_id": None,
        }
        self.available_before: Optional[Decimal] = None

    async def setup(self):
        """Initialize HTTP client"""
        self.client = httpx.AsyncClient(base_url=BASE_URL, timeout=30.0)

    async def teardown(self):
        """Cleanup"""
        if self.client:
            await self.client.aclose()

    @staticmethod
    def headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    async def run_test(self, name: str, test_func):
        """Run a single step and record results"""
        start = datetime.now()
        try:
            result = await test_func()
            duration = (datetime.now() - start).total_seconds() * 1000
            self.results.append(TestResult(
                name=name,
                passed=True,
                duration_ms=duration,
                details=result if isinstance(result, dict) else {}
            ))
            print(f"  ✅ {name} ({duration:.0f}ms)")
            return True
        except Exception as e:
            duration = (datetime.now() - start).total_seconds() * 1000
            self.results.append(TestResult(
                name=name,
                passed=False,
                duration_ms=duration,
                error=str(e)
            ))
            print(f"  ❌ {name} - {e}")
            return False

    async def get_available(self) -> Decimal:
        response = await self.client.get(f"{API}/stats", headers=self.headers(ASSOCIATE_TOKEN))
        assert response.status_code == 200, f"Stats failed: {response.text}"
        return Decimal(str(response.json()["data"]["available_balance"]))

    # ==================== 1. BALANCE ====================
    async def test_stats(self):
        self.available_before = await self.get_available()
        return {"available_balance": str(self.available_before)}

    async def test_stats_requires_token(self):
        response = await self.client.get(f"{API}/stats")
        assert response.status_code == 401, f"Expected 401, got {response.status_code}"

    # ==================== 2. PROJECT APPROVAL ====================
    async def test_approve_project(self):
        response = await self.client.put(
            f"{API}/approve-project/{PROJECT_ID}",
            headers=self.headers(ADMIN_TOKEN),
        )
        assert response.status_code == 200, f"Approve failed: {response.text}"
        data = response.json()["data"]
        assert data["project"]["status"] == "COMPLETED"
        return {"generated": len(data["commissions"])}

    async def test_approve_project_again(self):
        response = await self.client.put(
            f"/api/v1/projects/{PROJECT_ID}/complete",
            headers=self.headers(ADMIN_TOKEN),
        )
        assert response.status_code == 409, f"Expected 409, got {response.status_code}"
        assert response.json()["code"] == "ProjectAlreadyCompleted"

    async def test_associate_cannot_approve(self):
        response = await self.client.put(
            f"{API}/approve-project/{PROJECT_ID}",
            headers=self.headers(ASSOCIATE_TOKEN),
        )
        assert response.status_code == 403, f"Expected 403, got {response.status_code}"

    # ==================== 3. GENERATION ====================
    async def test_list_commissions(self):
        response = await self.client.get(API, headers=self.headers(ASSOCIATE_TOKEN))
        assert response.status_code == 200, f"List failed: {response.text}"
        commissions = response.json()["data"]
        assert commissions, "Associate has no commissions after approval"
        self.ids["payment_id"] = commissions[0]["payment_id"]
        return {"count": len(commissions)}

    async def test_duplicate_generation(self):
        response = await self.client.post(
            f"{API}/generate/{self.ids['payment_id']}",
            headers=self.headers(ASSOCIATE_TOKEN),
        )
        assert response.status_code == 409, f"Expected 409, got {response.status_code}"
        assert response.json()["code"] == "AlreadyGenerated"

    # ==================== 4. WITHDRAWAL REQUEST ====================
    async def test_withdrawal_below_minimum(self):
        response = await self.client.post(
            f"{API}/withdrawals",
            headers=self.headers(ASSOCIATE_TOKEN),
            json={"amount": 50, "method": "UPI", "accountDetails": "asha@okaxis"},
        )
        assert response.status_code == 400, f"Expected 400, got {response.status_code}"
        assert response.json()["code"] == "BelowMinimum"

    async def test_withdrawal_over_balance(self):
        available = await self.get_available()
        response = await self.client.post(
            f"{API}/withdrawals",
            headers=self.headers(ASSOCIATE_TOKEN),
            json={"amount": str(available + 1), "method": "UPI", "accountDetails": "asha@okaxis"},
        )
        assert response.status_code == 400, f"Expected 400, got {response.status_code}"
        assert response.json()["code"] == "InsufficientBalance"

    async def test_withdrawal_request(self):
        before = await self.get_available()
        response = await self.client.post(
            f"{API}/withdrawals",
            headers=self.headers(ASSOCIATE_TOKEN),
            json={"amount": 500, "method": "Bank Transfer", "accountDetails": "HDFC 50100012345678"},
        )
        assert response.status_code == 201, f"Request failed: {response.text}"
        data = response.json()["data"]
        assert data["status"] == "PENDING"
        assert data["reference"].startswith("WD")
        self.ids["withdrawal_id"] = data["id"]

        after = await self.get_available()
        assert after == before - Decimal("500"), f"Balance {before} -> {after}"
        return {"reference": data["reference"]}

    # ==================== 5. PROCESSING ====================
    async def test_admin_list(self):
        response = await self.client.get(
            f"{API}/admin/withdrawals",
            headers=self.headers(ADMIN_TOKEN),
            params={"status": "PENDING", "limit": 5},
        )
        assert response.status_code == 200, f"List failed: {response.text}"
        data = response.json()["data"]
        return data["pagination"]

    async def test_process_completed(self):
        response = await self.client.put(
            f"{API}/admin/withdrawals/{self.ids['withdrawal_id']}",
            headers=self.headers(ADMIN_TOKEN),
            json={"status": "COMPLETED", "notes": "NEFT UTR 1234"},
        )
        assert response.status_code == 200, f"Process failed: {response.text}"
        assert response.json()["data"]["status"] == "COMPLETED"

    async def test_process_again(self):
        response = await self.client.put(
            f"{API}/admin/withdrawals/{self.ids['withdrawal_id']}",
            headers=self.headers(ADMIN_TOKEN),
            json={"status": "CANCELLED"},
        )
        assert response.status_code == 409, f"Expected 409, got {response.status_code}"
        assert response.json()["code"] == "AlreadyProcessed"

    # ==================== 6. DASHBOARD ====================
    async def test_dashboard(self):
        response = await self.client.get(f"{API}/admin/dashboard", headers=self.headers(ADMIN_TOKEN))
        assert response.status_code == 200, f"Dashboard failed: {response.text}"
        return response.json()["data"]

    def print_summary(self):
        """Print run summary"""
        passed = sum(1 for r in self.results if r.passed)
        failed = sum(1 for r in self.results if not r.passed)
        total = len(self.results)

        print("\n" + "=" * 70)
        print("                    E2E LEDGER SUMMARY")
        print("=" * 70)
        print(f"\n  Total Steps: {total}")
        print(f"  ✅ Passed: {passed}")
        print(f"  ❌ Failed: {failed}")
        if total:
            print(f"  Success Rate: {(passed/total*100):.1f}%")

        if failed > 0:
            print("\n  Failed Steps:")
            for r in self.results:
                if not r.passed:
                    print(f"    - {r.name}: {r.error}")

        print("\n  Resources Captured:")
        for key, value in self.ids.items():
            if value:
                print(f"    {key}: {value}")

        print("\n" + "=" * 70)


async def main():
    """Run the ledger flow"""
    print("\n" + "=" * 70)
    print("     SP CITY CRM - COMMISSION LEDGER E2E FLOW")
    print("=" * 70)
    print(f"\n  Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"  Target: {BASE_URL}")
    print("=" * 70)

    if not (ADMIN_TOKEN and ASSOCIATE_TOKEN and PROJECT_ID):
        print("\n  ADMIN_TOKEN, ASSOCIATE_TOKEN and PROJECT_ID must be set (see scripts/seed_data.py)")
        return

    suite = LedgerFlowSuite()
    await suite.setup()

    try:
        print("\n💰 1. BALANCE")
        print("-" * 40)
        await suite.run_test("Associate Stats", suite.test_stats)
        await suite.run_test("Stats Without Token", suite.test_stats_requires_token)

        print("\n🏗️ 2. PROJECT APPROVAL")
        print("-" * 40)
        await suite.run_test("Associate Cannot Approve", suite.test_associate_cannot_approve)
        await suite.run_test("Approve Project", suite.test_approve_project)
        await suite.run_test("Approve Project Again", suite.test_approve_project_again)

        print("\n💵 3. COMMISSION GENERATION")
        print("-" * 40)
        await suite.run_test("List Commissions", suite.test_list_commissions)
        await suite.run_test("Duplicate Generation", suite.test_duplicate_generation)

        print("\n🏦 4. WITHDRAWAL REQUEST")
        print("-" * 40)
        await suite.run_test("Below Minimum", suite.test_withdrawal_below_minimum)
        await suite.run_test("Over Balance", suite.test_withdrawal_over_balance)
        await suite.run_test("Request Withdrawal", suite.test_withdrawal_request)

        print("\n✅ 5. PROCESSING")
        print("-" * 40)
        await suite.run_test("Admin Withdrawal List", suite.test_admin_list)
        await suite.run_test("Complete Withdrawal", suite.test_process_completed)
        await suite.run_test("Process Again", suite.test_process_again)

        print("\n📊 6. DASHBOARD")
        print("-" * 40)
        await suite.run_test("Admin Dashboard", suite.test_dashboard)

        suite.print_summary()

    finally:
        await suite.teardown()


if __name__ == "__main__":
    asyncio.run(main())
