"""API endpoint integration tests.

Tests the FastAPI endpoints for payroll run operations.
"""

from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

PAYROLL_ADMIN_ID = UUID("adfb6898-026f-fa17-8583-404672c7972a")

pytestmark = pytest.mark.asyncio

HEADERS = {"X-User-ID": str(PAYROLL_ADMIN_ID)}


async def _create_run(client: AsyncClient, month: int = 9, year: int = 2025) -> dict:
    response = await client.post(
        "/api/v1/payroll/runs", headers=HEADERS, json={"month": month, "year": year}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert "timestamp" in data

    async def test_readiness_check(self, client: AsyncClient):
        """Readiness endpoint should return 200."""
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        """Liveness endpoint should return 200."""
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestPayrollRunCRUD:
    """Test payroll run endpoints."""

    async def test_create_payroll_run(self, client: AsyncClient):
        """POST /api/v1/payroll/runs should create a draft run."""
        data = await _create_run(client)

        assert data["status"] == "draft"
        assert data["period_start"] == "2025-09-01"
        assert data["period_end"] == "2025-09-30"
        assert data["created_by"] == str(PAYROLL_ADMIN_ID)
        assert data["next_statuses"] == ["processing", "cancelled"]
        assert data["results_locked"] is False

    async def test_create_is_idempotent_for_drafts(self, client: AsyncClient):
        first = await _create_run(client)
        second = await _create_run(client)

        assert second["id"] == first["id"]

    async def test_create_without_user_header(self, client: AsyncClient):
        response = await client.post("/api/v1/payroll/runs", json={"month": 1, "year": 2025})

        assert response.status_code == 201
        assert response.json()["created_by"] is None

    async def test_invalid_user_header(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payroll/runs",
            headers={"X-User-ID": "not-a-uuid"},
            json={"month": 1, "year": 2025},
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "payload,field",
        [({"month": 13, "year": 2025}, "month"), ({"month": 1, "year": 2019}, "year")],
    )
    async def test_invalid_period(self, client: AsyncClient, payload, field):
        response = await client.post("/api/v1/payroll/runs", json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["detail"].startswith(f"{field}:")

    async def test_get_payroll_run(self, client: AsyncClient):
        created = await _create_run(client)

        response = await client.get(f"/api/v1/payroll/runs/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    async def test_get_payroll_run_not_found(self, client: AsyncClient):
        response = await client.get(f"/api/v1/payroll/runs/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_list_payroll_runs(self, client: AsyncClient):
        await _create_run(client, 1, 2025)
        await _create_run(client, 2, 2025)
        await _create_run(client, 12, 2024)

        response = await client.get("/api/v1/payroll/runs", params={"year": 2025, "limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["limit"] == 1
        assert [(r["month"], r["year"]) for r in data["items"]] == [(2, 2025)]

    async def test_list_rejects_unknown_status(self, client: AsyncClient):
        response = await client.get("/api/v1/payroll/runs", params={"status": "paid"})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["detail"].startswith("query.status:")


class TestPayrollRunTransitions:
    """Test process/approve/cancel/reset endpoints."""

    async def test_process_and_approve(self, client: AsyncClient, workforce):
        created = await _create_run(client)

        response = await client.post(
            f"/api/v1/payroll/runs/{created['id']}/process", headers=HEADERS
        )
        assert response.status_code == 200, response.text
        processed = response.json()
        assert processed["status"] == "completed"
        assert processed["total_employees"] == 2
        assert float(processed["total_net_salary"]) == 346736
        assert processed["processed_by"] == str(PAYROLL_ADMIN_ID)

        response = await client.post(
            f"/api/v1/payroll/runs/{created['id']}/approve", headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["approved_by"] == str(PAYROLL_ADMIN_ID)
        assert response.json()["next_statuses"] == []
        assert response.json()["results_locked"] is True

    async def test_approve_draft_is_invalid_state(self, client: AsyncClient):
        created = await _create_run(client)

        response = await client.post(f"/api/v1/payroll/runs/{created['id']}/approve")

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_STATE"
        assert "completed" in body["detail"]

    async def test_process_approved_is_invalid_state(self, client: AsyncClient, workforce):
        created = await _create_run(client)
        await client.post(f"/api/v1/payroll/runs/{created['id']}/process")
        await client.post(f"/api/v1/payroll/runs/{created['id']}/approve")

        response = await client.post(f"/api/v1/payroll/runs/{created['id']}/process")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATE"

    async def test_process_unknown_run(self, client: AsyncClient):
        response = await client.post(f"/api/v1/payroll/runs/{uuid4()}/process")

        assert response.status_code == 404

    async def test_cancel(self, client: AsyncClient):
        created = await _create_run(client)

        response = await client.post(f"/api/v1/payroll/runs/{created['id']}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    async def test_reset_draft_is_invalid_state(self, client: AsyncClient):
        created = await _create_run(client)

        response = await client.post(f"/api/v1/payroll/runs/{created['id']}/reset")

        assert response.status_code == 400


class TestPayslipEndpoints:
    """Test payslip listing."""

    async def test_list_payslips_for_run(self, client: AsyncClient, workforce):
        created = await _create_run(client)
        await client.post(f"/api/v1/payroll/runs/{created['id']}/process")

        response = await client.get(
            "/api/v1/payroll/payslips", params={"payroll_run_id": created["id"]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        names = {p["employee_name"] for p in data["items"]}
        assert names == {"Fatima Ali", "Usman Malik"}

    async def test_get_payslip(self, client: AsyncClient, workforce):
        filer = workforce[0]
        created = await _create_run(client)
        await client.post(f"/api/v1/payroll/runs/{created['id']}/process")
        listing = await client.get(
            "/api/v1/payroll/payslips", params={"employee_id": str(filer.id)}
        )
        payslip_id = listing.json()["items"][0]["id"]

        response = await client.get(f"/api/v1/payroll/payslips/{payslip_id}")

        assert response.status_code == 200
        data = response.json()
        assert float(data["gross_salary"]) == 163393
        assert float(data["net_salary"]) == 153974
        assert data["tax_slab"] == "1,200,001 - 2,200,000"

    async def test_get_payslip_not_found(self, client: AsyncClient):
        response = await client.get(f"/api/v1/payroll/payslips/{uuid4()}")

        assert response.status_code == 404


class TestTaxEndpoints:
    """Test the tax preview and bracket table."""

    async def test_calculate_tax(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payroll/calculate-tax",
            json={"gross_salary": 150000, "is_filer": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert float(data["income_tax"]) == 7500
        assert float(data["eobi_employee"]) == 225
        assert float(data["sessi_employer"]) == 188
        assert float(data["net_salary"]) == 142275

    async def test_calculate_tax_rejects_negative_gross(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payroll/calculate-tax", json={"gross_salary": -1, "is_filer": True}
        )

        assert response.status_code == 422

    async def test_tax_slabs_default_to_filer(self, client: AsyncClient):
        response = await client.get("/api/v1/payroll/tax-slabs")

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "filer"
        assert data["tax_year"] == "2024-25"
        assert len(data["slabs"]) == 6
        assert data["slabs"][-1]["max"] is None
        assert data["slabs"][-1]["label"] == "4,100,001 - Above"

    async def test_tax_slabs_non_filer(self, client: AsyncClient):
        response = await client.get("/api/v1/payroll/tax-slabs", params={"type": "non_filer"})

        assert response.status_code == 200
        assert float(response.json()["slabs"][1]["rate"]) == 0.0275
