"""
Integration tests for Prometheus metrics.

These tests verify that decisions, overrides and HTTP requests are counted
and exposed on /metrics.
"""

import pytest
from prometheus_client import REGISTRY

from loan_decision_engine.core.config import settings


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetricsEndpoint:
    """GET /metrics"""

    @pytest.mark.asyncio
    async def test_exposes_decision_metrics(self, client):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "lde_decision_total" in response.text
        assert "lde_operation_latency_seconds" in response.text
        assert "lde_http_requests_total" in response.text

    @pytest.mark.asyncio
    async def test_disabled_metrics_return_404(self, client, monkeypatch):
        monkeypatch.setattr(settings, "metrics_enabled", False)

        response = await client.get("/metrics")

        assert response.status_code == 404


class TestDecisionCounters:
    """Counters move with recorded decisions."""

    @pytest.mark.asyncio
    async def test_assessment_counts_decision(self, client, seed):
        await seed.standard_loan()
        before = sample("lde_decision_total", result="APPROVED", source="automated")

        await client.post("/v1/loans/L-1/assessment", json={"assessment_date": "2025-09-17"})

        after = sample("lde_decision_total", result="APPROVED", source="automated")
        assert after == before + 1

    @pytest.mark.asyncio
    async def test_reused_final_decision_is_not_counted(self, client, seed):
        await seed.standard_loan()
        await client.post("/v1/loans/L-1/assessment", json={"assessment_date": "2025-09-17"})
        before = sample("lde_decision_total", result="APPROVED", source="automated")

        await client.post("/v1/loans/L-1/assessment", json={"assessment_date": "2025-09-17"})

        assert sample("lde_decision_total", result="APPROVED", source="automated") == before

    @pytest.mark.asyncio
    async def test_override_is_counted(self, client, seed):
        await seed.standard_loan()
        assessed = await client.post(
            "/v1/loans/L-1/assessment",
            json={"assessment_date": "2025-09-17"},
        )
        before = sample("lde_override_total", result="MANUAL_REVIEW")

        await client.post(
            f"/v1/decisions/{assessed.json()['decision_id']}/override",
            json={"new_result": "MANUAL_REVIEW", "override_reason": "Second opinion"},
            headers={"X-User-Id": "manager-1"},
        )

        assert sample("lde_override_total", result="MANUAL_REVIEW") == before + 1

    @pytest.mark.asyncio
    async def test_http_requests_use_route_template(self, client):
        labels = {
            "method": "GET",
            "endpoint": "/v1/loans/{loan_id}/decisions",
            "status": "404",
        }
        before = sample("lde_http_requests_total", **labels)

        await client.get("/v1/loans/L-404/decisions")

        assert sample("lde_http_requests_total", **labels) == before + 1
