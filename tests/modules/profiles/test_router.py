"""Tests for the admin patient detail endpoint."""

import pytest
from fastapi import status
from httpx import AsyncClient

from tests.conftest import auth_headers
from vitalsync.modules.vitals.models import VitalReading
from vitalsync.modules.vitals.sources import LiveVitalsSource


@pytest.mark.asyncio
class TestPatientDetail:
    async def test_detail_without_reading(
        self, client: AsyncClient, admin_id: str, patient_id: str
    ) -> None:
        response = await client.get(
            f"/api/v1/patients/{patient_id}", headers=auth_headers(admin_id)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["profile"]["fullName"] == "Priya Sharma"
        assert data["profile"]["phoneNumber"] == "+15550001111"
        assert data["current"] is None

    async def test_detail_with_current_reading(
        self,
        client: AsyncClient,
        admin_id: str,
        patient_id: str,
        vitals_source: LiveVitalsSource,
    ) -> None:
        vitals_source.publish(patient_id, VitalReading(heart_rate=48, spo2=97, temperature=36.7))

        response = await client.get(
            f"/api/v1/patients/{patient_id}", headers=auth_headers(admin_id)
        )

        current = response.json()["current"]
        assert current["status"] == "critical"
        assert current["statuses"]["heartRate"] == "critical"

    async def test_unknown_patient_is_404(self, client: AsyncClient, admin_id: str) -> None:
        response = await client.get("/api/v1/patients/nobody", headers=auth_headers(admin_id))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_patient_cannot_use_admin_view(
        self, client: AsyncClient, patient_id: str
    ) -> None:
        response = await client.get(
            f"/api/v1/patients/{patient_id}", headers=auth_headers(patient_id)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
