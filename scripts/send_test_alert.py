#!/usr/bin/env python3
"""
Manual tooling for the alert pipeline.

Usage:
    # Post an alert to the dispatch endpoint
    python scripts/send_test_alert.py dispatch --patient-id <patient_id> --level critical --heart-rate 45

    # Print simulated readings with their triage (no server needed)
    python scripts/send_test_alert.py simulate --count 5 --bias-abnormal

    # Push a reading into a server running with VITALS_SOURCE=live
    python scripts/send_test_alert.py ingest --patient-id <patient_id> --heart-rate 130 --spo2 91
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Optional

import httpx
import typer

from vitalsync.core import security
from vitalsync.modules.vitals.classifier import classify_vitals
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator

app = typer.Typer()

BASE_URL = "http://localhost:8000"


@app.command()
def dispatch(
    patient_id: str = typer.Option(..., help="Patient ID"),
    level: str = typer.Option("critical", help="Alert level (warning, critical)"),
    message: str = typer.Option("Test alert from CLI", help="Alert message"),
    heart_rate: Optional[float] = typer.Option(None, help="Heart rate to include"),
    spo2: Optional[float] = typer.Option(None, help="SpO2 to include"),
    temperature: Optional[float] = typer.Option(None, help="Temperature to include"),
    base_url: str = typer.Option(BASE_URL, help="API base URL"),
):
    """Post one alert to the send-alert endpoint and show the outcome."""
    vitals = {
        key: value
        for key, value in {
            "heart_rate": heart_rate,
            "spo2": spo2,
            "temperature": temperature,
        }.items()
        if value is not None
    }
    payload = {"patient_id": patient_id, "message": message, "level": level}
    if vitals:
        payload["vitals"] = vitals
    asyncio.run(_dispatch(base_url, payload))


async def _dispatch(base_url: str, payload: dict) -> None:
    typer.echo(f"Sending {payload['level']} alert for patient {payload['patient_id']}...")
    async with httpx.AsyncClient(timeout=15.0) as client:
        response = await client.post(
            f"{base_url}/api/v1/notifications/send-alert", json=payload
        )
    if response.status_code != 200:
        typer.echo(f"Dispatch failed ({response.status_code}): {response.text}", err=True)
        raise typer.Exit(1)

    data = response.json()
    typer.echo(f"Alert ID:   {data['alert_id']}")
    typer.echo(f"Email sent: {data['email_sent']} ({data.get('email_status')})")
    typer.echo(f"SMS sent:   {data['sms_sent']} ({data.get('sms_status')})")


@app.command()
def simulate(
    count: int = typer.Option(5, min=1, help="Number of readings"),
    bias_abnormal: bool = typer.Option(False, help="Bias towards abnormal readings"),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible output"),
):
    """Print synthetic readings and how they classify."""
    generator = SyntheticSignalGenerator(random.Random(seed))
    for _ in range(count):
        reading = generator.generate_reading(bias_abnormal)
        statuses = classify_vitals(reading)
        typer.echo(
            f"{reading.timestamp.isoformat(timespec='seconds')}  "
            f"HR {reading.heart_rate:>5}  SpO2 {reading.spo2:>5}  "
            f"T {reading.temperature:>4}  {reading.motion_status.value:<13} "
            f"-> {statuses.overall.value}"
        )


@app.command()
def ingest(
    patient_id: str = typer.Option(..., help="Patient ID"),
    heart_rate: float = typer.Option(..., help="Heart rate (bpm)"),
    spo2: float = typer.Option(98.0, help="SpO2 (%)"),
    temperature: float = typer.Option(36.8, help="Temperature (C)"),
    motion_status: str = typer.Option("resting", help="resting, active or fall_detected"),
    base_url: str = typer.Option(BASE_URL, help="API base URL"),
):
    """Publish a reading to the live source as if it came from sensor hardware."""
    asyncio.run(
        _ingest(
            base_url,
            patient_id,
            {
                "heartRate": heart_rate,
                "spo2": spo2,
                "temperature": temperature,
                "motionStatus": motion_status,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
    )


async def _ingest(base_url: str, patient_id: str, reading: dict) -> None:
    # Tokens are signed with the local SECRET_KEY, so this only works against a dev server.
    token = security.create_access_token(subject=patient_id)
    async with httpx.AsyncClient(timeout=15.0) as client:
        response = await client.post(
            f"{base_url}/api/v1/vitals/{patient_id}/readings",
            headers={"Authorization": f"Bearer {token}"},
            json=reading,
        )
    if response.status_code != 202:
        typer.echo(f"Ingest failed ({response.status_code}): {response.text}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Accepted: {response.json()}")


if __name__ == "__main__":
    app()
