from datetime import datetime, timezone
from html import escape

from vitalsync.modules.notifications.schemas import DispatchVitals

LEVEL_COLORS = {
    "critical": "#dc2626",
    "warning": "#d97706",
}

VITAL_ROWS = [
    ("heart_rate", "Heart rate", "bpm"),
    ("spo2", "SpO₂", "%"),
    ("temperature", "Temperature", "°C"),
    ("motion_status", "Motion", ""),
]


def email_subject(patient_name: str, level: str) -> str:
    return f"[VitalSync {level.upper()}] Alert for {patient_name}"


def sms_body(patient_name: str, message: str, level: str) -> str:
    return f"[VitalSync {level.upper()}] {patient_name}: {message}"


def render_alert_email(
    patient_name: str,
    message: str,
    level: str,
    vitals: DispatchVitals | None,
    sent_at: datetime | None = None,
) -> str:
    sent_at = (sent_at or datetime.now(timezone.utc)).astimezone(timezone.utc)
    color = LEVEL_COLORS.get(level, "#2563eb")

    rows = []
    for key, label, unit in VITAL_ROWS:
        value = getattr(vitals, key, None) if vitals else None
        if value is None:
            continue
        shown = value.value if hasattr(value, "value") else f"{value:g}"
        suffix = f" {unit}" if unit else ""
        rows.append(
            f'<tr><td style="padding:4px 12px 4px 0;color:#6b7280">{escape(label)}</td>'
            f'<td style="padding:4px 0"><strong>{escape(str(shown))}{escape(suffix)}</strong></td></tr>'
        )
    table = (
        f'<table style="border-collapse:collapse;margin-top:12px">{"".join(rows)}</table>'
        if rows
        else ""
    )

    return (
        '<div style="font-family:Arial,sans-serif;max-width:560px">'
        f'<div style="background:{color};color:#ffffff;padding:12px 16px;border-radius:6px 6px 0 0">'
        f"<strong>{escape(level.upper())} ALERT</strong> &middot; {escape(patient_name)}</div>"
        '<div style="border:1px solid #e5e7eb;border-top:none;padding:16px;border-radius:0 0 6px 6px">'
        f"<p style=\"margin:0\">{escape(message)}</p>"
        f"{table}"
        f'<p style="margin-top:16px;color:#9ca3af;font-size:12px">'
        f"{sent_at.strftime('%Y-%m-%d %H:%M:%S')} UTC</p>"
        "</div></div>"
    )
