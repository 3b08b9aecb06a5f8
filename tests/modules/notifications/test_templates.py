from datetime import datetime, timezone

from vitalsync.modules.notifications.schemas import DispatchVitals
from vitalsync.modules.notifications.templates import (
    LEVEL_COLORS,
    email_subject,
    render_alert_email,
    sms_body,
)
from vitalsync.modules.vitals.models import MotionStatus


def test_subject_and_sms_carry_level_and_name() -> None:
    assert email_subject("Priya Sharma", "warning") == "[VitalSync WARNING] Alert for Priya Sharma"
    assert sms_body("Priya Sharma", "SpO2 88%", "critical") == "[VitalSync CRITICAL] Priya Sharma: SpO2 88%"


def test_email_lists_provided_vitals_only() -> None:
    html = render_alert_email(
        "Priya Sharma",
        "SpO2 dropped",
        "critical",
        DispatchVitals(heart_rate=112.0, spo2=88.5, motion_status=MotionStatus.FALL_DETECTED),
        sent_at=datetime(2024, 5, 1, 9, 30, 5, tzinfo=timezone.utc),
    )

    assert LEVEL_COLORS["critical"] in html
    assert "CRITICAL ALERT" in html
    assert "112 bpm" in html
    assert "88.5 %" in html
    assert "fall_detected" in html
    assert "Temperature" not in html
    assert "2024-05-01 09:30:05 UTC" in html


def test_email_escapes_user_text() -> None:
    html = render_alert_email("<script>x</script>", "a & b", "warning", None)

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "a &amp; b" in html
    assert "<table" not in html
