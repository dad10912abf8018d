"""
Human-readable explanation of an analyzed reading.

Each vital sign gets one sentence chosen by clinical tiers; the overall
severity picks the header and the closing recommendation. Wording may change,
the tier thresholds may not.
"""

from vitalcheck.domain.models import Reading, Severity

_HEADERS = {
    Severity.CRITICAL: "URGENT HEALTH ALERT:",
    Severity.WARNING: "HEALTH WARNING:",
    Severity.NORMAL: "HEALTH STATUS:",
}

_CLOSINGS = {
    Severity.CRITICAL: (
        "Please seek immediate medical attention as one or more of your vital signs "
        "indicates a potentially serious condition."
    ),
    Severity.WARNING: (
        "Some of your vital signs are outside normal ranges. "
        "Consider consulting a healthcare provider for evaluation."
    ),
    Severity.NORMAL: (
        "Your vital signs are generally within acceptable ranges. Continue monitoring regularly."
    ),
}


def _fmt(value: float) -> str:
    return f"{value:g}"


def describe_blood_pressure(systolic: float, diastolic: float) -> str:
    bp = f"Your blood pressure (BP) of {_fmt(systolic)}/{_fmt(diastolic)} mmHg"
    if systolic >= 180 or diastolic >= 120:
        return (
            f"{bp} is very high and falls under hypertensive crisis. "
            "This requires immediate medical attention."
        )
    if systolic >= 160 or diastolic >= 100:
        return f"{bp} is high (stage 2 hypertension) and requires prompt medical evaluation."
    if systolic >= 140 or diastolic >= 90:
        return (
            f"{bp} is high (stage 1 hypertension). "
            "Consider consulting with a healthcare provider."
        )
    if systolic >= 130 or diastolic >= 85:
        return f"{bp} is elevated. Lifestyle modifications may be recommended."
    if systolic < 90 or diastolic < 60:
        return f"{bp} is lower than normal. This could indicate hypotension."
    return f"{bp} is within normal range."


def describe_heart_rate(heart_rate: float) -> str:
    hr = f"Your heart rate of {_fmt(heart_rate)} bpm"
    if heart_rate > 100:
        return f"{hr} is elevated (tachycardia)."
    if heart_rate < 60:
        return f"{hr} is lower than normal (bradycardia)."
    return f"{hr} is within the normal range (60-100 bpm)."


def describe_temperature(temperature: float) -> str:
    temp = f"Your temperature of {_fmt(temperature)}°C"
    if temperature >= 38.3:
        return (
            f"{temp} indicates a significant fever. This could be due to infection "
            "or other conditions requiring medical attention."
        )
    if temperature >= 37.3:
        return (
            f"{temp} is slightly elevated, suggesting a mild fever. This could be due to "
            "an infection, stress, or another underlying condition."
        )
    if temperature <= 35.5:
        return f"{temp} is below normal, which could indicate hypothermia or other health issues."
    return f"{temp} is within normal range."


def describe_oxygen(oxygen_level: float) -> str:
    o2 = f"Your oxygen level of {_fmt(oxygen_level)}%"
    if oxygen_level < 90:
        return f"{o2} is critically low (hypoxemia) and requires immediate medical attention."
    if oxygen_level < 95:
        return f"{o2} is lower than optimal. This may require medical evaluation."
    return f"{o2} is within normal range."


def build_explanation(reading: Reading, overall: Severity) -> str:
    """Compose header, per-vital commentary and closing recommendation."""
    sections = [
        _HEADERS[overall],
        describe_blood_pressure(reading.blood_pressure_systolic, reading.blood_pressure_diastolic),
        describe_heart_rate(reading.heart_rate),
        describe_temperature(reading.temperature),
        describe_oxygen(reading.oxygen_level),
        _CLOSINGS[overall],
    ]
    return "\n\n".join(sections)


def alert_message(severity: Severity) -> str:
    """Short message attached to an alert raised for a full reading."""
    if severity is Severity.CRITICAL:
        return (
            "URGENT: Your health metrics have reached critical levels. "
            "Please consult a healthcare provider immediately."
        )
    if severity is Severity.WARNING:
        return (
            "ATTENTION: Some of your health metrics need attention. "
            "Consider consulting a healthcare provider."
        )
    return "Your health metrics are within normal ranges, but close monitoring is recommended."
