# backend/workshop/core/config.py
"""
Environment-driven settings.

Values come from the process environment, optionally seeded from a `.env`
file (existing variables win).
"""
import enum
import os
from dataclasses import dataclass

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv(usecwd=True), override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Next-service reminders
REMINDER_HORIZON_DAYS = _int_env("REMINDER_HORIZON_DAYS", 116)
SERVICE_INTERVAL_DAYS = _int_env("SERVICE_INTERVAL_DAYS", 182)
SERVICE_INTERVAL_KM = _int_env("SERVICE_INTERVAL_KM", 10000)


class LicenseMode(str, enum.Enum):
    COMMUNITY = "community"
    COMMERCIAL = "commercial"


@dataclass(frozen=True)
class ReportConfig:
    output_directory: str
    license_mode: LicenseMode = LicenseMode.COMMUNITY


def report_config_from_env() -> ReportConfig:
    return ReportConfig(
        output_directory=os.getenv("REPORT_OUTPUT_DIR", os.path.join(os.getcwd(), "report_outputs")),
        license_mode=LicenseMode(os.getenv("REPORT_LICENSE_MODE", LicenseMode.COMMUNITY.value).lower()),
    )
