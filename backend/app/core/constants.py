# backend/app/core/constants.py
"""
Application-wide constants for the training scheduler.

Values that operators may want to tune live in ``config.Settings``; the
defaults for those settings are declared here so tests and migrations can
reference them without instantiating settings.
"""

API_TITLE = "Training Scheduler API"
API_DESCRIPTION = (
    "Scheduling core of the training-delivery ERP: session and variant bookings, "
    "resource conflict detection and per-site availability."
)
API_VERSION = "1.0.0"

# Mobile units used as placeholders ("comodín"); they never block a booking.
DEFAULT_ALWAYS_AVAILABLE_UNIT_IDS = (
    "52377f13-05dd-4830-88aa-0f5c78bee750",
    "0000",
)

DEFAULT_PIPELINES_WITHOUT_DATES = (
    "gep services",
    "preventivos",
    "pci",
    "formacion empresas",
    "formacion empresa",
)
DEFAULT_PIPELINES_WITHOUT_ROOM = ("gep services", "preventivos", "pci")

IN_COMPANY_SITE_LABEL = "In Company"

# Identifier sizes
ULID_LENGTH = 26
EXTERNAL_ID_MAX_LENGTH = 64
