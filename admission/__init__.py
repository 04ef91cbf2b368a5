"""Admission control for rate-limited collaborative sessions."""

from .config import AdmissionPolicy, Settings, get_settings
from .engine import AdmissionEngine
from .logging_config import configure_logging
from .models import Verdict

__all__ = [
    "AdmissionEngine",
    "AdmissionPolicy",
    "Settings",
    "Verdict",
    "configure_logging",
    "get_settings",
]
