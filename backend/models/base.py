"""
Base enums and shared model definitions.
"""

from enum import Enum


class Modality(str, Enum):
    """How the user wants the interview delivered."""

    UNSELECTED = "unselected"  # Nothing chosen yet
    IMMEDIATE = "immediate"  # Start the AI interview in the browser now
    PHONE_CALLBACK = "phone_callback"  # Have the AI interviewer call the user


class Phase(str, Enum):
    """Phase of the call-request lifecycle."""

    IDLE = "idle"  # Choosing a modality
    COLLECTING_PHONE = "collecting_phone"  # Phone input shown
    SUBMITTING = "submitting"  # Waiting on the Outbound Call Service
    IN_PROGRESS = "in_progress"  # Provider accepted, showing the calling notice
    FAILED = "failed"  # Provider rejected, error shown inline


class ViewName(str, Enum):
    """Renderable views of the interview page."""

    CHOOSE_MODALITY = "choose_modality"
    PHONE_ENTRY = "phone_entry"
    CALLING = "calling"
    AGENT = "agent"
