# backend/tutorhub/core/enums.py
"""
Core enums shared across layers.
"""

from enum import Enum


class ParticipantRole(str, Enum):
    """Which side of a booking a user is acting on."""

    TEACHER = "teacher"
    STUDENT = "student"
