# bp_manager/models/__init__.py

from .user import User, UserRole
from .medication import Medication, MedicationFrequency, Weekday
from .dose_log import DoseLog
from .blood_pressure import BloodPressureReading, ReadingLocation, ReadingPosition, ReadingArm
from .message import Message, MessagePriority
from .activity import Activity, ActivityType
from .resource import (
    Resource,
    ResourceAssignment,
    ResourceCategory,
    ResourceDifficulty,
    AssignmentStatus,
    AssignmentPriority
)
from .medication_template import MedicationTemplate, TemplateCategory, DurationUnit, ApprovalStatus

__all__ = [
    "User",
    "UserRole",
    "Medication",
    "MedicationFrequency",
    "Weekday",
    "DoseLog",
    "BloodPressureReading",
    "ReadingLocation",
    "ReadingPosition",
    "ReadingArm",
    "Message",
    "MessagePriority",
    "Activity",
    "ActivityType",
    "Resource",
    "ResourceAssignment",
    "ResourceCategory",
    "ResourceDifficulty",
    "AssignmentStatus",
    "AssignmentPriority",
    "MedicationTemplate",
    "TemplateCategory",
    "DurationUnit",
    "ApprovalStatus"
]
