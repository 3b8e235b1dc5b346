"""Enum definitions for lessons service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    CUSTOMER = "customer"


class WaitlistStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CoverageStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
