from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    PATIENT = "patient"


class AccountStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
