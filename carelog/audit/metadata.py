# carelog/audit/metadata.py
"""
Typed metadata shapes per action family.

Each shape serializes to a JSON object with camelCase keys; unset (None)
fields are dropped. Call-sites that need something ad hoc may still pass a
plain mapping.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class ActionMetadata:
    extra: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value is not None:
                out[_camel(f.name)] = value
        out.update(self.extra)
        return out


@dataclass(frozen=True)
class PatientMetadata(ActionMetadata):
    patient_name: str | None = None
    reason: str | None = None
    family_id: str | None = None
    assigned_doctor: str | None = None


@dataclass(frozen=True)
class PatientTransferMetadata(ActionMetadata):
    patient_name: str | None = None
    doctor_id: str | None = None
    doctor_name: str | None = None
    previous_doctor_name: str | None = None


@dataclass(frozen=True)
class CheckInMetadata(ActionMetadata):
    patient_name: str | None = None
    check_in_type: str | None = None


@dataclass(frozen=True)
class VitalSignsMetadata(ActionMetadata):
    patient_name: str | None = None
    vital_signs: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class FamilyMetadata(ActionMetadata):
    family_name: str | None = None
    head_of_family: str | None = None
    member_count: int | None = None


@dataclass(frozen=True)
class FamilyAssignmentMetadata(ActionMetadata):
    patient_name: str | None = None
    family_id: str | None = None
    family_name: str | None = None
    new_family_created: bool | None = None


@dataclass(frozen=True)
class UserAccountMetadata(ActionMetadata):
    new_user_role: str | None = None
    new_user_email: str | None = None


@dataclass(frozen=True)
class UserUpdateMetadata(ActionMetadata):
    changes: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class UserDeletionMetadata(ActionMetadata):
    deleted_user_role: str | None = None
    deleted_user_email: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class LoginMetadata(ActionMetadata):
    login_method: str | None = None


@dataclass(frozen=True)
class FailedLoginMetadata(ActionMetadata):
    attempted_username: str | None = None
    reason: str | None = None
    attempts: int | None = None
    window_minutes: int | None = None


@dataclass(frozen=True)
class StockUpdateMetadata(ActionMetadata):
    update_type: str | None = None  # added | deducted | adjusted
    item_type: str | None = None
    quantity: int | None = None
    previous_stock: int | None = None
    new_stock: int | None = None
    batch_number: str | None = None


@dataclass(frozen=True)
class DisposalMetadata(ActionMetadata):
    item_type: str | None = None
    quantity: int | None = None
    reason: str | None = None
    batch_number: str | None = None


@dataclass(frozen=True)
class BackupMetadata(ActionMetadata):
    backup_type: str | None = None
    file_size: int | None = None
    location: str | None = None


@dataclass(frozen=True)
class ReportMetadata(ActionMetadata):
    report_type: str | None = None
    report_name: str | None = None
    format: str | None = None
    date_range: Any = None
    filters: Any = None
    is_custom_report: bool | None = None


@dataclass(frozen=True)
class ExportMetadata(ActionMetadata):
    format: str | None = None
    filters: Any = None
    exported_count: int | None = None


@dataclass(frozen=True)
class RetentionMetadata(ActionMetadata):
    deleted_count: int | None = None
    days_to_keep: int | None = None
    cutoff_date: str | None = None


def to_json(metadata: ActionMetadata | Mapping[str, Any] | None) -> dict[str, Any]:
    if metadata is None:
        return {}
    if isinstance(metadata, ActionMetadata):
        return metadata.as_dict()
    return dict(metadata)
