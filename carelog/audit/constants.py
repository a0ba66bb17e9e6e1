# carelog/audit/constants.py
"""
Action type tags written to ActionRecord.action_type.
"""

# Patients
PATIENT_CREATED = "patient_created"
REMOVED_PATIENT = "removed_patient"
DELETED_PATIENT = "deleted_patient"
TRANSFERRED_PATIENT = "transferred_patient"
PATIENT_CHECK_IN = "patient_check_in"
CHECKED_VITAL_SIGNS = "checked_vital_signs"

# Families
CREATED_FAMILY = "created_family"
FAMILY_ASSIGNED = "family_assigned"

# User accounts
CREATED_USER = "created_user"
ADDED_NEW_USER = "added_new_user"
UPDATED_USER = "updated_user"
DELETED_USER = "deleted_user"

# Sessions
USER_LOGIN = "user_login"
USER_LOGOUT = "user_logout"
FAILED_LOGIN = "failed_login"
MULTIPLE_FAILED_LOGINS = "multiple_failed_logins"

# Inventory
STOCK_UPDATE = "stock_update"
DISPOSED_ITEM = "disposed_item"

# Backups
BACKUP_CREATED = "backup_created"
BACKUP_RESTORED = "backup_restored"

# Reports
GENERATED_REPORT = "generated_report"

# The audit trail itself
VIEWED_AUDIT_LOGS = "viewed_audit_logs"
VIEWED_AUDIT_RECORD = "viewed_audit_record"
EXPORTED_AUDIT_LOGS = "exported_audit_logs"
CLEANED_AUDIT_LOGS = "cleaned_audit_logs"
DISMISSED_AUDIT_NOTIFICATION = "dismissed_audit_notification"
READ_AUDIT_NOTIFICATION = "read_audit_notification"
DISMISSED_ALL_AUDIT_NOTIFICATIONS = "dismissed_all_audit_notifications"

# Types whose rows are collapsed per actor inside the aggregation window
AGGREGATED_ACTION_TYPES = frozenset({VIEWED_AUDIT_LOGS})
