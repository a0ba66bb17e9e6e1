from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from carelog.audit import constants as A
from carelog.audit.models import ActionRecord
from carelog.audit.retention import RetentionService

pytestmark = pytest.mark.django_db


def _make(days_old: float, action_type="stock_update"):
    return ActionRecord.objects.create(
        actor_id=1,
        actor_role="admin",
        actor_display_name="Ada Admin",
        action_type=action_type,
        description="seed",
        timestamp=timezone.now() - timedelta(days=days_old),
    )


def test_purge_deletes_exactly_records_older_than_cutoff(admin_user):
    old = [_make(31), _make(45), _make(400)]
    young = [_make(0), _make(10), _make(29.5)]

    result = RetentionService.purge(30, actor=admin_user)

    assert result.deleted_count == 3
    assert result.days_to_keep == 30
    remaining = set(ActionRecord.objects.exclude(action_type=A.CLEANED_AUDIT_LOGS).values_list("id", flat=True))
    assert remaining == {r.pk for r in young}
    assert not ActionRecord.objects.filter(pk__in=[r.pk for r in old]).exists()


def test_purge_records_itself_after_the_cutoff(admin_user):
    _make(100)

    result = RetentionService.purge(30, actor=admin_user)

    log = ActionRecord.objects.get(action_type=A.CLEANED_AUDIT_LOGS)
    assert log.timestamp > result.cutoff
    assert log.metadata == {
        "deletedCount": 1,
        "daysToKeep": 30,
        "cutoffDate": result.cutoff.isoformat(),
    }
    assert log.target_type == "audit"


@pytest.mark.parametrize("days", [29, 366, 400, 0, -5, "30", 30.0, True])
def test_out_of_range_or_non_integer_days_are_rejected(days):
    _make(100)
    with pytest.raises(ValidationError):
        RetentionService.purge(days)
    assert ActionRecord.objects.count() == 1


@pytest.mark.parametrize("days", [30, 365])
def test_bounds_are_inclusive(days):
    result = RetentionService.purge(days)
    assert result.days_to_keep == days


def test_purge_command(capsys):
    _make(200)
    _make(1)

    call_command("purge_audit_records", "--days", "90")

    out = capsys.readouterr().out
    assert "Deleted 1 audit records" in out
    # the system purge record + the young row
    assert ActionRecord.objects.count() == 2
    assert ActionRecord.objects.get(action_type=A.CLEANED_AUDIT_LOGS).actor_display_name == "System"


def test_purge_command_rejects_out_of_range_days():
    with pytest.raises(CommandError):
        call_command("purge_audit_records", "--days", "10")
