# carelog/audit/services.py
from __future__ import annotations

import logging
from typing import Any, Mapping

from django.db import transaction

from carelog.alerts.services import NotificationService
from carelog.audit.aggregation import ViewAggregator
from carelog.audit.constants import AGGREGATED_ACTION_TYPES
from carelog.audit.context import RequestContext, Target
from carelog.audit.metadata import ActionMetadata, to_json
from carelog.audit.models import ActionRecord, ActorRole, TargetType
from carelog.iam.actors import Actor, as_actor, resolve_display_name, system_actor

logger = logging.getLogger(__name__)


class InvalidEntry(ValueError):
    pass


def _clip(value, length: int) -> str | None:
    if value is None:
        return None
    return str(value)[:length]


def build_entry(
    *,
    actor: Actor | None,
    action_type: str,
    description: str,
    target: Target | None,
    metadata: ActionMetadata | Mapping[str, Any] | None,
    context: RequestContext | None,
) -> dict[str, Any]:
    """
    Normalise call-site input into ActionRecord field values.
    Raises InvalidEntry when a required field is missing or malformed.
    """
    context = context or RequestContext()
    target = target or Target()
    actor = actor or system_actor()

    if not isinstance(action_type, str) or not action_type.strip():
        raise InvalidEntry("action_type is required")
    if not isinstance(description, str) or not description.strip():
        raise InvalidEntry("description is required")
    try:
        actor_id = int(actor.id)
    except (TypeError, ValueError):
        raise InvalidEntry("actor id is required") from None
    if actor_id < 0:
        raise InvalidEntry("actor id must not be negative")
    if actor.role not in ActorRole.values:
        raise InvalidEntry(f"unknown actor role {actor.role!r}")
    if target.type is not None and target.type not in TargetType.values:
        raise InvalidEntry(f"unknown target type {target.type!r}")

    display_name = resolve_display_name(actor, context.actor_display_name)

    return {
        "actor_id": actor_id,
        "actor_role": actor.role,
        "actor_display_name": _clip(display_name, 255),
        "action_type": action_type.strip(),
        "description": description,
        "target_type": target.type,
        "target_id": _clip(target.id, 64),
        "target_display_name": _clip(target.display_name, 255),
        "metadata": to_json(metadata),
        "source_ip": _clip(context.source_ip, 64),
        "user_agent": context.user_agent,
        "session_id": _clip(context.session_id, 255),
        "error_message": context.error_message,
    }


class AuditService:
    """
    Central audit writer.

    Writing never raises into the caller: invalid entries are dropped with a
    warning, persistence failures are logged and swallowed. Each write runs
    in its own savepoint so the caller's transaction survives a failure.
    """

    @staticmethod
    def record(
        *,
        actor,
        action_type: str,
        description: str,
        target: Target | None = None,
        metadata: ActionMetadata | Mapping[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> int | None:
        try:
            entry = build_entry(
                actor=as_actor(actor),
                action_type=action_type,
                description=description,
                target=target,
                metadata=metadata,
                context=context,
            )
        except InvalidEntry as exc:
            logger.warning("Dropped audit entry %r: %s", action_type, exc)
            return None
        except Exception:
            logger.exception("Could not build audit entry %r", action_type)
            return None

        try:
            if entry["action_type"] in AGGREGATED_ACTION_TYPES:
                record = ViewAggregator.record(entry)
            else:
                with transaction.atomic():
                    record = ActionRecord.objects.create(**entry)
        except Exception:
            logger.exception("Failed to persist audit entry %r", entry["action_type"])
            return None

        NotificationService.create_for_record(record)
        return record.pk
