"""Payrun lifecycle: closed status enum plus the one transition table.

    draft ──compute──▶ computed ──validate──▶ validated ──finalize──▶ done
      │                 │  ▲
      │                 └──┘ compute / recompute
      └──cancel──▶ cancelled ◀──cancel── computed

``done`` and ``cancelled`` are terminal. Every status change in the engine goes
through :func:`next_status`; nothing else compares status strings.
"""
from __future__ import annotations
from enum import Enum
from hrpay.domain.exceptions import InvalidTransitionError


class PayrunStatus(str, Enum):
    DRAFT = "draft"
    COMPUTED = "computed"
    VALIDATED = "validated"
    DONE = "done"
    CANCELLED = "cancelled"


class PayrunAction(str, Enum):
    COMPUTE = "compute"
    RECOMPUTE = "recompute"
    VALIDATE = "validate"
    FINALIZE = "finalize"
    CANCEL = "cancel"


TRANSITIONS: dict[tuple[PayrunStatus, PayrunAction], PayrunStatus] = {
    (PayrunStatus.DRAFT, PayrunAction.COMPUTE): PayrunStatus.COMPUTED,
    (PayrunStatus.COMPUTED, PayrunAction.COMPUTE): PayrunStatus.COMPUTED,
    (PayrunStatus.COMPUTED, PayrunAction.RECOMPUTE): PayrunStatus.COMPUTED,
    (PayrunStatus.COMPUTED, PayrunAction.VALIDATE): PayrunStatus.VALIDATED,
    (PayrunStatus.VALIDATED, PayrunAction.FINALIZE): PayrunStatus.DONE,
    (PayrunStatus.DRAFT, PayrunAction.CANCEL): PayrunStatus.CANCELLED,
    (PayrunStatus.COMPUTED, PayrunAction.CANCEL): PayrunStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset({PayrunStatus.DONE, PayrunStatus.CANCELLED})

# Payslips of these payruns may no longer be rewritten.
FROZEN_STATUSES = frozenset({PayrunStatus.VALIDATED, PayrunStatus.DONE, PayrunStatus.CANCELLED})

_ACTION_TARGETS: dict[PayrunAction, PayrunStatus] = {
    action: target for (_, action), target in TRANSITIONS.items()
}


def allowed_actions(current: PayrunStatus) -> list[PayrunAction]:
    return [action for (status, action) in TRANSITIONS if status == current]


def next_status(current: PayrunStatus, action: PayrunAction) -> PayrunStatus:
    """Return the status *action* leads to, or raise ``InvalidTransitionError``."""
    current = PayrunStatus(current)
    action = PayrunAction(action)
    target = TRANSITIONS.get((current, action))
    if target is None:
        raise InvalidTransitionError(
            current.value, action.value, _ACTION_TARGETS[action].value,
        )
    return target
