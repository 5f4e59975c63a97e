"""
Declared transition tables for applications and matches.

Every legal move is one entry keyed by (current_status, action). The entry
names the role allowed to take it and the ownership rule that ties the
actor to the record. Services call resolve_* instead of checking statuses
inline, so an illegal move is rejected in exactly one place.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from app.core.exceptions import InvalidStateError, UnauthorizedError
from app.core.security import Principal, Role
from app.utils.constants import (
    ACTIVE_APPLICATION_STATUSES,
    ApplicationStatus,
    MatchStatus,
)


class ApplicationAction(str, Enum):
    ADMIN_APPROVE = "admin_approve"
    ADMIN_REJECT = "admin_reject"
    COMPANY_APPROVE = "company_approve"
    COMPANY_REJECT = "company_reject"
    STUDENT_ACCEPT = "student_accept"
    STUDENT_DECLINE = "student_decline"
    STUDENT_CANCEL = "student_cancel"


class MatchAction(str, Enum):
    COMPLETE = "complete"


# Ownership predicates: (actor, record) -> bool
def _anyone(actor: Principal, record) -> bool:
    return True


def _owning_company(actor: Principal, record) -> bool:
    return record.company_id == actor.user_id


def _owning_student(actor: Principal, record) -> bool:
    return record.student_id == actor.user_id


@dataclass(frozen=True)
class Transition:
    source: str
    action: str
    target: str
    role: Role
    owns: Callable[[Principal, object], bool]

    @property
    def leaves_active_set(self) -> bool:
        return (
            self.source in ACTIVE_APPLICATION_STATUSES
            and self.target not in ACTIVE_APPLICATION_STATUSES
        )


def _table(*transitions: Transition) -> Dict[Tuple[str, str], Transition]:
    table = {}
    for t in transitions:
        key = (t.source, t.action)
        if key in table:
            raise ValueError(f"duplicate transition {key}")
        table[key] = t
    return table


S = ApplicationStatus
A = ApplicationAction

APPLICATION_TRANSITIONS = _table(
    Transition(S.PENDING_ADMIN.value, A.ADMIN_APPROVE.value, S.PENDING_COMPANY.value, Role.ADMIN, _anyone),
    Transition(S.PENDING_ADMIN.value, A.ADMIN_REJECT.value, S.REJECTED_BY_ADMIN.value, Role.ADMIN, _anyone),
    Transition(S.PENDING_COMPANY.value, A.COMPANY_APPROVE.value, S.PENDING_STUDENT.value, Role.COMPANY, _owning_company),
    Transition(S.PENDING_COMPANY.value, A.COMPANY_REJECT.value, S.REJECTED_BY_COMPANY.value, Role.COMPANY, _owning_company),
    Transition(S.PENDING_STUDENT.value, A.STUDENT_ACCEPT.value, S.MATCHED.value, Role.STUDENT, _owning_student),
    Transition(S.PENDING_STUDENT.value, A.STUDENT_DECLINE.value, S.DECLINED_BY_STUDENT.value, Role.STUDENT, _owning_student),
    Transition(S.PENDING_ADMIN.value, A.STUDENT_CANCEL.value, S.CANCELLED.value, Role.STUDENT, _owning_student),
    Transition(S.PENDING_COMPANY.value, A.STUDENT_CANCEL.value, S.CANCELLED.value, Role.STUDENT, _owning_student),
    Transition(S.PENDING_STUDENT.value, A.STUDENT_CANCEL.value, S.CANCELLED.value, Role.STUDENT, _owning_student),
)

MATCH_TRANSITIONS = _table(
    Transition(MatchStatus.ACTIVE.value, MatchAction.COMPLETE.value, MatchStatus.COMPLETED.value, Role.COMPANY, _owning_company),
)

del S, A

# action -> (role, ownership rule); identical for every source status of an action
_ACTION_GUARDS: Dict[str, Tuple[Role, Callable]] = {}
for _t in list(APPLICATION_TRANSITIONS.values()) + list(MATCH_TRANSITIONS.values()):
    _ACTION_GUARDS.setdefault(_t.action, (_t.role, _t.owns))


def _resolve(
    table: Dict[Tuple[str, str], Transition],
    kind: str,
    record,
    action: Enum,
    actor: Principal,
) -> Transition:
    role, owns = _ACTION_GUARDS[action.value]

    # Authorization is checked before status
    if actor.role != role or not owns(actor, record):
        raise UnauthorizedError(f"Not allowed to {action.value} this {kind}")

    transition: Optional[Transition] = table.get((record.status, action.value))
    if transition is None:
        raise InvalidStateError(
            f"Cannot {action.value} a {kind} in status '{record.status}'"
        )
    return transition


def resolve_application_transition(application, action: ApplicationAction, actor: Principal) -> Transition:
    """Return the transition for this move or raise UnauthorizedError / InvalidStateError."""
    return _resolve(APPLICATION_TRANSITIONS, "application", application, action, actor)


def resolve_match_transition(match, action: MatchAction, actor: Principal) -> Transition:
    return _resolve(MATCH_TRANSITIONS, "match", match, action, actor)
