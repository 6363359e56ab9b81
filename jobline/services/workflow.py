"""
Stage ordering for immigration cases.

The happy path is an explicit adjacency table; cancellations are the only
targets reachable from every non-terminal stage. Nothing here touches the
database.
"""
from typing import Dict, FrozenSet, List, Optional, Union

from jobline.models.application import ApplicationStatus as S
from jobline.models.candidate import CandidateStatus

StatusLike = Union[S, str]

FORWARD_TRANSITIONS: Dict[S, FrozenSet[S]] = {
    S.PENDING_MOL: frozenset({S.MOL_AUTH_RECEIVED}),
    S.MOL_AUTH_RECEIVED: frozenset({S.VISA_PROCESSING}),
    S.VISA_PROCESSING: frozenset({S.VISA_RECEIVED}),
    S.VISA_RECEIVED: frozenset({S.WORKER_ARRIVED}),
    S.WORKER_ARRIVED: frozenset({S.LABOUR_PERMIT_PROCESSING}),
    S.LABOUR_PERMIT_PROCESSING: frozenset({S.RESIDENCY_PERMIT_PROCESSING}),
    S.RESIDENCY_PERMIT_PROCESSING: frozenset({S.ACTIVE_EMPLOYMENT}),
    S.ACTIVE_EMPLOYMENT: frozenset({S.CONTRACT_ENDED, S.RENEWAL_PENDING}),
    S.RENEWAL_PENDING: frozenset({S.ACTIVE_EMPLOYMENT}),
}

CANCELLATION_STATES: FrozenSet[S] = frozenset({
    S.CANCELLED_PRE_ARRIVAL,
    S.CANCELLED_POST_ARRIVAL,
    S.CANCELLED_CANDIDATE,
})

TERMINAL_STATES: FrozenSet[S] = CANCELLATION_STATES | {S.CONTRACT_ENDED}

PRE_ARRIVAL_STATES: FrozenSet[S] = frozenset({
    S.PENDING_MOL,
    S.MOL_AUTH_RECEIVED,
    S.VISA_PROCESSING,
    S.VISA_RECEIVED,
})

# Pipeline position, used to order checklists by stage
STAGE_POSITION: Dict[S, int] = {status: index for index, status in enumerate(S)}

# What happens to the candidate when the application enters a state
CANDIDATE_STATUS_ON_ENTER: Dict[S, CandidateStatus] = {
    S.WORKER_ARRIVED: CandidateStatus.IN_PROCESS,
    S.ACTIVE_EMPLOYMENT: CandidateStatus.PLACED,
    S.CONTRACT_ENDED: CandidateStatus.AVAILABLE_IN_LEBANON,
    S.CANCELLED_PRE_ARRIVAL: CandidateStatus.AVAILABLE_ABROAD,
    S.CANCELLED_POST_ARRIVAL: CandidateStatus.AVAILABLE_IN_LEBANON,
    S.CANCELLED_CANDIDATE: CandidateStatus.AVAILABLE_IN_LEBANON,
}

def as_status(value: StatusLike) -> S:
    return value if isinstance(value, S) else S(value)

def is_terminal(status: StatusLike) -> bool:
    return as_status(status) in TERMINAL_STATES

def is_cancellation(status: StatusLike) -> bool:
    return as_status(status) in CANCELLATION_STATES

def is_forward_transition(current: StatusLike, target: StatusLike) -> bool:
    """
    True when ``target`` is an immediate successor of ``current`` on the
    pipeline, or a cancellation out of a stage that is still open.
    """
    current, target = as_status(current), as_status(target)
    if target in CANCELLATION_STATES:
        return current not in TERMINAL_STATES
    return target in FORWARD_TRANSITIONS.get(current, frozenset())

def forward_states(current: StatusLike) -> List[S]:
    return sorted(FORWARD_TRANSITIONS.get(as_status(current), frozenset()), key=STAGE_POSITION.__getitem__)

def cancellation_states(current: StatusLike) -> List[S]:
    if is_terminal(current):
        return []
    return sorted(CANCELLATION_STATES, key=STAGE_POSITION.__getitem__)

def valid_next_states(current: StatusLike) -> List[S]:
    return forward_states(current) + cancellation_states(current)

def default_cancellation_for(current: StatusLike) -> Optional[S]:
    current = as_status(current)
    if current in TERMINAL_STATES:
        return None
    if current in PRE_ARRIVAL_STATES:
        return S.CANCELLED_PRE_ARRIVAL
    return S.CANCELLED_POST_ARRIVAL

def requires_arrival_date(target: StatusLike) -> bool:
    return as_status(target) == S.WORKER_ARRIVED

def candidate_status_on_enter(target: StatusLike) -> Optional[CandidateStatus]:
    return CANDIDATE_STATUS_ON_ENTER.get(as_status(target))
