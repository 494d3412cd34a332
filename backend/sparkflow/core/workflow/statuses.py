"""
Status Lattice - order, labels and urgency colors for workflow statuses.

The main line runs intake -> completed. Two re-entry loops send work back to
design: QC rejection (qc-revision-needed) and client rejection
(revision-requested). `completed` is the only terminal status.
"""

import enum
import re

from sparkflow.core.models import WorkflowStatus


class StatusColor(str, enum.Enum):
    """Urgency buckets used by boards and badges."""
    NEUTRAL = "neutral"    # new
    INFO = "info"          # assigned / waiting on someone
    WARNING = "warning"    # in progress
    SUCCESS = "success"    # approved or complete
    DANGER = "danger"      # revision needed


# Display order of the main line; revision statuses sort after their trigger.
STATUS_ORDER: tuple[WorkflowStatus, ...] = (
    WorkflowStatus.INTAKE,
    WorkflowStatus.ASSIGNED_TO_CS,
    WorkflowStatus.ASSIGNED_TO_DESIGN_HEAD,
    WorkflowStatus.ASSIGNED_TO_DESIGNER,
    WorkflowStatus.IN_DESIGN,
    WorkflowStatus.DESIGN_COMPLETE,
    WorkflowStatus.IN_QC,
    WorkflowStatus.QC_APPROVED,
    WorkflowStatus.QC_REVISION_NEEDED,
    WorkflowStatus.SENT_TO_CLIENT,
    WorkflowStatus.CLIENT_APPROVED,
    WorkflowStatus.REVISION_REQUESTED,
    WorkflowStatus.COMPLETED,
)

SUCCESSORS: dict[WorkflowStatus, frozenset[WorkflowStatus]] = {
    WorkflowStatus.INTAKE: frozenset({WorkflowStatus.ASSIGNED_TO_CS}),
    WorkflowStatus.ASSIGNED_TO_CS: frozenset({WorkflowStatus.ASSIGNED_TO_DESIGN_HEAD}),
    WorkflowStatus.ASSIGNED_TO_DESIGN_HEAD: frozenset({WorkflowStatus.ASSIGNED_TO_DESIGNER}),
    WorkflowStatus.ASSIGNED_TO_DESIGNER: frozenset({WorkflowStatus.IN_DESIGN}),
    WorkflowStatus.IN_DESIGN: frozenset({WorkflowStatus.DESIGN_COMPLETE}),
    WorkflowStatus.DESIGN_COMPLETE: frozenset({
        WorkflowStatus.IN_QC,
        WorkflowStatus.QC_APPROVED,
        WorkflowStatus.QC_REVISION_NEEDED,
    }),
    WorkflowStatus.IN_QC: frozenset({
        WorkflowStatus.QC_APPROVED,
        WorkflowStatus.QC_REVISION_NEEDED,
    }),
    WorkflowStatus.QC_APPROVED: frozenset({
        WorkflowStatus.SENT_TO_CLIENT,
        WorkflowStatus.QC_REVISION_NEEDED,
    }),
    WorkflowStatus.QC_REVISION_NEEDED: frozenset({WorkflowStatus.IN_DESIGN}),
    WorkflowStatus.SENT_TO_CLIENT: frozenset({
        WorkflowStatus.CLIENT_APPROVED,
        WorkflowStatus.REVISION_REQUESTED,
    }),
    WorkflowStatus.CLIENT_APPROVED: frozenset({WorkflowStatus.COMPLETED}),
    WorkflowStatus.REVISION_REQUESTED: frozenset({WorkflowStatus.IN_DESIGN}),
    WorkflowStatus.COMPLETED: frozenset(),
}

REVISION_STATUSES = frozenset({
    WorkflowStatus.QC_REVISION_NEEDED,
    WorkflowStatus.REVISION_REQUESTED,
})

APPROVAL_STATUSES = frozenset({
    WorkflowStatus.QC_APPROVED,
    WorkflowStatus.CLIENT_APPROVED,
})

_COLORS: dict[WorkflowStatus, StatusColor] = {
    WorkflowStatus.INTAKE: StatusColor.NEUTRAL,
    WorkflowStatus.ASSIGNED_TO_CS: StatusColor.INFO,
    WorkflowStatus.ASSIGNED_TO_DESIGN_HEAD: StatusColor.INFO,
    WorkflowStatus.ASSIGNED_TO_DESIGNER: StatusColor.WARNING,
    WorkflowStatus.IN_DESIGN: StatusColor.WARNING,
    WorkflowStatus.DESIGN_COMPLETE: StatusColor.SUCCESS,
    WorkflowStatus.IN_QC: StatusColor.WARNING,
    WorkflowStatus.QC_APPROVED: StatusColor.SUCCESS,
    WorkflowStatus.QC_REVISION_NEEDED: StatusColor.DANGER,
    WorkflowStatus.SENT_TO_CLIENT: StatusColor.INFO,
    WorkflowStatus.CLIENT_APPROVED: StatusColor.SUCCESS,
    WorkflowStatus.REVISION_REQUESTED: StatusColor.DANGER,
    WorkflowStatus.COMPLETED: StatusColor.SUCCESS,
}

_SEPARATORS = re.compile(r"[-_]+")


def status_label(status: WorkflowStatus) -> str:
    """
    Human label for a status.

    >>> status_label(WorkflowStatus.QC_REVISION_NEEDED)
    'Qc Revision Needed'
    """
    words = _SEPARATORS.sub(" ", status.value).split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def status_color(status: WorkflowStatus) -> StatusColor:
    return _COLORS[status]


def successors(status: WorkflowStatus) -> frozenset[WorkflowStatus]:
    return SUCCESSORS[status]


def is_terminal(status: WorkflowStatus) -> bool:
    return not SUCCESSORS[status]


def is_successor(current: WorkflowStatus, target: WorkflowStatus) -> bool:
    return target in SUCCESSORS[current]


def stage_index(status: WorkflowStatus) -> int:
    """Position of a status in display order (0 = intake)."""
    return STATUS_ORDER.index(status)


def is_revision(status: WorkflowStatus) -> bool:
    return status in REVISION_STATUSES
