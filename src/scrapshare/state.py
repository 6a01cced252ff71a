"""Per-invocation pipeline state machine.

Tracks which stage a share request is in and enforces valid transitions.
Every stage before dispatch may jump straight to ``COMPLETED`` on failure.
"""

from __future__ import annotations

from scrapshare.models import PipelineStage
from scrapshare.observability import get_logger

log = get_logger("scrapshare.pipeline")


class PipelineStateMachine:
    """Finite state machine for a single share request.

    Valid transitions::

        IDLE               -> CLASSIFYING
        CLASSIFYING        -> EXTRACTING | COMPLETED
        EXTRACTING         -> UPLOADING | BUILDING_REFERENCE | COMPLETED
        UPLOADING          -> BUILDING_REFERENCE | COMPLETED
        BUILDING_REFERENCE -> DISPATCHING | COMPLETED
        DISPATCHING        -> COMPLETED
        COMPLETED          -> (terminal)
    """

    VALID_TRANSITIONS: dict[PipelineStage, set[PipelineStage]] = {
        PipelineStage.IDLE: {PipelineStage.CLASSIFYING},
        PipelineStage.CLASSIFYING: {PipelineStage.EXTRACTING, PipelineStage.COMPLETED},
        PipelineStage.EXTRACTING: {
            PipelineStage.UPLOADING,
            PipelineStage.BUILDING_REFERENCE,
            PipelineStage.COMPLETED,
        },
        PipelineStage.UPLOADING: {PipelineStage.BUILDING_REFERENCE, PipelineStage.COMPLETED},
        PipelineStage.BUILDING_REFERENCE: {PipelineStage.DISPATCHING, PipelineStage.COMPLETED},
        PipelineStage.DISPATCHING: {PipelineStage.COMPLETED},
        PipelineStage.COMPLETED: set(),
    }

    def __init__(self) -> None:
        self.state: PipelineStage = PipelineStage.IDLE
        self.history: list[PipelineStage] = [PipelineStage.IDLE]

    @property
    def is_completed(self) -> bool:
        return self.state == PipelineStage.COMPLETED

    def transition(self, new_state: PipelineStage) -> None:
        """Move to *new_state*.

        Raises
        ------
        ValueError
            If the transition from the current state is not valid.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid pipeline transition: {self.state.value} -> {new_state.value}. "
                f"Allowed transitions from {self.state.value}: "
                f"{{{', '.join(sorted(s.value for s in allowed))}}}"
            )

        log.debug(
            "Pipeline stage",
            extra={"extra_fields": {"from": self.state.value, "to": new_state.value}},
        )
        self.state = new_state
        self.history.append(new_state)
