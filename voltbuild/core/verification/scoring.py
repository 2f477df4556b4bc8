"""Share of each phase's tasks backed by approved completion evidence."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from voltbuild.common.enums import VerificationStatus
from voltbuild.core.progress.rollup import round_half_up
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.task import Task
from voltbuild.db.models.verification import TaskVerification


class PhaseVerificationScore(BaseModel):
    phase_id: uuid.UUID
    phase_name: str
    tasks: int
    verified_tasks: int
    score: int


def verified_task_ids(verifications: Iterable[TaskVerification]) -> set[uuid.UUID]:
    return {
        v.task_id for v in verifications if v.status == VerificationStatus.APPROVED.value
    }


def phase_verification_scores(
    phases: Sequence[Phase],
    tasks: Sequence[Task],
    verifications: Iterable[TaskVerification],
) -> list[PhaseVerificationScore]:
    """round(100 x verified / total) per phase; a phase without tasks scores 0."""
    verified = verified_task_ids(verifications)
    scores = []
    for phase in phases:
        phase_tasks = [t for t in tasks if t.phase_id == phase.id]
        hits = sum(1 for t in phase_tasks if t.id in verified)
        scores.append(PhaseVerificationScore(
            phase_id=phase.id,
            phase_name=phase.name,
            tasks=len(phase_tasks),
            verified_tasks=hits,
            score=round_half_up(100 * hits / len(phase_tasks)) if phase_tasks else 0,
        ))
    return scores
