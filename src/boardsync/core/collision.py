"""Collision detection: which droppable region is the drag over?

Candidates are tried against a priority chain and the first strategy that
produces any hit wins:

1. pointer containment
2. intersection with the dragged item's rectangle
3. nearest region by center-to-center distance

Containment gives precise column targeting; intersection covers fast motion
where the pointer has already left the item. Nearest-center alone misbehaves
for tall, sparsely filled columns, so it is only the last resort.

A move carrying no geometry at all (keyboard navigation) targets its first
candidate directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from boardsync.core.models.enums import CollisionStrategy, SubjectKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from boardsync.core.geometry import Point, Rect


@dataclass(frozen=True, slots=True)
class DropTarget:
    """A column, or a task slot inside a column."""

    kind: SubjectKind
    id: int
    column_id: int

    @classmethod
    def column(cls, column_id: int) -> DropTarget:
        return cls(SubjectKind.COLUMN, column_id, column_id)

    @classmethod
    def task(cls, task_id: int, column_id: int) -> DropTarget:
        return cls(SubjectKind.TASK, task_id, column_id)


@dataclass(frozen=True, slots=True)
class Droppable:
    """A drop target together with its on-screen bounds, when known."""

    target: DropTarget
    rect: Rect | None = None


@dataclass(frozen=True, slots=True)
class Collision:
    target: DropTarget
    strategy: CollisionStrategy
    score: float


def _kind_rank(target: DropTarget) -> int:
    # Task slots are more specific than the column around them.
    return 0 if target.kind is SubjectKind.TASK else 1


class CollisionResolver:
    """Pick the drop target for the current gesture geometry."""

    def detect(
        self,
        candidates: Sequence[Droppable],
        *,
        pointer: Point | None = None,
        dragged_rect: Rect | None = None,
        subject_kind: SubjectKind | None = None,
    ) -> list[Collision]:
        """Return all collisions of the first strategy that finds any, best first."""
        usable = list(self._filter(candidates, subject_kind))
        if not usable:
            return []

        if pointer is None and dragged_rect is None:
            return [Collision(usable[0].target, CollisionStrategy.EXPLICIT, 0.0)]

        if pointer is not None:
            hits = self.pointer_within(usable, pointer)
            if hits:
                return hits
        if dragged_rect is not None:
            hits = self.rect_intersection(usable, dragged_rect)
            if hits:
                return hits
        reference = dragged_rect.center if dragged_rect is not None else pointer
        if reference is None:
            return []
        return self.closest_center(usable, reference)

    def resolve(
        self,
        candidates: Sequence[Droppable],
        *,
        pointer: Point | None = None,
        dragged_rect: Rect | None = None,
        subject_kind: SubjectKind | None = None,
    ) -> DropTarget | None:
        """Return the single best drop target, or None when nothing qualifies."""
        hits = self.detect(
            candidates, pointer=pointer, dragged_rect=dragged_rect, subject_kind=subject_kind
        )
        return hits[0].target if hits else None

    def pointer_within(self, candidates: Iterable[Droppable], pointer: Point) -> list[Collision]:
        hits = [
            Collision(
                c.target,
                CollisionStrategy.POINTER_WITHIN,
                c.rect.center.distance_to(pointer),
            )
            for c in candidates
            if c.rect is not None and c.rect.contains(pointer)
        ]
        hits.sort(key=lambda hit: (_kind_rank(hit.target), hit.score))
        return hits

    def rect_intersection(self, candidates: Iterable[Droppable], dragged: Rect) -> list[Collision]:
        hits: list[Collision] = []
        for c in candidates:
            if c.rect is None:
                continue
            ratio = c.rect.intersection_ratio(dragged)
            if ratio > 0:
                hits.append(Collision(c.target, CollisionStrategy.RECT_INTERSECTION, ratio))
        hits.sort(key=lambda hit: (-hit.score, _kind_rank(hit.target)))
        return hits

    def closest_center(self, candidates: Iterable[Droppable], reference: Point) -> list[Collision]:
        hits = [
            Collision(
                c.target,
                CollisionStrategy.CLOSEST_CENTER,
                c.rect.center.distance_to(reference),
            )
            for c in candidates
            if c.rect is not None
        ]
        hits.sort(key=lambda hit: (hit.score, _kind_rank(hit.target)))
        return hits

    @staticmethod
    def _filter(
        candidates: Sequence[Droppable], subject_kind: SubjectKind | None
    ) -> Iterable[Droppable]:
        # Columns can only be dropped among columns.
        if subject_kind is SubjectKind.COLUMN:
            return (c for c in candidates if c.target.kind is SubjectKind.COLUMN)
        return candidates
