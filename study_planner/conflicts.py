from typing import Iterable, List, Optional, Tuple, Any

from study_planner.exceptions import TimeConflict
from study_planner.timeutils import TimeArithmetic, TimeValue


class ConflictDetector:
    """
    Half-open interval overlap checks for slots sharing a (user, day-of-week).
    Callers are responsible for passing only that user's slots for that day.
    """

    @staticmethod
    def overlaps(a_start: TimeValue, a_end: TimeValue, b_start: TimeValue, b_end: TimeValue) -> bool:
        """[a_start, a_end) and [b_start, b_end) share at least one minute"""
        return (
            TimeArithmetic.to_minutes(a_start) < TimeArithmetic.to_minutes(b_end)
            and TimeArithmetic.to_minutes(a_end) > TimeArithmetic.to_minutes(b_start)
        )

    @staticmethod
    def find_conflict(
        start: TimeValue,
        end: TimeValue,
        existing: Iterable[Any],
        exclude_id: Optional[int] = None
    ) -> Optional[Any]:
        """
        Return the first active slot in `existing` overlapping [start, end).

        Args:
            existing: Slots with id, start_time, end_time and is_active attributes
            exclude_id: Slot id to ignore (the slot being updated in place)
        """
        for slot in existing:
            if exclude_id is not None and slot.id == exclude_id:
                continue
            if not slot.is_active:
                continue
            if ConflictDetector.overlaps(start, end, slot.start_time, slot.end_time):
                return slot
        return None

    @staticmethod
    def check(
        start: TimeValue,
        end: TimeValue,
        existing: Iterable[Any],
        exclude_id: Optional[int] = None
    ) -> None:
        """Raise TimeConflict naming the first conflicting slot"""
        conflict = ConflictDetector.find_conflict(start, end, existing, exclude_id)
        if conflict is not None:
            raise TimeConflict(
                conflicting_id=conflict.id,
                message=f"Time slot conflicts with existing planner slot {conflict.id}"
            )

    @staticmethod
    def find_batch_conflicts(
        placements: List[Tuple[int, int, TimeValue, TimeValue]]
    ) -> List[Tuple[int, int]]:
        """
        Pairwise check of final placements (slot_id, day_of_week, start, end).

        Returns:
            List of (slot_id, other_slot_id) pairs that overlap on the same day
        """
        clashes = []
        for i, (slot_id, day, start, end) in enumerate(placements):
            for other_id, other_day, other_start, other_end in placements[i + 1:]:
                if day == other_day and ConflictDetector.overlaps(start, end, other_start, other_end):
                    clashes.append((slot_id, other_id))
        return clashes
