from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import BreakPolicy, Shift


class ShiftRepository(Protocol):
    def list_all(self) -> Sequence[Shift]:
        raise NotImplementedError

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def get_break_policy(self, policy_id: int) -> Optional[BreakPolicy]:
        raise NotImplementedError
