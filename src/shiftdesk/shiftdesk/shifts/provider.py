from __future__ import annotations

from typing import Sequence

from ..agents.repository import AgentRepository
from ..core.exceptions import AgentNotFound, BreakPolicyNotFound, NoShiftAssigned, ShiftNotFound
from .model import BreakPolicy, Shift
from .repository import ShiftRepository


class ShiftPolicyProvider:
    """Resolves the shift and break policy that govern an agent."""

    def __init__(self, agents: AgentRepository, shifts: ShiftRepository):
        self._agents = agents
        self._shifts = shifts

    def get_shift_for_agent(self, agent_id: int) -> Shift:
        agent = self._agents.get_by_id(agent_id)
        if not agent:
            raise AgentNotFound(agent_id=agent_id)
        if not agent.shift_id:
            raise NoShiftAssigned(agent_id=agent_id)
        shift = self.get_shift(agent.shift_id)
        if not shift.is_active:
            raise ShiftNotFound("Shift is no longer active", shift_id=shift.shift_id)
        return shift

    def get_shift(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(shift_id)
        if not shift:
            raise ShiftNotFound(shift_id=shift_id)
        return shift

    def get_break_policy(self, policy_id: int | None) -> BreakPolicy:
        policy = self._shifts.get_break_policy(policy_id) if policy_id else None
        if not policy:
            raise BreakPolicyNotFound(policy_id=policy_id)
        return policy

    def list_shifts(self, *, active_only: bool = True) -> Sequence[Shift]:
        shifts = self._shifts.list_all()
        if active_only:
            return [s for s in shifts if s.is_active]
        return list(shifts)
