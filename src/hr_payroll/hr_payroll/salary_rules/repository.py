from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import NewSalaryRule, SalaryRule


class SalaryRuleRepository(Protocol):
    def list_all(self) -> Sequence[SalaryRule]:
        """Newest first."""

        raise NotImplementedError

    def list_active(self, *, as_of: datetime) -> Sequence[SalaryRule]:
        """Active rules already in effect at `as_of`.

        Ordered by effective date, then creation time, then id; most recent first.
        """

        raise NotImplementedError

    def get_by_id(self, rule_id: int) -> Optional[SalaryRule]:
        raise NotImplementedError

    def get_by_code(self, rule_code: str) -> Optional[SalaryRule]:
        raise NotImplementedError

    def create(self, *, rule: NewSalaryRule, actor_id: Optional[int]) -> int:
        """Raises DuplicateRuleCodeError when the code is taken."""

        raise NotImplementedError

    def update(self, *, rule_id: int, rule: NewSalaryRule, actor_id: Optional[int]) -> bool:
        raise NotImplementedError

    def delete(self, rule_id: int) -> bool:
        raise NotImplementedError
