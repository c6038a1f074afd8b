from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import EmployeeStatus
from .model import Employee, EmployeeChanges, NewEmployee


class EmployeeRepository(Protocol):
    """Repository interface for Employee.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_email_or_number(self, *, email: str, employee_number: str) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_email(self, email: str, *, exclude_id: Optional[int] = None) -> Optional[Employee]:
        raise NotImplementedError

    def latest_code_with_prefix(self, prefix: str) -> Optional[str]:
        raise NotImplementedError

    def list_by_status(
        self,
        *,
        status: EmployeeStatus,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def search_page(self, *, search: Optional[str], offset: int, limit: int) -> Sequence[Employee]:
        raise NotImplementedError

    def count_search(self, *, search: Optional[str]) -> int:
        raise NotImplementedError

    def count_by_status(self, status: EmployeeStatus) -> int:
        raise NotImplementedError

    def create(self, data: NewEmployee, *, employee_code: str, created_by: int) -> Employee:
        """Raises DuplicateCodeError when ``employee_code`` is already taken."""

        raise NotImplementedError

    def update(self, employee_id: int, changes: EmployeeChanges, *, updated_by: int) -> Employee:
        raise NotImplementedError

    def delete(self, employee_id: int) -> bool:
        raise NotImplementedError
