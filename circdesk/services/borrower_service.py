"""Borrower registry service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from circdesk.domain.entities import Borrower, BorrowerSummary, MembershipType, Transaction
from circdesk.domain.outcome import FailureReason, Outcome
from circdesk.domain.repositories import IUnitOfWork, LedgerFilter
from circdesk.domain.services import IBorrowerService
from circdesk.services.circulation_service import count_open_loans, has_overdue_loans

logger = logging.getLogger(__name__)


class BorrowerService(IBorrowerService):
    """Registration, membership status and ledger-derived figures for borrowers."""

    def __init__(self, uow: IUnitOfWork, clock: Callable[[], datetime] = datetime.now):
        self.uow = uow
        self.clock = clock

    async def add_borrower(self, borrower: Borrower) -> Outcome[Borrower]:
        """Register a new borrower.

        ``max_books_allowed`` falls back to the membership default when the
        caller leaves it unset.
        """
        borrower.email = borrower.email.strip()
        errors = borrower.validation_errors()
        if errors:
            return self._reject(FailureReason.INVALID_BORROWER, "; ".join(errors))

        async with self.uow:
            existing = await self.uow.borrowers.get_by_email(borrower.email)
            if existing:
                return self._reject(
                    FailureReason.DUPLICATE_EMAIL,
                    f"Borrower with email {borrower.email} already exists.",
                )
            created = await self.uow.borrowers.create(borrower)
            await self.uow.commit()

        logger.info("Borrower registered: %s (%s)", created.id, created.email)
        return Outcome.success(
            created, f"Borrower '{created.full_name}' added successfully with ID: {created.id}"
        )

    async def update_borrower(
        self,
        borrower_id: int,
        *,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        membership_type: Optional[MembershipType] = None,
        max_books_allowed: Optional[int] = None,
    ) -> Outcome[Borrower]:
        async with self.uow:
            borrower = await self.uow.borrowers.get_by_id(borrower_id)
            if borrower is None:
                return self._reject(FailureReason.BORROWER_NOT_FOUND, "Borrower not found.")

            if email is not None and email.strip() != borrower.email:
                email = email.strip()
                if await self.uow.borrowers.get_by_email(email):
                    return self._reject(
                        FailureReason.DUPLICATE_EMAIL,
                        f"Borrower with email {email} already exists.",
                    )
                borrower.email = email
            if first_name is not None:
                borrower.first_name = first_name
            if last_name is not None:
                borrower.last_name = last_name
            if phone is not None:
                borrower.phone = phone or None
            if address is not None:
                borrower.address = address or None
            if membership_type is not None:
                borrower.membership_type = membership_type
            if max_books_allowed is not None:
                borrower.max_books_allowed = max_books_allowed

            errors = borrower.validation_errors()
            if errors:
                return self._reject(FailureReason.INVALID_BORROWER, "; ".join(errors))

            current = await count_open_loans(self.uow.ledger, borrower_id)
            if borrower.is_active and current > borrower.max_books_allowed:
                return self._reject(
                    FailureReason.INVALID_BORROWER,
                    f"Borrower currently holds {current} books; the limit cannot be "
                    f"lowered to {borrower.max_books_allowed}.",
                )

            updated = await self.uow.borrowers.update(borrower)
            await self.uow.commit()

        logger.info("Borrower updated: %s", borrower_id)
        return Outcome.success(updated, f"Borrower '{updated.full_name}' updated successfully.")

    async def get_borrower(self, borrower_id: int) -> Optional[Borrower]:
        async with self.uow:
            return await self.uow.borrowers.get_by_id(borrower_id)

    async def find_by_email(self, email: str) -> Optional[Borrower]:
        async with self.uow:
            return await self.uow.borrowers.get_by_email(email.strip())

    async def search_by_name(self, name: str) -> list[Borrower]:
        async with self.uow:
            return await self.uow.borrowers.search_by_name(name)

    async def list_borrowers(self, active_only: bool = False) -> list[Borrower]:
        async with self.uow:
            return await self.uow.borrowers.list_all(active_only=active_only)

    async def activate(self, borrower_id: int) -> Outcome[Borrower]:
        async with self.uow:
            borrower = await self.uow.borrowers.get_by_id(borrower_id)
            if borrower is None:
                return self._reject(FailureReason.BORROWER_NOT_FOUND, "Borrower not found.")
            borrower.is_active = True
            updated = await self.uow.borrowers.update(borrower)
            await self.uow.commit()

        logger.info("Borrower activated: %s", borrower_id)
        return Outcome.success(updated, f"Borrower '{updated.full_name}' activated successfully.")

    async def deactivate(self, borrower_id: int) -> Outcome[Borrower]:
        async with self.uow:
            borrower = await self.uow.borrowers.get_by_id(borrower_id)
            if borrower is None:
                return self._reject(FailureReason.BORROWER_NOT_FOUND, "Borrower not found.")

            active_loans = await count_open_loans(self.uow.ledger, borrower_id)
            if active_loans:
                return self._reject(
                    FailureReason.HAS_ACTIVE_LOANS,
                    f"Cannot deactivate borrower with {active_loans} active borrowings.",
                )
            borrower.is_active = False
            updated = await self.uow.borrowers.update(borrower)
            await self.uow.commit()

        logger.info("Borrower deactivated: %s", borrower_id)
        return Outcome.success(
            updated, f"Borrower '{updated.full_name}' deactivated successfully."
        )

    async def delete_borrower(self, borrower_id: int) -> Outcome[int]:
        async with self.uow:
            borrower = await self.uow.borrowers.get_by_id(borrower_id)
            if borrower is None:
                return self._reject(FailureReason.BORROWER_NOT_FOUND, "Borrower not found.")

            history = await self.uow.ledger.count(LedgerFilter(borrower_id=borrower_id))
            if history:
                return self._reject(
                    FailureReason.HAS_TRANSACTION_HISTORY,
                    "Cannot delete borrower with transaction history. "
                    "Consider deactivating instead.",
                )
            await self.uow.borrowers.delete(borrower_id)
            await self.uow.commit()

        logger.info("Borrower deleted: %s", borrower_id)
        return Outcome.success(
            borrower_id, f"Borrower '{borrower.full_name}' deleted successfully."
        )

    async def summarize(self, borrower_id: int) -> Outcome[BorrowerSummary]:
        """Borrower plus current loans, total fines and overdue flag."""
        today = self.clock().date()
        async with self.uow:
            borrower = await self.uow.borrowers.get_by_id(borrower_id)
            if borrower is None:
                return self._reject(FailureReason.BORROWER_NOT_FOUND, "Borrower not found.")
            current = await count_open_loans(self.uow.ledger, borrower_id)
            fined = await self.uow.ledger.query(
                LedgerFilter(borrower_id=borrower_id, fined_only=True)
            )
            overdue = await has_overdue_loans(self.uow.ledger, borrower_id, today)

        return Outcome.success(
            BorrowerSummary(
                borrower=borrower,
                current_borrowed_count=current,
                total_fine_amount=sum((t.fine_amount for t in fined), Decimal("0.00")),
                has_overdue=overdue,
            )
        )

    async def current_borrowings(self, borrower_id: int) -> list[Transaction]:
        async with self.uow:
            return await self.uow.ledger.query(
                LedgerFilter.open_loans(borrower_id=borrower_id, order_by="due_date")
            )

    async def borrowing_history(self, borrower_id: int) -> list[Transaction]:
        async with self.uow:
            return await self.uow.ledger.query(
                LedgerFilter(borrower_id=borrower_id, descending=True)
            )

    async def borrowers_with_overdue(self) -> list[Borrower]:
        today = self.clock().date()
        async with self.uow:
            past_due = await self.uow.ledger.query(LedgerFilter.open_loans(due_before=today))
            borrower_ids = {t.borrower_id for t in past_due}
            borrowers = [await self.uow.borrowers.get_by_id(bid) for bid in borrower_ids]
        found = [b for b in borrowers if b is not None]
        return sorted(found, key=lambda b: (b.last_name, b.first_name))

    @staticmethod
    def _reject(reason: FailureReason, message: str) -> Outcome:
        logger.info("Borrower request rejected (%s): %s", reason.value, message)
        return Outcome.failure(reason, message)
