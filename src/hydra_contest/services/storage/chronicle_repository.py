"""Database persistence for chronicle entries and supervisor notifications."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from hydra_contest.models import ChronicleEntry, SupervisorNotification, UserRole

from .repository import AsyncRepository

logger = structlog.get_logger()

SUPERVISOR_ROLE = "supervisor"
CREATE_ATTEMPTS = 5


def next_entry_code(codes: Iterable[str], prefix: str = "HYDRA-EVO") -> str:
    """Next entry code after the highest numeric suffix among ``codes``.

    >>> next_entry_code(["HYDRA-EVO-009", "HYDRA-EVO-010"])
    'HYDRA-EVO-011'
    """
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    numbers = [int(m.group(1)) for code in codes if (m := pattern.match(code))]
    return f"{prefix}-{max(numbers, default=0) + 1:03d}"


def _entry_for_result(session: Session, result_id: str | None) -> ChronicleEntry | None:
    if result_id is None:
        return None
    statement = select(ChronicleEntry).where(ChronicleEntry.source_result_id == result_id)
    return session.exec(statement).first()


class ChronicleRepository(AsyncRepository):
    """Persist chronicle entries and notify supervisors."""

    async def entry_codes(self, prefix: str) -> list[str]:
        """All entry codes starting with ``prefix-``."""

        def _get(session: Session) -> list[str]:
            statement = select(ChronicleEntry.entry_code).where(
                col(ChronicleEntry.entry_code).startswith(f"{prefix}-")
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def find_by_result(self, result_id: str) -> ChronicleEntry | None:
        """Chronicle previously raised for a contest result, if any."""

        def _get(session: Session) -> ChronicleEntry | None:
            return _entry_for_result(session, result_id)

        return await self._run_session(_get)

    async def supervisor_ids(self) -> list[str]:
        def _get(session: Session) -> list[str]:
            statement = select(UserRole.user_id).where(UserRole.role == SUPERVISOR_ROLE)
            return list(dict.fromkeys(session.exec(statement).all()))

        return await self._run_session(_get)

    async def grant_role(self, user_id: str, role: str) -> None:
        def _save(session: Session) -> None:
            session.add(UserRole(user_id=user_id, role=role))
            session.commit()

        await self._run_session(_save)

    async def create_entry(
        self,
        entry: ChronicleEntry,
        message: Callable[[str], str],
        prefix: str = "HYDRA-EVO",
    ) -> tuple[ChronicleEntry, bool]:
        """Number and insert an entry, notifying every supervisor.

        The entry code, the supervisor notifications and the entry are
        written in one transaction. A unique-constraint clash means a
        concurrent writer took the code or the source result; the code is
        then recomputed, or the other writer's entry is returned.

        Args:
            entry: Entry to insert; its ``entry_code`` is assigned here.
            message: Builds the notification text from the entry code.
            prefix: Entry code prefix.

        Returns:
            (entry, created); ``created`` is False when an entry for the
            same source result already existed.
        """

        def _insert(session: Session) -> tuple[ChronicleEntry, bool]:
            existing = _entry_for_result(session, entry.source_result_id)
            if existing is not None:
                return existing, False

            codes = session.exec(
                select(ChronicleEntry.entry_code).where(
                    col(ChronicleEntry.entry_code).startswith(f"{prefix}-")
                )
            ).all()
            entry.entry_code = next_entry_code(codes, prefix)
            supervisors = dict.fromkeys(
                session.exec(select(UserRole.user_id).where(UserRole.role == SUPERVISOR_ROLE)).all()
            )
            text = message(entry.entry_code)

            session.add(entry)
            session.add_all(
                SupervisorNotification(
                    user_id=supervisor,
                    chronicle_id=entry.id,
                    entry_code=entry.entry_code,
                    message=text,
                )
                for supervisor in supervisors
            )
            session.commit()
            session.refresh(entry)
            return entry, True

        def _save(session: Session) -> tuple[ChronicleEntry, bool]:
            for attempt in range(1, CREATE_ATTEMPTS):
                try:
                    return _insert(session)
                except IntegrityError:
                    session.rollback()
                    logger.debug(
                        "chronicle_entry_conflict", entry_code=entry.entry_code, attempt=attempt
                    )
            return _insert(session)

        return await self._run_session(_save)

    async def notifications_for(self, user_id: str) -> list[SupervisorNotification]:
        def _get(session: Session) -> list[SupervisorNotification]:
            statement = select(SupervisorNotification).where(
                SupervisorNotification.user_id == user_id
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)
