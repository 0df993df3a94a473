"""Capture row changes from ORM sessions and publish them once committed."""

import logging

from sqlalchemy import event
from sqlalchemy.orm import Session

from ..models.base import Base
from .broker import DELETE, INSERT, UPDATE, ChangeBroker, ChangeEvent

logger = logging.getLogger(__name__)

PENDING_KEY = "projecthub.pending_changes"


def _change(obj: Base, kind: str) -> ChangeEvent:
    return ChangeEvent(table=obj.__tablename__, event=kind, record=obj.to_record())


class ChangeCapture:
    """
    Session event listeners feeding a ChangeBroker.

    after_flush collects what the flush wrote into ``session.info``;
    after_commit publishes the batch; after_rollback discards it. A flush
    that is later rolled back therefore never reaches subscribers.

    Listens on the sync ``Session`` class, which is what every AsyncSession
    runs on underneath.
    """

    def __init__(self, broker: ChangeBroker, target: type[Session] = Session):
        self.broker = broker
        self.target = target
        self.installed = False
        # Per-instance key: several captures may share one session
        self.pending_key = f"{PENDING_KEY}.{id(self)}"

    def install(self) -> "ChangeCapture":
        if not self.installed:
            event.listen(self.target, "after_flush", self._after_flush)
            event.listen(self.target, "after_commit", self._after_commit)
            event.listen(self.target, "after_rollback", self._after_rollback)
            self.installed = True
        return self

    def uninstall(self) -> None:
        if self.installed:
            event.remove(self.target, "after_flush", self._after_flush)
            event.remove(self.target, "after_commit", self._after_commit)
            event.remove(self.target, "after_rollback", self._after_rollback)
            self.installed = False

    def _after_flush(self, session: Session, flush_context) -> None:
        # new/dirty/deleted still describe the flush that just ran
        pending = session.info.setdefault(self.pending_key, [])
        for obj in session.new:
            if isinstance(obj, Base):
                pending.append(_change(obj, INSERT))
        for obj in session.dirty:
            if isinstance(obj, Base) and session.is_modified(obj, include_collections=False):
                pending.append(_change(obj, UPDATE))
        for obj in session.deleted:
            if isinstance(obj, Base):
                pending.append(_change(obj, DELETE))

    def _after_commit(self, session: Session) -> None:
        changes = session.info.pop(self.pending_key, [])
        if changes:
            delivered = self.broker.publish(changes)
            logger.debug(
                "Published changes", extra={"changes": len(changes), "deliveries": delivered}
            )

    def _after_rollback(self, session: Session) -> None:
        session.info.pop(self.pending_key, None)
