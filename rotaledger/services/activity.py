"""
Activity recording — the audit trail as a cross-cutting concern.

Service operations are wrapped with ``@audited``; after the wrapped call
succeeds the decorator publishes an ``ActivityEvent`` on the request's
``ServiceContext``. Events are persisted by ``ActivityRecorder`` as a
background task, in a session of their own, after the primary mutation
has committed. A failed write is logged and dropped: it never fails or
rolls back the operation that produced it.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, TypeVar, Union

from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rotaledger.core.clock import Clock, utcnow
from rotaledger.models.activity_log import ActivityLog
from rotaledger.models.enums import ActionType
from rotaledger.models.user import User

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class ActivityEvent:
    actor_uid: str
    actor_email: str
    action: ActionType
    details: str


class ActivityRecorder:
    """Appends activity events to the log, best-effort."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(self, event: ActivityEvent) -> None:
        try:
            async with self._session_factory() as session:
                session.add(
                    ActivityLog(
                        user_uid=event.actor_uid,
                        user_email=event.actor_email,
                        action_type=event.action,
                        details=event.details,
                    )
                )
                await session.commit()
        except SQLAlchemyError:
            logger.exception(
                "Failed to log activity %s for %s", event.action.value, event.actor_email
            )


@dataclass
class ServiceContext:
    """Everything a mutating operation needs: session, actor, audit sink, time."""

    db: AsyncSession
    actor: User
    recorder: ActivityRecorder
    background: BackgroundTasks
    clock: Clock = utcnow
    currency: str = "£"

    def now(self) -> datetime:
        return self.clock()

    def publish(self, action: ActionType, details: str) -> None:
        event = ActivityEvent(
            actor_uid=self.actor.uid,
            actor_email=self.actor.email,
            action=action,
            details=details,
        )
        self.background.add_task(self.recorder.record, event)


ActionSpec = Union[ActionType, Callable[[Any], ActionType]]


def audited(
    action: ActionSpec, describe: Callable[[Any], str]
) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """Publish an activity event built from the result of a successful call.

    ``action`` is either a fixed ``ActionType`` or a function of the result;
    ``describe`` turns the result into the free-text details.
    """

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(ctx: ServiceContext, *args: Any, **kwargs: Any) -> R:
            result = await func(ctx, *args, **kwargs)
            kind = action if isinstance(action, ActionType) else action(result)
            ctx.publish(kind, describe(result))
            return result

        return wrapper

    return decorator


async def list_activity(db: AsyncSession, limit: int = 500) -> list[ActivityLog]:
    result = await db.execute(
        select(ActivityLog).order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
