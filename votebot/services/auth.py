# votebot/services/auth.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.config import Settings
from votebot.database.models import BlockedUser, User
from votebot.services.errors import Forbidden


@dataclass(frozen=True, slots=True)
class AccessPolicy:
    admin_ids: frozenset[int] = frozenset()
    required_roles: frozenset[str] = frozenset()  # empty = no restriction

    @classmethod
    def from_settings(cls, settings: Settings) -> "AccessPolicy":
        return cls(
            admin_ids=frozenset(settings.admin_ids),
            required_roles=frozenset(r.lower() for r in settings.allowed_roles),
        )


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Caller as resolved by the identity provider for the current update.
    user_id is our users.id (None when the caller has no row yet).
    """
    external_id: int
    roles: tuple[str, ...] = ()
    user_id: int | None = None
    display_name: str | None = None


class AuthService:
    def __init__(self, policy: AccessPolicy) -> None:
        self.policy = policy

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthService":
        return cls(AccessPolicy.from_settings(settings))

    # ---------- predicates ----------
    async def is_blocked(self, session: AsyncSession, external_id: int) -> bool:
        res = await session.execute(
            select(BlockedUser.id).where(BlockedUser.telegram_id == external_id).limit(1)
        )
        return res.scalar_one_or_none() is not None

    def is_admin(self, external_id: int) -> bool:
        return external_id in self.policy.admin_ids

    def has_required_role(self, roles) -> bool:
        if not self.policy.required_roles:
            return True
        return any(str(r).lower() in self.policy.required_roles for r in roles)

    # ---------- gates ----------
    async def ensure_can_act(self, session: AsyncSession, identity: Identity, *, action: str) -> None:
        """
        Blocked first, then role. `action` ("submitting", "voting") only shapes the message.
        """
        if await self.is_blocked(session, identity.external_id):
            raise Forbidden(f"Your account has been blocked from {action}.")
        if not self.has_required_role(identity.roles):
            raise Forbidden("You are missing the community role required to take part.")

    def ensure_admin(self, identity: Identity) -> None:
        if not self.is_admin(identity.external_id):
            raise Forbidden("You are not allowed to use admin commands.")

    # ---------- users ----------
    async def get_or_create_user_by_telegram(
        self,
        session: AsyncSession,
        telegram_id: int,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        q = select(User).where(User.telegram_id == telegram_id)
        res = await session.execute(q)
        user = res.scalar_one_or_none()

        if user:
            changed = False
            if username is not None and user.username != username:
                user.username = username
                changed = True
            if first_name is not None and user.first_name != first_name:
                user.first_name = first_name
                changed = True
            if last_name is not None and user.last_name != last_name:
                user.last_name = last_name
                changed = True
            if changed:
                await session.flush()
            return user

        user = User(
            telegram_id=telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
        )
        session.add(user)
        await session.flush()  # user.id becomes available
        return user
