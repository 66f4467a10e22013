"""User service — registration, login and profile.

Learn: Registration and login are each ONE unit of work together with
ownership reconciliation. Either the account exists (or the login is
accepted) AND the caller's anonymous tasks moved over, or neither
happened. A failed reconciliation rolls back the new user and no token
is issued.

All input validation happens before the first write, so a rejected
registration leaves no trace in the database.
"""

import uuid
from typing import Optional

import structlog
from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.jwt import create_access_token
from taskboard.auth.password import hash_password, needs_rehash, verify_password
from taskboard.db.models import User
from taskboard.errors import AuthenticationError, NotFound, StoreError, ValidationError
from taskboard.events.store import EventStore, user_stream
from taskboard.events.types import USER_REGISTERED
from taskboard.services.reconciler import reconcile_anonymous_tasks

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 8


def is_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class UserService:
    """Business logic for accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = EventStore(db)

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    # ─── Register ────────────────────────────────────────

    async def register(
        self,
        email: str,
        password: str,
        anonymous_identifier: Optional[str] = None,
    ) -> tuple[User, int]:
        """Create an account and claim the caller's anonymous tasks.

        Returns (user, number of tasks migrated).
        """
        email = (email or "").strip()
        password = password or ""

        if not is_valid_email(email):
            raise ValidationError("Invalid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        try:
            if await self.find_by_email(email):
                raise ValidationError("Email is already in use")

            user = User(email=email, password_hash=hash_password(password))
            self.db.add(user)
            await self.db.flush()  # need user.id for the reconciliation

            migrated = await reconcile_anonymous_tasks(
                self.db, user, anonymous_identifier
            )
            await self.events.append(
                stream_id=user_stream(user.id),
                event_type=USER_REGISTERED,
                data={"email": email, "migrated_tasks": migrated},
            )
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email.
            await self.db.rollback()
            raise ValidationError("Email is already in use") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user.register_failed", error=str(e))
            raise StoreError("Error registering user") from e

        logger.info("user.registered", user_id=str(user.id), migrated=migrated)
        return user, migrated

    # ─── Login ───────────────────────────────────────────

    async def login(
        self,
        email: str,
        password: str,
        anonymous_identifier: Optional[str] = None,
    ) -> tuple[User, str, int]:
        """Check credentials, claim anonymous tasks, sign a token.

        Returns (user, token, number of tasks migrated).
        """
        email = (email or "").strip()
        try:
            user = await self.find_by_email(email)
        except SQLAlchemyError as e:
            logger.error("user.login_failed", reason="store", error=str(e))
            raise StoreError("Error logging in") from e

        if not user:
            logger.info("user.login_failed", reason="unknown_email")
            raise AuthenticationError(
                "Couldn't find an account associated with this email."
            )
        if not verify_password(password or "", user.password_hash):
            logger.info("user.login_failed", reason="bad_password", user_id=str(user.id))
            raise AuthenticationError(
                "That password was incorrect. Please try again."
            )

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)

        try:
            migrated = await reconcile_anonymous_tasks(
                self.db, user, anonymous_identifier
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user.login_failed", reason="reconcile", error=str(e))
            raise StoreError("Error logging in") from e

        token = create_access_token(str(user.id))
        logger.info("user.logged_in", user_id=str(user.id), migrated=migrated)
        return user, token, migrated

    # ─── Profile ─────────────────────────────────────────

    async def get_profile(self, user_id: str) -> User:
        try:
            uid = uuid.UUID(user_id)
        except (TypeError, ValueError):
            raise NotFound("User not found")
        try:
            user = await self.db.get(User, uid)
        except SQLAlchemyError as e:
            raise StoreError("Error fetching user profile") from e
        if not user:
            raise NotFound("User not found")
        return user
