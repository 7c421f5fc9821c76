"""
daybook/features/auth/service.py

Sign-in, registration and password reset on top of an external
authentication provider. Profile documents are written to the document store.
"""

import hashlib
import logging
import secrets
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

from daybook.core.errors import AuthError, ValidationError
from daybook.core.session import UserSession
from daybook.features.documents.store import PROFILE_COLLECTION, DocumentStore
from daybook.models.entitlement import Tier
from daybook.models.user import AuthUser, UserProfile

logger = logging.getLogger("daybook")

MIN_PASSWORD_LENGTH = 6
NONCE_LENGTH = 32
DATE_OF_BIRTH_FORMAT = "%d/%m/%Y"
_NONCE_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVXYZabcdefghijklmnopqrstuvwxyz-._"


class AuthProvider(ABC):
    """External identity service (email/password accounts)."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthUser:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...

    @abstractmethod
    async def send_email_verification(self, user: AuthUser) -> None:
        ...

    @abstractmethod
    async def send_password_reset(self, email: str) -> None:
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        ...


def is_valid_email(email: str) -> bool:
    return "@" in email and "." in email


def generate_nonce(length: int = NONCE_LENGTH) -> str:
    """Random nonce for third-party sign-in.

    Failing to gather randomness is unrecoverable and raises RuntimeError.
    """
    if length <= 0:
        raise ValueError("nonce length must be positive")
    try:
        return "".join(secrets.choice(_NONCE_CHARSET) for _ in range(length))
    except (OSError, NotImplementedError) as exc:
        logger.critical("[auth] unable to generate nonce", extra={"error": str(exc)})
        raise RuntimeError("Unable to generate nonce") from exc


def sha256_nonce(nonce: str) -> str:
    return hashlib.sha256(nonce.encode("utf-8")).hexdigest()


class AuthService:
    def __init__(self, provider: AuthProvider, store: DocumentStore):
        self.provider = provider
        self.store = store

    async def login(self, email: str, password: str) -> UserSession:
        email = email.strip()
        if not email or not password.strip():
            raise ValidationError("Please fill in all fields.")
        if not is_valid_email(email):
            raise ValidationError("Please enter a valid email.")

        user = await self.provider.sign_in(email, password)
        if not user.email_verified:
            await self.provider.sign_out()
            await self.provider.send_email_verification(user)
            logger.info("[auth] unverified login blocked", extra={"user_id": user.id, "error_code": "email_unverified"})
            raise AuthError("Verify your email to Log In.", code="email_unverified")

        tier = Tier.BASIC
        doc = await self.store.get(user.id, PROFILE_COLLECTION, user.id)
        if doc is not None:
            tier = Tier(doc.data.get("subscriptionStatus") or Tier.BASIC.value)

        logger.info("[auth] login", extra={"user_id": user.id, "tier": tier.value})
        return UserSession(user.id, tier=tier, email=user.email)

    async def register(
        self,
        *,
        firstname: str,
        surname: str,
        email: str,
        password: str,
        confirm_password: str,
        date_of_birth: Optional[date],
        country_of_residence: str,
        mailing_list: bool = False,
    ) -> UserProfile:
        """Create the account, send verification and write the profile.

        The new account is signed out straight away; the user has to verify
        their email before the first login.
        """
        if password != confirm_password:
            raise ValidationError("Your password does not match, please try again")
        required = [firstname, surname, email, password, country_of_residence]
        if any(not value.strip() for value in required) or date_of_birth is None:
            raise ValidationError("Please enter all fields correctly.")
        if not is_valid_email(email.strip()):
            raise ValidationError("Please enter a valid email.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        user = await self.provider.sign_up(email.strip(), password)
        await self.provider.sign_out()
        await self.provider.send_email_verification(user)

        profile = UserProfile(
            id=user.id,
            firstname=firstname.strip(),
            surname=surname.strip(),
            email=email.strip(),
            joined=datetime.now(),
            subscription_status=Tier.BASIC,
            date_of_birth=date_of_birth.strftime(DATE_OF_BIRTH_FORMAT),
            country_of_residence=country_of_residence,
            agreed_to_terms=True,
            mailing_list=mailing_list,
        )
        await self.store.set(user.id, PROFILE_COLLECTION, user.id, profile.to_document())
        logger.info("[auth] registered", extra={"user_id": user.id})
        return profile

    async def send_password_reset(self, email: str) -> str:
        email = email.strip()
        if not is_valid_email(email):
            raise ValidationError("Please enter a valid email.")
        await self.provider.send_password_reset(email)
        return f"An email has been sent to {email} to reset your password."

    async def logout(self, session: UserSession) -> None:
        await self.provider.sign_out()
        session.sign_out()
