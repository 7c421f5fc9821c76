"""
daybook/features/profile/service.py

Profile document: preferences, favourite exercise types and account deletion.
"""

import logging
from datetime import date
from typing import List, Optional

from daybook.core.errors import ValidationError
from daybook.core.session import UserSession
from daybook.features.auth.service import DATE_OF_BIRTH_FORMAT, AuthProvider
from daybook.features.documents.store import PROFILE_COLLECTION, DocumentStore
from daybook.models.user import UserProfile

logger = logging.getLogger("daybook")


class ProfileService:
    def __init__(self, session: UserSession, store: DocumentStore, provider: Optional[AuthProvider] = None):
        self.session = session
        self.store = store
        self.provider = provider

    async def fetch_profile(self) -> UserProfile:
        """Load the profile, creating a default one when none was stored."""
        user_id = self.session.user_id
        doc = await self.store.get(user_id, PROFILE_COLLECTION, user_id)
        if doc is not None and doc.data:
            return UserProfile.from_document(doc.data, user_id)

        profile = UserProfile(id=user_id, email=self.session.email or "", subscription_status=self.session.tier)
        await self.store.set(user_id, PROFILE_COLLECTION, user_id, profile.to_document())
        logger.info("[profile] created default profile", extra={"user_id": user_id})
        return profile

    async def update_details(
        self,
        *,
        firstname: str,
        surname: str,
        date_of_birth: Optional[date],
        country_of_residence: str,
    ) -> UserProfile:
        if not firstname.strip() or not surname.strip() or date_of_birth is None:
            raise ValidationError("Please enter all fields correctly.")
        await self._merge(
            {
                "firstname": firstname.strip(),
                "surname": surname.strip(),
                "dateOfBirth": date_of_birth.strftime(DATE_OF_BIRTH_FORMAT),
                "countryOfResidence": country_of_residence,
            }
        )
        return await self.fetch_profile()

    async def favourites(self) -> List[str]:
        return (await self.fetch_profile()).favourites

    async def toggle_favourite(self, exercise_type: str) -> List[str]:
        favourites = list(await self.favourites())
        if exercise_type in favourites:
            favourites = [f for f in favourites if f != exercise_type]
        else:
            favourites.append(exercise_type)
        await self._merge({"favourites": favourites})
        return favourites

    async def set_mailing_list(self, subscribed: bool) -> None:
        await self._merge({"mailingList": bool(subscribed)})

    async def delete_account(self) -> None:
        """Remove the profile document, then the auth account, then sign out."""
        user_id = self.session.user_id
        await self.store.delete(user_id, PROFILE_COLLECTION, user_id)
        if self.provider is not None:
            await self.provider.delete_user(user_id)
            await self.provider.sign_out()
        self.session.sign_out()
        logger.info("[profile] account deleted", extra={"user_id": user_id})

    async def _merge(self, fields: dict) -> None:
        user_id = self.session.user_id
        await self.store.set(user_id, PROFILE_COLLECTION, user_id, fields, merge=True)
