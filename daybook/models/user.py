"""
daybook/models/user.py

Profile document stored alongside the user's collections.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from daybook.models.base import DocumentModel
from daybook.models.entitlement import Tier


class UserProfile(DocumentModel):
    id: str
    firstname: str = ""
    surname: str = ""
    email: str = ""
    joined: datetime = Field(default_factory=datetime.now)
    profile_picture_url: Optional[str] = None
    subscription_status: Tier = Tier.BASIC
    date_of_birth: str = ""
    country_of_residence: str = ""
    agreed_to_terms: bool = True
    mailing_list: bool = False
    favourites: List[str] = Field(default_factory=list)


class AuthUser(BaseModel):
    """What the authentication provider reports about the current user."""

    id: str
    email: str
    email_verified: bool = False
