"""
User Domain Models

Accounts are created by the frontend auth; the backend only lists them and
lets an admin change a user's role or display name. A user belongs to the
distributor whose email domain matches the domain of their email address.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class User(BaseModel):
    """
    User domain model

    Fields:
        id: Auth provider subject
        email: Login email
        name: Display name
        role: customer | distributor | admin
        distributor_id: Distributor matched by email domain (from JOIN, optional)
        distributor_name: Distributor name (from JOIN, optional)
    """
    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    name: Optional[str] = Field(None, description="Display name")
    role: str = Field("customer", description="Role")
    created_at: Optional[datetime] = None
    distributor_id: Optional[int] = None
    distributor_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude={'distributor_id', 'distributor_name'})
        data['distributor'] = (
            {'id': self.distributor_id, 'name': self.distributor_name}
            if self.distributor_id is not None else None
        )
        return data


class UserUpdate(BaseModel):
    """Fields an admin may change; the role is checked by the route"""
    role: Optional[str] = None
    name: Optional[str] = None
