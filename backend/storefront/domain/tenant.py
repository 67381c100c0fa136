"""
Tenant Domain Models

A tenant is a distributor: a business customer with its own branding and
pricing rules, identified by email domain, subdomain or a verified custom
domain.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum


class DomainStatus(str, Enum):
    """Verification status of a custom domain"""
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class Tenant(BaseModel):
    """
    Tenant identity as resolved from a request host

    Only what the storefront needs to brand and price a request.
    """
    id: int
    name: str
    logo_url: Optional[str] = None
    brand_color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DistributorDomain(BaseModel):
    """
    Custom domain registered for a distributor

    Only domains with status "verified" resolve tenant identity.
    """
    id: int = Field(..., description="Domain record ID")
    distributor_id: int = Field(..., description="Owning distributor")
    domain: str = Field(..., description="Normalized host name")
    status: DomainStatus = Field(DomainStatus.PENDING, description="Verification status")
    last_checked_at: Optional[datetime] = Field(None, description="Last verification attempt")
    details: Optional[dict] = Field(None, description="Verifier output")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    @property
    def is_verified(self) -> bool:
        return self.status == DomainStatus.VERIFIED.value


class Distributor(BaseModel):
    """
    Distributor domain model

    Fields:
        id: Internal distributor ID
        name: Company name (also matched against subdomain labels)
        email_domain: Registered email domain, also accepted as a host
        logo_url: Branding logo
        brand_color: Branding color (hex)
        default_discount_percent: Distributor-wide discount, 0..100
        domains: Custom domains (from JOIN, optional)
    """
    id: int = Field(..., description="Distributor ID")
    name: str = Field(..., description="Distributor name")
    email_domain: str = Field(..., description="Registered email domain")
    logo_url: Optional[str] = Field(None, description="Logo URL")
    brand_color: Optional[str] = Field(None, description="Brand color")
    default_discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    domains: List[DistributorDomain] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    def to_tenant(self) -> Tenant:
        return Tenant(
            id=self.id,
            name=self.name,
            logo_url=self.logo_url,
            brand_color=self.brand_color
        )

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        if self.default_discount_percent is not None:
            data['default_discount_percent'] = float(self.default_discount_percent)
        return data


class DistributorCreate(BaseModel):
    """Schema for creating a distributor"""
    name: str = Field(..., min_length=1)
    email_domain: str = Field(..., min_length=1)
    logo_url: Optional[str] = None
    brand_color: Optional[str] = None
    default_discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator('email_domain')
    @classmethod
    def normalize_email_domain(cls, v: str) -> str:
        return v.strip().lower()


class DistributorUpdate(BaseModel):
    """Schema for updating a distributor"""
    name: Optional[str] = None
    email_domain: Optional[str] = None
    logo_url: Optional[str] = None
    brand_color: Optional[str] = None

    @field_validator('email_domain')
    @classmethod
    def normalize_email_domain(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class DomainCreate(BaseModel):
    domain: str = Field(..., min_length=1)

    @field_validator('domain')
    @classmethod
    def normalize_domain(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("domain must not be blank")
        return v


class DomainStatusUpdate(BaseModel):
    """Outcome of an external DNS verification"""
    status: DomainStatus
    details: Optional[dict] = None
