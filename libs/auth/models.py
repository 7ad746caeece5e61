import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

ADMIN_ROLES = frozenset({"admin"})
SERVICE_ROLE = "service_role"


class AuthUser(BaseModel):
    """
    Request-scoped identity built from a verified bearer token.

    For vendors ``user_id`` is the vendor id. ``status`` mirrors the vendor
    status claim at token issue time; fund movement re-checks the stored
    vendor record.
    """

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "vendor"
    status: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_service(self) -> bool:
        """Internal job tokens; limited to payout status checks and reconciliation."""
        return self.role == SERVICE_ROLE

    @property
    def is_operator(self) -> bool:
        return self.is_admin or self.is_service

    @property
    def is_vendor(self) -> bool:
        return self.role == "vendor"

    def vendor_id(self) -> uuid.UUID:
        """The vendor id carried by a vendor token."""
        return uuid.UUID(self.user_id)

    def can_act_for(self, vendor_id: uuid.UUID) -> bool:
        if self.is_admin:
            return True
        return self.is_vendor and self.user_id == str(vendor_id)


def system_actor(name: str = "reconciler") -> AuthUser:
    """Identity the scheduled reconciliation job acts as."""
    return AuthUser(user_id=f"system:{name}", role=SERVICE_ROLE)
