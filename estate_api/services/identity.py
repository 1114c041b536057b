"""
Federated identity trust boundary.

Provider-specific signature checking happens outside this service (the
client SDK or a dedicated verifier). The auth flow only consumes the
FederatedIdentity an IdentityAssertionVerifier hands it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from email_validator import validate_email, EmailNotValidError

from estate_api.utils.exceptions import ValidationError


@dataclass(frozen=True)
class FederatedIdentity:
    """A verified identity asserted by an external provider."""
    name: str
    email: str
    photo: Optional[str] = None


class IdentityAssertionVerifier(ABC):
    """Turns a provider assertion into a verified FederatedIdentity."""

    @abstractmethod
    async def verify(self, assertion: Mapping[str, Any]) -> FederatedIdentity:
        ...


class TrustedAssertionVerifier(IdentityAssertionVerifier):
    """
    Accepts assertions the provider SDK already verified on the client.

    Only the shape of the assertion is checked here.
    """

    async def verify(self, assertion: Mapping[str, Any]) -> FederatedIdentity:
        name = (assertion.get("name") or "").strip()
        email = (assertion.get("email") or "").strip()
        photo = assertion.get("photo") or None

        if not name:
            raise ValidationError("Federated identity is missing a name")

        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError(f"Federated identity has an invalid email: {e}")

        return FederatedIdentity(name=name, email=email, photo=photo)
