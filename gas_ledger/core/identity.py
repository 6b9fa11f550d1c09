"""Resolved caller identity supplied by the upstream authentication gateway.

The ledger never authenticates. The gateway verifies credentials and forwards
the user name and granted capabilities as request headers; routes use them to
gate access, and the ledger records the name as an audit field only.
"""

from dataclasses import dataclass, field

from fastapi import Depends, Header, HTTPException, status

from gas_ledger.models.enums import Capability


@dataclass(frozen=True)
class Identity:
    """An already-verified caller."""

    username: str | None = None
    capabilities: frozenset[Capability] = field(default_factory=frozenset)

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities


ANONYMOUS = Identity()


def parse_capabilities(raw: str | None) -> frozenset[Capability]:
    """Parse a comma-separated capability header, ignoring unknown names."""
    if not raw:
        return frozenset()
    known = {c.value: c for c in Capability}
    return frozenset(known[name.strip()] for name in raw.split(",") if name.strip() in known)


def get_identity(
    x_user: str | None = Header(default=None),
    x_capabilities: str | None = Header(default=None),
) -> Identity:
    """Dependency for getting the identity resolved by the gateway."""
    username = x_user.strip() if x_user and x_user.strip() else None
    return Identity(username=username, capabilities=parse_capabilities(x_capabilities))


def require_capability(*capabilities: Capability):
    """Build a dependency that requires any one of the given capabilities."""

    def dependency(identity: Identity = Depends(get_identity)) -> Identity:
        if not any(identity.has(c) for c in capabilities):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Missing permission: " + " or ".join(c.value for c in capabilities),
            )
        return identity

    return dependency
