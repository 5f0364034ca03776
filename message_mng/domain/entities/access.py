"""
Caller identity and access entities.

None of these are persisted; they live for one request.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List


@dataclass(frozen=True)
class RequestContext:
    """Identity of the authenticated caller, passed explicitly to services."""
    user_id: str
    email: str
    token: str


@dataclass(frozen=True)
class IdentityUser:
    """User record returned by the identity provider lookup."""
    local_id: str
    email: str = ""


@dataclass
class UserClients:
    """A project-service user with the MQTT client ids it owns."""
    username: str
    client_ids: List[str] = field(default_factory=list)
    project_id: str = ""


@dataclass(frozen=True)
class AccessGrant:
    """Client ids (and their projects) the caller may query."""
    client_ids: FrozenSet[str] = frozenset()
    project_ids: FrozenSet[str] = frozenset()

    @classmethod
    def from_users(cls, users: Iterable[UserClients]) -> "AccessGrant":
        """Flatten every user's client ids into a single permitted set."""
        client_ids = set()
        project_ids = set()
        for user in users:
            client_ids.update(c for c in user.client_ids if c)
            if user.project_id:
                project_ids.add(user.project_id)
        return cls(client_ids=frozenset(client_ids), project_ids=frozenset(project_ids))

    @property
    def is_empty(self) -> bool:
        return not self.client_ids

    def allows(self, client_id: str) -> bool:
        return client_id in self.client_ids
