import hmac
from dataclasses import dataclass
from enum import Enum


class CredentialKind(str, Enum):
    INTERNAL_ID = "internal_id"
    CREATOR_CONTACT = "creator_contact"


@dataclass(slots=True)
class DeleteGrant:
    listing_id: int
    credential_kind: CredentialKind


def _same(supplied: str, stored: str | None) -> bool:
    if not stored:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8"))


def match_delete_credential(
    supplied: str | None,
    *,
    internal_id: str | None,
    creator_contact: str | None,
) -> CredentialKind | None:
    """Return which stored secret the supplied credential matches, if any.

    Comparison is exact: no trimming and no case folding, for the contact
    address as well as the generated id.
    """
    if not supplied:
        return None
    if _same(supplied, internal_id):
        return CredentialKind.INTERNAL_ID
    if _same(supplied, creator_contact):
        return CredentialKind.CREATOR_CONTACT
    return None


def parse_bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", maxsplit=1)[1].strip()
    return token or None


def key_in(supplied: str | None, allowed: list[str]) -> bool:
    if not supplied:
        return False
    encoded = supplied.encode("utf-8")
    return any(hmac.compare_digest(encoded, candidate.encode("utf-8")) for candidate in allowed)
