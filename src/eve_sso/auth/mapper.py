"""Map verified EVE SSO claims to an EveUser."""

from typing import Any

from eve_sso.auth.checkers import SUBJECT_PREFIX
from eve_sso.auth.providers import EveUser


def character_id(sub: str) -> str:
    """'CHARACTER:EVE:12345' -> '12345'."""
    return sub.replace(SUBJECT_PREFIX, "")


def normalize_scopes(scp: Any) -> list[str]:
    """`scp` is a string for a single scope and a list otherwise."""
    if isinstance(scp, (list, tuple)):
        return list(scp)
    return [scp]


def map_claims_to_user(claims: dict[str, Any]) -> EveUser:
    """Build an EveUser from a claim set that already passed verification.

    The claim set is copied, not mutated.
    """
    return EveUser(
        id=character_id(claims["sub"]),
        name=claims["name"],
        nickname=claims["name"],
        character_owner_hash=claims["owner"],
        scopes=normalize_scopes(claims["scp"]),
        expires_on=claims["exp"],
        raw=dict(claims),
    )
