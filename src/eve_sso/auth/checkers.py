"""Claim and header checkers for EVE SSO identity tokens.

Each checker is a predicate over the decoded claims and the protected
header. `verify` returns None when the token passes and raises the
matching TokenVerificationError otherwise. TokenVerifier runs them in
the order returned by `default_checkers`, so the first violation in that
order is the one reported.
"""

import re
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable

from eve_sso.auth.errors import (
    AudienceMismatchError,
    HeaderTypeError,
    IssuerMismatchError,
    MissingClaimError,
    ScopeClaimError,
    SubjectFormatError,
    TokenExpiredError,
)
from eve_sso.auth.models import ScopeMatch

SUBJECT_PREFIX = "CHARACTER:EVE:"
SUBJECT_PATTERN = re.compile(r"CHARACTER:EVE:[0-9]+")


class Checker(ABC):
    """A single token constraint."""

    name: str = "checker"

    @abstractmethod
    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        """Raise a TokenVerificationError if the constraint does not hold."""
        ...


class ExpiryChecker(Checker):
    """Reject tokens whose `exp` is at or before now."""

    name = "exp"

    def __init__(self, leeway: int = 0, clock: Callable[[], float] = time.time):
        self.leeway = leeway
        self.clock = clock

    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenExpiredError("Token has no usable exp claim")
        if exp + self.leeway <= self.clock():
            raise TokenExpiredError(f"Token expired at {exp}")


class IssuerChecker(Checker):
    name = "iss"

    def __init__(self, issuer: str):
        self.issuer = issuer

    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        if claims.get("iss") != self.issuer:
            raise IssuerMismatchError(
                f"Issuer {claims.get('iss')!r} does not match {self.issuer!r}"
            )


class HeaderTypeChecker(Checker):
    """Protected header `typ` must be one of the allowed values."""

    name = "typ"

    def __init__(self, allowed: Iterable[str] = ("JWT",)):
        self.allowed = tuple(allowed)

    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        if header.get("typ") not in self.allowed:
            raise HeaderTypeError(f"Unexpected token type {header.get('typ')!r}")


class ScopeChecker(Checker):
    """Compare the granted `scp` claim with the scopes we asked for.

    `scp` may be a single string or a list of strings.
    """

    name = "scp"

    def __init__(self, requested: Iterable[str], match: ScopeMatch = ScopeMatch.SUBSET):
        self.requested = set(requested)
        self.match = match

    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        if "scp" not in claims or claims["scp"] is None:
            raise ScopeClaimError("Token has no scp claim")

        scp = claims["scp"]
        if isinstance(scp, str):
            granted = {scp}
        elif isinstance(scp, list) and all(isinstance(s, str) for s in scp):
            granted = set(scp)
        else:
            raise ScopeClaimError("scp claim is not a string or list of strings")

        if self.match is ScopeMatch.EXACT:
            ok = granted == self.requested
        elif self.match is ScopeMatch.ANY:
            ok = not self.requested or bool(granted & self.requested)
        else:
            ok = self.requested <= granted

        if not ok:
            missing = sorted(self.requested - granted)
            raise ScopeClaimError(
                f"Granted scopes do not satisfy '{self.match.value}' rule"
                + (f" (missing: {' '.join(missing)})" if missing else "")
            )


class SubjectChecker(Checker):
    """`sub` must identify an EVE character: CHARACTER:EVE:<id>."""

    name = "sub"

    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        sub = claims.get("sub")
        if not isinstance(sub, str) or not SUBJECT_PATTERN.fullmatch(sub):
            raise SubjectFormatError(f"Subject {sub!r} is not an EVE character")


class AuthorizedPartyChecker(Checker):
    name = "azp"

    def __init__(self, client_id: str):
        self.client_id = client_id

    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        if claims.get("azp") != self.client_id:
            raise AudienceMismatchError("Token was issued to a different client")


class RequiredClaimChecker(Checker):
    """Claim must be a non-empty string."""

    def __init__(self, claim: str):
        self.claim = claim
        self.name = claim

    def verify(self, claims: dict[str, Any], header: dict[str, Any]) -> None:
        value = claims.get(self.claim)
        if not isinstance(value, str) or not value:
            raise MissingClaimError(self.claim)


def default_checkers(
    issuer: str,
    client_id: str,
    scopes: Iterable[str],
    scope_match: ScopeMatch = ScopeMatch.SUBSET,
    leeway: int = 0,
    clock: Callable[[], float] = time.time,
) -> list[Checker]:
    """Checkers for an EVE SSO identity token, in reporting order."""
    return [
        ExpiryChecker(leeway=leeway, clock=clock),
        IssuerChecker(issuer),
        HeaderTypeChecker(["JWT"]),
        ScopeChecker(scopes, scope_match),
        SubjectChecker(),
        AuthorizedPartyChecker(client_id),
        RequiredClaimChecker("name"),
        RequiredClaimChecker("owner"),
    ]
