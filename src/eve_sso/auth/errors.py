"""Error taxonomy for the EVE Online SSO provider.

Every failure is terminal for the current authentication attempt.
Nothing here is retried; callers decide whether to start over.
"""


class SSOError(Exception):
    """Base class for all SSO failures."""

    code = "sso_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class DiscoveryError(SSOError):
    """Discovery document or key set could not be fetched or parsed."""

    code = "discovery_failed"


class TokenExchangeError(SSOError):
    """Token endpoint rejected the grant or returned an unusable body."""

    code = "token_exchange_failed"


class TokenVerificationError(SSOError):
    """Base class for identity token rejections."""

    code = "invalid_token"


class MalformedTokenError(TokenVerificationError):
    code = "malformed_token"


class SignatureInvalidError(TokenVerificationError):
    code = "invalid_signature"


class TokenExpiredError(TokenVerificationError):
    code = "token_expired"


class IssuerMismatchError(TokenVerificationError):
    code = "issuer_mismatch"


class HeaderTypeError(TokenVerificationError):
    code = "invalid_header_type"


class ScopeClaimError(TokenVerificationError):
    code = "scope_mismatch"


class SubjectFormatError(TokenVerificationError):
    code = "invalid_subject"


class AudienceMismatchError(TokenVerificationError):
    code = "audience_mismatch"


class MissingClaimError(TokenVerificationError):
    code = "missing_claim"

    def __init__(self, claim: str):
        super().__init__(f"Missing or empty claim: {claim}")
        self.claim = claim
