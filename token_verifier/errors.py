"""Error taxonomy for token verification.

Validation errors end a request before any network call is made. Provider
errors come from the RPC and explorer collaborators and are always recovered
by the analysis that made the call. Nothing here is meant to reach the caller
of ``VerificationEngine.verify`` as an exception.
"""

from typing import Optional


class VerificationError(Exception):
    """Base class for all errors raised inside the verifier."""

    code = "VERIFICATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class AddressValidationError(VerificationError):
    """The supplied token address is malformed."""

    code = "VALIDATION_ERROR"

    def __init__(self, address: str, errors: list[str]):
        super().__init__("; ".join(errors) or f"Invalid address: {address}")
        self.address = address
        self.errors = list(errors)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = list(self.errors)
        return data


class UnsupportedChainError(VerificationError):
    """No explorer/RPC configuration exists for the chain."""

    code = "UNSUPPORTED_CHAIN"

    def __init__(self, chain_id: int):
        super().__init__("Unsupported chain")
        self.chain_id = chain_id


class NotAContractError(VerificationError):
    """The address holds no deployed bytecode."""

    code = "NOT_A_CONTRACT"

    def __init__(self, address: str):
        super().__init__("No contract found at this address")
        self.address = address


class UnexpectedAnalysisError(VerificationError):
    """Wraps an unanticipated exception raised while analyzing a token."""

    code = "INTERNAL_ERROR"


class ProviderError(VerificationError):
    """A collaborator (RPC node or block explorer) call failed."""

    code = "DEPENDENCY_ERROR"

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    code = "TIMEOUT"

    def __init__(self, provider: str, timeout: Optional[float] = None):
        detail = f"timed out after {timeout:g}s" if timeout else "timed out"
        super().__init__(provider, detail)
        self.timeout = timeout


class ProviderHTTPError(ProviderError):
    code = "HTTP_ERROR"

    def __init__(self, provider: str, status_code: int):
        super().__init__(provider, f"HTTP {status_code}")
        self.status_code = status_code


class ProviderResponseError(ProviderError):
    """The collaborator answered, but the payload was unusable."""

    code = "BAD_RESPONSE"
