"""Configuration management for the token verifier."""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .chains import get_chain


CLASSIFIER_PROFILES = ("strict", "loose")
CHECKSUM_SCHEMES = ("legacy", "eip55")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    """Verifier configuration.

    Instances are immutable; build one with ``Config.from_env()`` or pass
    explicit keyword arguments (tests do the latter).
    """

    # Block explorer (the Etherscan family shares one key)
    etherscan_api_key: str = ""

    # Per-chain RPC overrides, keyed by chain id
    rpc_urls: dict[int, str] = field(default_factory=dict)

    # Verification settings
    default_chain_id: int = 1
    call_timeout_seconds: float = 30.0
    chain_timeout_seconds: float = 90.0
    max_concurrent_chains: int = 8
    holder_sample_size: int = 10

    # Cache
    enable_caching: bool = True
    cache_ttl_seconds: float = 3600.0
    cache_max_entries: int = 1024

    # Heuristics
    classifier_profile: str = "strict"
    checksum_scheme: str = "legacy"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from the environment (and a ``.env`` file)."""
        load_dotenv()

        rpc_urls = {}
        for key, value in os.environ.items():
            if key.startswith("RPC_URL_") and value:
                suffix = key[len("RPC_URL_"):]
                if suffix.isdigit():
                    rpc_urls[int(suffix)] = value

        return cls(
            etherscan_api_key=os.getenv("ETHERSCAN_API_KEY", ""),
            rpc_urls=rpc_urls,
            default_chain_id=int(os.getenv("DEFAULT_CHAIN_ID", cls.default_chain_id)),
            call_timeout_seconds=float(os.getenv("CALL_TIMEOUT_SECONDS", cls.call_timeout_seconds)),
            chain_timeout_seconds=float(os.getenv("CHAIN_TIMEOUT_SECONDS", cls.chain_timeout_seconds)),
            max_concurrent_chains=int(os.getenv("MAX_CONCURRENT_CHAINS", cls.max_concurrent_chains)),
            holder_sample_size=int(os.getenv("HOLDER_SAMPLE_SIZE", cls.holder_sample_size)),
            enable_caching=_env_bool("ENABLE_CACHING", cls.enable_caching),
            cache_ttl_seconds=float(os.getenv("CACHE_TTL_SECONDS", cls.cache_ttl_seconds)),
            cache_max_entries=int(os.getenv("CACHE_MAX_ENTRIES", cls.cache_max_entries)),
            classifier_profile=os.getenv("CLASSIFIER_PROFILE", cls.classifier_profile).lower(),
            checksum_scheme=os.getenv("CHECKSUM_SCHEME", cls.checksum_scheme).lower(),
        )

    def get_rpc_url(self, chain_id: int) -> Optional[str]:
        """Get RPC URL for a chain."""
        if chain_id in self.rpc_urls:
            return self.rpc_urls[chain_id]
        chain = get_chain(chain_id)
        return chain.rpc_url if chain else None

    def get_explorer_api_key(self, chain_id: int) -> str:
        """Get block explorer API key for a chain."""
        return self.etherscan_api_key

    def validate(self) -> list[str]:
        """Validate configuration, return list of issues."""
        issues = []

        if not self.etherscan_api_key:
            issues.append("No ETHERSCAN_API_KEY configured")

        if get_chain(self.default_chain_id) is None:
            issues.append(f"DEFAULT_CHAIN_ID {self.default_chain_id} is not a supported chain")

        if self.classifier_profile not in CLASSIFIER_PROFILES:
            issues.append(
                f"Unknown CLASSIFIER_PROFILE '{self.classifier_profile}' "
                f"(expected one of {', '.join(CLASSIFIER_PROFILES)})"
            )

        if self.checksum_scheme not in CHECKSUM_SCHEMES:
            issues.append(
                f"Unknown CHECKSUM_SCHEME '{self.checksum_scheme}' "
                f"(expected one of {', '.join(CHECKSUM_SCHEMES)})"
            )

        if self.call_timeout_seconds <= 0 or self.chain_timeout_seconds <= 0:
            issues.append("Timeouts must be positive")

        if self.max_concurrent_chains < 1:
            issues.append("MAX_CONCURRENT_CHAINS must be at least 1")

        return issues
