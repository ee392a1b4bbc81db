"""Verification engine: request in, result envelope out."""

import asyncio
import itertools
import logging
import time
from dataclasses import replace
from typing import Optional

from .analyzer import TokenAnalyzer
from .cache import VerificationCache, cache_key
from .clients import ExplorerClient, RpcClient
from .config import Config
from .crosschain import CrossChainOrchestrator
from .decision import decide
from .errors import AddressValidationError, NotAContractError, UnsupportedChainError
from .models import (
    AnalysisDegraded,
    AnalysisFailed,
    AnalysisOutcome,
    CrossChainInfo,
    VerificationDecision,
    VerificationRequest,
    VerificationResult,
    utc_now_iso,
)
from .report import build_formatted_report

logger = logging.getLogger(__name__)


# Failures that will not change on retry
TERMINAL_ERRORS = (AddressValidationError, UnsupportedChainError, NotAContractError)


def _is_cacheable(outcome: AnalysisOutcome) -> bool:
    """Completed and degraded analyses are cached; transient failures are not."""
    if isinstance(outcome, AnalysisFailed):
        return isinstance(outcome.error, TERMINAL_ERRORS)
    return True


class VerificationEngine:
    """Verifies tokens and renders automation decisions.

    ``verify`` never raises for bad input or collaborator failures: every
    failure is returned as a populated, JSON-serializable result. Results are
    cached per (address, chain, cross-chain flag) when a cache is supplied.
    """

    def __init__(
        self,
        config: Config,
        analyzer: TokenAnalyzer,
        orchestrator: Optional[CrossChainOrchestrator] = None,
        cache: Optional[VerificationCache] = None,
        clients: tuple = (),
    ):
        self.config = config
        self.analyzer = analyzer
        self.orchestrator = orchestrator or CrossChainOrchestrator(
            analyzer,
            chain_timeout=config.chain_timeout_seconds,
            max_concurrent_chains=config.max_concurrent_chains,
        )
        self.cache = cache
        self._counter = itertools.count(1)
        self._clients = list(clients)

    async def __aenter__(self) -> "VerificationEngine":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        """Close HTTP clients created by ``create_engine``."""
        for client in self._clients:
            await client.aclose()
        self._clients = []

    def next_request_id(self) -> str:
        return f"req_{int(time.time() * 1000)}_{next(self._counter)}"

    async def verify(self, request: VerificationRequest) -> VerificationResult:
        """Verify one token, serving from cache when possible."""
        chain_id = request.chain_id or self.config.default_chain_id
        key = cache_key(request.token_address or "", chain_id, request.cross_chain)

        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s", key)
                return replace(cached, request_id=self.next_request_id())

        try:
            result, outcome = await self._run(request, chain_id)
        except Exception as e:
            logger.error("Verification of %s failed: %s", request.token_address, e, exc_info=True)
            return self._error_result(request, str(e) or e.__class__.__name__)

        # Only completed runs reach this point, so cancellation never caches
        if self.cache is not None and _is_cacheable(outcome):
            self.cache.put(key, result)
        return result

    async def _run(self, request: VerificationRequest, chain_id: int) -> tuple[VerificationResult, AnalysisOutcome]:
        request_id = self.next_request_id()
        timestamp = utc_now_iso()
        logger.info(
            "Verifying %s on chain %s%s",
            request.token_address,
            chain_id,
            " (cross-chain)" if request.cross_chain else "",
        )

        if request.cross_chain:
            outcome, cross_chain = await self._analyze_cross_chain(request, chain_id)
        else:
            outcome = await self.analyzer.analyze(request.token_address, chain_id)
            cross_chain = None

        analysis = outcome.analysis
        if isinstance(outcome, AnalysisDegraded):
            logger.warning("Analysis of %s degraded: %s", analysis.token_address, outcome.reason)

        result = VerificationResult(
            request_id=request_id,
            timestamp=timestamp,
            request=request,
            decision=decide(analysis, cross_chain),
            formatted_report=build_formatted_report(analysis, cross_chain),
            chain_analysis=analysis,
            cross_chain_analysis=cross_chain,
        )
        return result, outcome

    async def _analyze_cross_chain(
        self, request: VerificationRequest, chain_id: int
    ) -> tuple[AnalysisOutcome, CrossChainInfo]:
        address = request.token_address or ""
        targets = self.orchestrator.resolve_targets(request.chain_ids)

        if chain_id not in targets:
            outcome, cross_chain = await asyncio.gather(
                self.analyzer.analyze(request.token_address, chain_id),
                self.orchestrator.verify(address, targets, base_chain_id=chain_id),
            )
            return outcome, cross_chain

        cross_chain, outcomes = await self.orchestrator.verify_with_outcomes(
            address, targets, base_chain_id=chain_id
        )
        outcome = outcomes.get(chain_id)
        if outcome is None:
            # Base chain timed out or raised inside the fan-out
            outcome = await self.analyzer.analyze(request.token_address, chain_id)
        return outcome, cross_chain

    def _error_result(self, request: VerificationRequest, message: str) -> VerificationResult:
        return VerificationResult(
            request_id=self.next_request_id(),
            timestamp=utc_now_iso(),
            request=request,
            decision=VerificationDecision(
                is_safe=False,
                can_automate=False,
                requires_approval=False,
                risks=[message],
                reason=f"Verification failed: {message}",
            ),
            formatted_report=f"Error during verification: {message}",
        )

    async def quick_verify(self, token_address: str, chain_id: Optional[int] = None) -> VerificationResult:
        """Single-chain verification."""
        return await self.verify(VerificationRequest(
            token_address=token_address,
            chain_id=chain_id or self.config.default_chain_id,
        ))

    async def deep_verify(self, token_address: str, chain_ids: Optional[list[int]] = None) -> VerificationResult:
        """Single-chain plus cross-chain verification."""
        return await self.verify(VerificationRequest(
            token_address=token_address,
            chain_id=self.config.default_chain_id,
            cross_chain=True,
            chain_ids=chain_ids,
        ))

    async def verify_batch(self, requests: list[VerificationRequest]) -> list[VerificationResult]:
        """Verify several requests concurrently; results keep request order."""
        return list(await asyncio.gather(*(self.verify(r) for r in requests)))

    def clear_cache(self):
        if self.cache is not None:
            self.cache.clear()

    def cache_stats(self) -> dict:
        if self.cache is None:
            return {"enabled": False, "size": 0, "entries": []}
        return {"enabled": True, **self.cache.stats()}


def create_engine(config: Optional[Config] = None) -> VerificationEngine:
    """Build an engine wired to the real RPC and explorer clients."""
    config = config or Config.from_env()
    rpc = RpcClient(config)
    explorer = ExplorerClient(config)
    cache = (
        VerificationCache(config.cache_ttl_seconds, maxsize=config.cache_max_entries)
        if config.enable_caching
        else None
    )

    return VerificationEngine(
        config,
        TokenAnalyzer(config, rpc, explorer),
        cache=cache,
        clients=(rpc, explorer),
    )
