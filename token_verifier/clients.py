"""RPC node and block explorer collaborators.

Both clients surface every failure as a typed ``ProviderError`` and report
"no data" (unverified source, no holders, no creation record) as empty
values, so callers can tell the two apart.
"""

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Protocol, TypeVar

import httpx

from .chains import get_chain
from .config import Config
from .errors import (
    ProviderError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
    UnsupportedChainError,
)
from .models import HolderRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_DATA_MESSAGES = ("no data found", "no records found", "no transactions found")


@dataclass(frozen=True)
class SourceInfo:
    """Verified source metadata as reported by the explorer."""
    source_code: str
    contract_name: str = ""
    implementation: str = ""
    is_proxy: bool = False

    @property
    def is_verified(self) -> bool:
        return bool(self.source_code)


@dataclass(frozen=True)
class CreationInfo:
    contract_address: str
    creator: Optional[str]
    tx_hash: Optional[str] = None


class BytecodeProvider(Protocol):
    async def get_bytecode(self, address: str, chain_id: int) -> str:
        """Runtime bytecode as hex, ``"0x"`` for accounts without code."""
        ...


class ExplorerProvider(Protocol):
    async def get_source(self, address: str, chain_id: int) -> Optional[SourceInfo]:
        ...

    async def get_token_holders(self, address: str, chain_id: int, limit: int) -> list[HolderRecord]:
        ...

    async def get_contract_creation(self, address: str, chain_id: int) -> Optional[CreationInfo]:
        ...

    async def get_address_label(self, address: str, chain_id: int) -> Optional[str]:
        ...


async def call_with_timeout(awaitable: Awaitable[T], timeout: Optional[float], provider: str) -> T:
    """Await a collaborator call, turning expiry into ``ProviderTimeoutError``."""
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise ProviderTimeoutError(provider, timeout) from None


def _translate_http_error(provider: str, exc: httpx.HTTPError) -> ProviderError:
    if isinstance(exc, httpx.TimeoutException):
        return ProviderTimeoutError(provider)
    if isinstance(exc, httpx.HTTPStatusError):
        return ProviderHTTPError(provider, exc.response.status_code)
    return ProviderError(provider, str(exc) or exc.__class__.__name__)


def flatten_source(source: str) -> str:
    """Unwrap Etherscan's standard-JSON (``{{...}}``) multi-file sources."""
    if not source.startswith("{{"):
        return source
    try:
        source_json = json.loads(source[1:-1])
    except json.JSONDecodeError:
        return source
    sources = source_json.get("sources", {})
    return "\n\n".join(
        f"// File: {name}\n{info.get('content', '')}"
        for name, info in sources.items()
    )


class RpcClient:
    """Minimal JSON-RPC client; only what verification needs."""

    provider = "rpc"

    def __init__(self, config: Config, http: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.http = http or httpx.AsyncClient(timeout=config.call_timeout_seconds)
        self._ids = itertools.count(1)

    async def aclose(self):
        await self.http.aclose()

    async def _call(self, chain_id: int, method: str, params: list) -> Any:
        url = self.config.get_rpc_url(chain_id)
        if not url:
            raise UnsupportedChainError(chain_id)

        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            resp = await self.http.post(url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise _translate_http_error(self.provider, e) from e
        except ValueError as e:
            raise ProviderResponseError(self.provider, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProviderResponseError(self.provider, "unexpected response shape")
        if data.get("error"):
            error = data["error"]
            message = error.get("message", "error") if isinstance(error, dict) else str(error)
            raise ProviderResponseError(self.provider, message)
        return data.get("result")

    async def get_bytecode(self, address: str, chain_id: int) -> str:
        result = await self._call(chain_id, "eth_getCode", [address.lower(), "latest"])
        if result is None:
            return "0x"
        if not isinstance(result, str):
            raise ProviderResponseError(self.provider, "eth_getCode returned non-string")
        return result or "0x"


class ExplorerClient:
    """Etherscan-family explorer API client."""

    provider = "explorer"

    def __init__(self, config: Config, http: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.http = http or httpx.AsyncClient(timeout=config.call_timeout_seconds)

    async def aclose(self):
        await self.http.aclose()

    async def _request(self, chain_id: int, params: dict) -> Any:
        """Return the ``result`` field, or None when the API reports no data."""
        chain = get_chain(chain_id)
        if chain is None:
            raise UnsupportedChainError(chain_id)

        query = {**params, "apikey": self.config.get_explorer_api_key(chain_id)}
        try:
            resp = await self.http.get(chain.explorer_api_url, params=query)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise _translate_http_error(self.provider, e) from e
        except ValueError as e:
            raise ProviderResponseError(self.provider, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProviderResponseError(self.provider, "unexpected response shape")

        if str(data.get("status")) == "1":
            return data.get("result")

        message = str(data.get("message") or "")
        result = data.get("result")
        if message.lower() in NO_DATA_MESSAGES or result == []:
            return None
        detail = result if isinstance(result, str) and result else message or "API error"
        raise ProviderResponseError(self.provider, detail)

    async def get_source(self, address: str, chain_id: int) -> Optional[SourceInfo]:
        result = await self._request(chain_id, {
            "module": "contract",
            "action": "getsourcecode",
            "address": address.lower(),
        })
        if not result:
            return None
        if not isinstance(result, list) or not isinstance(result[0], dict):
            raise ProviderResponseError(self.provider, "unexpected getsourcecode payload")

        entry = result[0]
        return SourceInfo(
            source_code=flatten_source(entry.get("SourceCode") or ""),
            contract_name=entry.get("ContractName") or "",
            implementation=entry.get("Implementation") or "",
            is_proxy=str(entry.get("Proxy", "0")) == "1",
        )

    async def get_token_holders(self, address: str, chain_id: int, limit: int = 10) -> list[HolderRecord]:
        result = await self._request(chain_id, {
            "module": "token",
            "action": "tokenholderlist",
            "contractaddress": address.lower(),
            "page": 1,
            "offset": limit,
        })
        if not result:
            return []
        if not isinstance(result, list):
            raise ProviderResponseError(self.provider, "unexpected tokenholderlist payload")

        holders = []
        for entry in result:
            try:
                holders.append(HolderRecord(
                    address=entry["TokenHolderAddress"],
                    percentage=float(entry.get("TokenHolderPercentage", 0)),
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise ProviderResponseError(self.provider, f"malformed holder entry: {e}") from e
        return holders

    async def get_contract_creation(self, address: str, chain_id: int) -> Optional[CreationInfo]:
        result = await self._request(chain_id, {
            "module": "contract",
            "action": "getcontractcreation",
            "contractaddresses": address.lower(),
        })
        if not result:
            return None
        entry = result[0] if isinstance(result, list) else None
        if not isinstance(entry, dict):
            raise ProviderResponseError(self.provider, "unexpected getcontractcreation payload")
        return CreationInfo(
            contract_address=(entry.get("contractAddress") or entry.get("ContractAddress") or address).lower(),
            creator=entry.get("contractCreator") or entry.get("ContractCreator") or None,
            tx_hash=entry.get("txHash") or entry.get("TxHash") or None,
        )

    async def get_address_label(self, address: str, chain_id: int) -> Optional[str]:
        result = await self._request(chain_id, {
            "module": "account",
            "action": "addresslabellookup",
            "address": address.lower(),
        })
        if not result or not isinstance(result, list) or not isinstance(result[0], dict):
            return None
        return result[0].get("Label") or result[0].get("Name") or None
