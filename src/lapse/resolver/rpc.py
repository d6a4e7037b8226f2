"""On-chain expiry lookups over Ethereum JSON-RPC.

The registrar's ``nameExpires(uint256)`` is read with a plain ``eth_call``;
the token id is the keccak-256 hash of the name's label. A zero result or
any transport, RPC or decoding error resolves to None.
"""

import itertools
import logging
from datetime import UTC, datetime

import httpx
from Crypto.Hash import keccak

from lapse.resolver.names import normalize_name

logger = logging.getLogger(__name__)

# .eth base registrar on mainnet
DEFAULT_REGISTRAR_ADDRESS = "0x57f1887a8BF19b14fC0dF6Fd9B2acc9Af147eA85"


def keccak256(data: bytes) -> bytes:
    return keccak.new(data=data, digest_bits=256).digest()


def label_hash(label: str) -> bytes:
    """Token id of ``label`` in the registrar: keccak-256 of its UTF-8 bytes."""
    return keccak256(label.encode("utf-8"))


NAME_EXPIRES_SELECTOR = keccak256(b"nameExpires(uint256)")[:4]


def encode_name_expires(label: str) -> str:
    """Calldata for ``nameExpires(labelhash)`` as a 0x-prefixed hex string."""
    return "0x" + (NAME_EXPIRES_SELECTOR + label_hash(label)).hex()


class RpcExpiryResolver:
    """Resolves expiries by calling the registrar contract through an RPC node."""

    def __init__(
        self,
        rpc_url: str,
        registrar_address: str = DEFAULT_REGISTRAR_ADDRESS,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            rpc_url: JSON-RPC endpoint of an Ethereum node.
            registrar_address: Contract exposing ``nameExpires(uint256)``.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._rpc_url = rpc_url
        self._registrar_address = registrar_address
        self._timeout = timeout
        self._transport = transport
        self._request_ids = itertools.count(1)

    async def resolve_expiry(self, name: str) -> datetime | None:
        label = normalize_name(name).removesuffix(".eth")
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": "eth_call",
            "params": [
                {"to": self._registrar_address, "data": encode_name_expires(label)},
                "latest",
            ],
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self._rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "expiry_lookup_failed",
                extra={"resource.name": name, "error.message": str(e)},
            )
            return None

        if not isinstance(body, dict) or body.get("error") is not None:
            error = body.get("error") if isinstance(body, dict) else body
            logger.warning(
                "expiry_lookup_rejected",
                extra={"resource.name": name, "error.message": str(error)},
            )
            return None

        try:
            timestamp = int(body["result"], 16)
            expiry = datetime.fromtimestamp(timestamp, UTC) if timestamp else None
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            logger.warning(
                "expiry_lookup_undecodable",
                extra={"resource.name": name, "error.message": str(e)},
            )
            return None

        if expiry is None:
            logger.debug("expiry_not_found", extra={"resource.name": name})
        return expiry
