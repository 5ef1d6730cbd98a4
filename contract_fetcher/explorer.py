"""Block-explorer integration for verified contract metadata."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from .classifier import chain_id_to_name, classify, detect_proxy
from .config import ExplorerSettings
from .errors import ApiError, DecodeError, NotFoundError, TransportError
from .models import ContractRecord


logger = logging.getLogger(__name__)

_SUCCESS_STATUS = "1"


class MetadataClient:
    """Fetches ``getsourcecode`` results one address at a time.

    Every call waits ``request_delay_seconds`` before issuing its request,
    including the first one, regardless of how the previous call ended.
    """

    def __init__(
        self,
        settings: ExplorerSettings,
        *,
        http: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._sleep = sleep
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(timeout=httpx.Timeout(settings.timeout_seconds))

    def __enter__(self) -> "MetadataClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def fetch(self, address: str, chain_id: int, protocol: Optional[str] = None) -> ContractRecord:
        self._sleep(self._settings.request_delay_seconds)

        entry = self._request_source(address, chain_id)
        contract_name = str(entry.get("ContractName") or "")
        is_proxy, implementation = detect_proxy(entry.get("Implementation"))
        contract_type = classify(contract_name)

        return ContractRecord(
            address=address.lower(),
            chain=chain_id_to_name(chain_id),
            chain_id=chain_id,
            name=contract_name,
            symbol=None,
            source_code=str(entry.get("SourceCode") or ""),
            abi=str(entry.get("ABI") or ""),
            is_proxy=is_proxy,
            implementation_address=implementation,
            protocol=protocol,
            contract_type=contract_type.value if contract_type else None,
            version=None,
        )

    def _request_source(self, address: str, chain_id: int) -> dict[str, Any]:
        params = {
            "chainid": chain_id,
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "apikey": self._settings.api_key,
        }
        logger.debug("Requesting source for %s on chain %s", address, chain_id)
        try:
            response = self._http.get(self._settings.base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                address, f"Explorer returned HTTP {exc.response.status_code} for {address}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(address, f"Failed to send request to explorer: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise DecodeError(address, f"Failed to parse explorer response: {exc}") from exc
        if not isinstance(body, dict):
            raise DecodeError(address, "Explorer response is not a JSON object")

        status = str(body.get("status", ""))
        if status != _SUCCESS_STATUS:
            raise ApiError(address, str(body.get("message") or body.get("result") or "unknown error"))

        result = body.get("result")
        if not isinstance(result, list):
            raise DecodeError(address, "Explorer response has no result list")
        if not result:
            raise NotFoundError(address)

        entry = result[0]
        if not isinstance(entry, dict):
            raise DecodeError(address, "Explorer result entry is not an object")
        return entry
