"""Error taxonomy for the fetch and import flows."""
from __future__ import annotations

from typing import Optional


class ContractFetcherError(RuntimeError):
    """Base class for every error raised by this package."""


class SetupError(ContractFetcherError):
    """Fatal problem detected before any address is processed."""


class FetchError(ContractFetcherError):
    """A single address could not be fetched. The run continues."""

    def __init__(self, address: str, message: str) -> None:
        super().__init__(message)
        self.address = address


class ApiError(FetchError):
    def __init__(self, address: str, message: str) -> None:
        super().__init__(address, f"Explorer API error: {message}")
        self.api_message = message


class NotFoundError(FetchError):
    def __init__(self, address: str) -> None:
        super().__init__(address, f"No contract found at address {address}")


class TransportError(FetchError):
    pass


class DecodeError(FetchError):
    pass


class RecordImportError(ContractFetcherError):
    """Upsert of one record failed; the rest of the batch is unaffected."""

    def __init__(self, chain_id: int, address: str, cause: Optional[BaseException] = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to import {address} on chain {chain_id}{detail}")
        self.chain_id = chain_id
        self.address = address
        self.cause = cause
