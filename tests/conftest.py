import json
from typing import Callable

import httpx
import pytest

from contract_fetcher.config import ExplorerSettings
from contract_fetcher.explorer import MetadataClient
from contract_fetcher.models import ContractRecord


USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
IMPLEMENTATION = "0x43506849d7c04f9138d1a2050bbf3a0c054402dd"


def explorer_payload(
    name: str = "FiatTokenProxy",
    implementation: str = "",
    source: str = "pragma solidity ^0.8.0;",
    abi: str = "[]",
) -> dict:
    return {
        "status": "1",
        "message": "OK",
        "result": [
            {
                "SourceCode": source,
                "ABI": abi,
                "ContractName": name,
                "CompilerVersion": "v0.8.19+commit.7dd6d404",
                "OptimizationUsed": "1",
                "Runs": "200",
                "ConstructorArguments": "",
                "EVMVersion": "Default",
                "Library": "",
                "LicenseType": "MIT",
                "Proxy": "1" if implementation else "0",
                "Implementation": implementation,
                "SwarmSource": "",
            }
        ],
    }


def make_record(**overrides) -> ContractRecord:
    values = dict(
        address=USDC.lower(),
        chain="ethereum",
        chain_id=1,
        name="FiatTokenProxy",
        symbol=None,
        source_code="pragma solidity ^0.8.0;",
        abi="[]",
        is_proxy=True,
        implementation_address=IMPLEMENTATION,
        protocol="circle",
        contract_type="Proxy",
        version=None,
    )
    values.update(overrides)
    return ContractRecord(**values)


@pytest.fixture
def explorer_settings() -> ExplorerSettings:
    return ExplorerSettings(api_key="test-key", base_url="https://explorer.test/v2/api")


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def client_factory(explorer_settings, sleeps) -> Callable[[Callable[[httpx.Request], httpx.Response]], MetadataClient]:
    def build(handler: Callable[[httpx.Request], httpx.Response]) -> MetadataClient:
        http = httpx.Client(transport=httpx.MockTransport(handler))
        return MetadataClient(explorer_settings, http=http, sleep=sleeps.append)

    return build


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'contracts.db'}"


def json_response(payload: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"))
