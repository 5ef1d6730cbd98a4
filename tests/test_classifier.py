import pytest

from contract_fetcher.classifier import ContractType, chain_id_to_name, classify, detect_proxy


@pytest.mark.parametrize(
    "name,expected",
    [
        ("TransparentUpgradeableProxy", ContractType.PROXY),
        ("UniswapV2Router02", ContractType.ROUTER),
        ("UniswapV2Factory", ContractType.FACTORY),
        ("PoolFactory", ContractType.FACTORY),
        ("UniswapV3Pool", ContractType.POOL),
        ("YearnVault", ContractType.VAULT),
        ("ERC20Token", ContractType.TOKEN),
        ("ProxyRouter", ContractType.PROXY),
        ("WETH9", None),
        ("", None),
    ],
)
def test_classify(name, expected):
    assert classify(name) is expected


def test_classify_is_case_insensitive():
    assert classify("MYVAULT") is ContractType.VAULT


def test_contract_type_values():
    assert ContractType.FACTORY.value == "Factory"


@pytest.mark.parametrize(
    "chain_id,name",
    [(1, "ethereum"), (10, "optimism"), (42161, "arbitrum"), (8453, "base"), (137, "polygon")],
)
def test_known_chain_names(chain_id, name):
    assert chain_id_to_name(chain_id) == name


def test_unknown_chain_name_falls_back():
    assert chain_id_to_name(999999) == "chain_999999"


@pytest.mark.parametrize("raw", ["", "0x", None, "  "])
def test_detect_proxy_without_implementation(raw):
    assert detect_proxy(raw) == (False, None)


def test_detect_proxy_with_implementation():
    assert detect_proxy("0x43506849d7c04f9138d1a2050bbf3a0c054402dd") == (
        True,
        "0x43506849d7c04f9138d1a2050bbf3a0c054402dd",
    )
