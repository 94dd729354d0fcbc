import pytest

from wallet_session.core.chains import (
    CHAIN_REGISTRY,
    get_chain,
    get_chain_name,
    list_chains,
    native_decimals,
    normalize_chain_id,
)


def test_registry_contents():
    assert [chain.chain_id for chain in list_chains()] == ["0x1", "0xaa36a7"]
    assert get_chain_name("0x1") == "Ethereum Mainnet"
    assert get_chain_name("0xaa36a7") == "Sepolia Testnet"
    assert CHAIN_REGISTRY["0xaa36a7"].numeric_id == 11155111


def test_unknown_chain_falls_back_to_raw_id():
    assert get_chain("0x89") is None
    assert get_chain_name("0x89") == "0x89"
    assert native_decimals("0x89") == 18


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        CHAIN_REGISTRY["0x89"] = CHAIN_REGISTRY["0x1"]  # type: ignore[index]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0x1", "0x1"),
        ("0xAA36A7", "0xaa36a7"),
        ("11155111", "0xaa36a7"),
        (11155111, "0xaa36a7"),
        (" 0x01 ", "0x1"),
    ],
)
def test_normalize_chain_id(raw, expected):
    assert normalize_chain_id(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "sepolia", "0xzz", 0, -1, True])
def test_normalize_rejects_garbage(raw):
    with pytest.raises(ValueError):
        normalize_chain_id(raw)


def test_add_chain_params_use_provider_field_names():
    params = CHAIN_REGISTRY["0xaa36a7"].to_add_chain_params()

    assert params == {
        "chainId": "0xaa36a7",
        "chainName": "Sepolia Testnet",
        "nativeCurrency": {"name": "Sepolia Ether", "symbol": "ETH", "decimals": 18},
        "rpcUrls": ["https://rpc.sepolia.org"],
        "blockExplorerUrls": ["https://sepolia.etherscan.io"],
    }
