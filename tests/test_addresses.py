import pytest

from contract_fetcher.addresses import parse_addresses, parse_line, read_address_file, read_metadata_csv
from contract_fetcher.errors import SetupError
from contract_fetcher.models import AddressEntry


@pytest.mark.parametrize("line", ["", "   ", "# only a comment", "   # indented comment", "\t"])
def test_blank_and_comment_lines_yield_nothing(line):
    assert parse_line(line) is None


def test_address_and_chain_only():
    entry = parse_line("0xAbC, 137")
    assert entry == AddressEntry(address="0xAbC", chain_id=137, protocol=None)


def test_protocol_is_trimmed_third_token():
    entry = parse_line("0xabc,1,  uniswap-v2  ")
    assert entry is not None
    assert entry.protocol == "uniswap-v2"


def test_trailing_comment_is_stripped():
    entry = parse_line("0xabc,10,aave # lending pool")
    assert entry == AddressEntry(address="0xabc", chain_id=10, protocol="aave")


def test_address_case_is_preserved():
    assert parse_line("0xABCDEF,1").address == "0xABCDEF"


@pytest.mark.parametrize("line", ["0xabc,notanumber", "0xabc", "0xabc,1.5", "0xabc,,uniswap"])
def test_malformed_lines_yield_nothing(line):
    assert parse_line(line) is None


def test_signed_chain_id_is_accepted():
    assert parse_line("0xabc,-5").chain_id == -5


def test_parse_addresses_filters_invalid_lines():
    text = """
    # Curated list
    0x1111,1,uniswap
    0x2222,notanumber
    0x3333,8453

    0x4444
    """
    entries = list(parse_addresses(text.splitlines()))
    assert [entry.address for entry in entries] == ["0x1111", "0x3333"]
    assert entries[1].protocol is None


def test_parse_addresses_is_lazy():
    consumed = []

    def lines():
        for line in ["0x1,1", "0x2,1"]:
            consumed.append(line)
            yield line

    iterator = parse_addresses(lines())
    next(iterator)
    assert consumed == ["0x1,1"]


def test_read_address_file(tmp_path):
    path = tmp_path / "curated.txt"
    path.write_text("0xaaa,1,curve\n# skip\n0xbbb,42161\n", encoding="utf-8")
    entries = read_address_file(path)
    assert [(e.address, e.chain_id, e.protocol) for e in entries] == [
        ("0xaaa", 1, "curve"),
        ("0xbbb", 42161, None),
    ]


def test_read_address_file_missing_is_setup_error(tmp_path):
    with pytest.raises(SetupError):
        read_address_file(tmp_path / "missing.txt")


def test_read_metadata_csv(tmp_path):
    path = tmp_path / "metadata.csv"
    path.write_text(
        "address,chain,chain_id,name,symbol,is_proxy,implementation_address,protocol,contract_type,version,created_at,updated_at\n"
        "0xaaa,ethereum,1,Router,,false,,uniswap,Router,,1,1\n"
        "not-an-address,ethereum,1,X,,false,,,,,1,1\n"
        "0xbbb,base,garbage,Pool,,false,,,Pool,,1,1\n",
        encoding="utf-8",
    )
    entries = read_metadata_csv(path)
    assert entries == [
        AddressEntry(address="0xaaa", chain_id=1, protocol="uniswap"),
        AddressEntry(address="0xbbb", chain_id=1, protocol=None),
    ]


def test_read_metadata_csv_without_address_column(tmp_path):
    path = tmp_path / "metadata.csv"
    path.write_text("foo,bar\n1,2\n", encoding="utf-8")
    with pytest.raises(SetupError):
        read_metadata_csv(path)


@pytest.mark.parametrize("line", ["0xabc,2147483648", "0xabc,-2147483649", "0xabc,1180591620717411303424"])
def test_chain_id_outside_32_bits_is_dropped(line):
    assert parse_line(line) is None


def test_chain_id_at_32_bit_bounds_is_kept():
    assert parse_line("0xabc,2147483647").chain_id == 2**31 - 1
    assert parse_line("0xabc,-2147483648").chain_id == -(2**31)


def test_read_address_file_not_utf8_is_setup_error(tmp_path):
    path = tmp_path / "curated.txt"
    path.write_bytes(b"0xabc,1,caf\xe9\n")
    with pytest.raises(SetupError, match="Cannot read input file"):
        read_address_file(path)


def test_read_metadata_csv_not_utf8_is_setup_error(tmp_path):
    path = tmp_path / "metadata.csv"
    path.write_bytes(b"address,chain_id,protocol\n0xabc,1,caf\xe9\n")
    with pytest.raises(SetupError):
        read_metadata_csv(path)


def test_read_metadata_csv_out_of_range_chain_falls_back(tmp_path):
    path = tmp_path / "metadata.csv"
    path.write_text("address,chain_id,protocol\n0xabc,99999999999,\n", encoding="utf-8")
    assert read_metadata_csv(path) == [AddressEntry(address="0xabc", chain_id=1, protocol=None)]
