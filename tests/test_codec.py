import logging
from ipaddress import IPv6Address

import pytest

from v6intake.codec import BinaryCodec, TextCodec, decode, encode
from v6intake.core.errors import FormatError, WorkspaceError
from v6intake.core.registry import CODECS, AddressEncoding, get_codec, resolve_encoding

from conftest import ADDR_A, ADDR_B, ADDR_C


def test_codecs_registered_by_encoding():
    get_codec("bin")
    assert CODECS[AddressEncoding.BIN] is BinaryCodec
    assert CODECS[AddressEncoding.TEXT] is TextCodec


def test_binary_round_trip(tmp_path):
    addrs = [ADDR_A, ADDR_B, IPv6Address("ffff::"), ADDR_A]
    path = tmp_path / "seeds.bin"
    path.write_bytes(encode(addrs, "bin"))
    assert path.stat().st_size == 16 * len(addrs)
    assert decode(path, "bin") == addrs


def test_binary_truncated_file_rejected(tmp_path):
    path = tmp_path / "seeds.bin"
    path.write_bytes(ADDR_A.packed + b"\x00\x01\x02")
    with pytest.raises(FormatError, match="3 trailing bytes"):
        decode(path, "bin")


def test_binary_empty_file_is_empty_list(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    assert decode(path, "bin") == []


def test_text_accepts_notations_and_skips_blank_lines(tmp_path):
    path = tmp_path / "seeds.txt"
    path.write_text(
        "2001:db8::1\n"
        "\n"
        "  2001:0db8:0000:0000:0000:0000:0000:0002  \n"
        "20010db8000000000000000000000003\n"
    )
    assert decode(path, "text") == [ADDR_A, ADDR_B, ADDR_C]


def test_text_malformed_line_reports_line_number(tmp_path):
    path = tmp_path / "seeds.txt"
    path.write_text("2001:db8::1\nnot-an-address\n")
    with pytest.raises(FormatError) as excinfo:
        decode(path, "text")
    assert excinfo.value.line == 2


def test_text_rejects_ipv4(tmp_path):
    path = tmp_path / "seeds.txt"
    path.write_text("192.0.2.1\n")
    with pytest.raises(FormatError):
        decode(path, "text")


def test_text_encode_is_compressed_one_per_line():
    assert encode([ADDR_A, ADDR_C], "text") == b"2001:db8::1\n2001:db8::3\n"


def test_unknown_encoding_falls_back_to_text(tmp_path, caplog):
    path = tmp_path / "seeds.txt"
    path.write_text("2001:db8::1\n")
    with caplog.at_level(logging.WARNING):
        assert decode(path, "csv") == [ADDR_A]
    assert "Defaulting to text" in caplog.text


def test_resolve_encoding_is_exact_match():
    assert resolve_encoding(" BIN ") is AddressEncoding.BIN
    assert resolve_encoding("text") is AddressEncoding.TEXT
    assert resolve_encoding("binary") is AddressEncoding.TEXT


def test_missing_file_is_workspace_error(tmp_path):
    with pytest.raises(WorkspaceError):
        decode(tmp_path / "nope.bin", "bin")
