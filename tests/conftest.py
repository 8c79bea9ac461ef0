from ipaddress import IPv6Address

import pytest

from v6intake.config import IntakeConfig

# Low-entropy addresses (few bits set in the interface identifier)
ADDR_A = IPv6Address("2001:db8::1")
ADDR_B = IPv6Address("2001:db8::2")
ADDR_C = IPv6Address("2001:db8::3")

# 32 of the low 64 bits set: bit entropy 1.0
ADDR_RANDOM = IPv6Address("2001:db8::5555:5555:5555:5555")


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        values = {
            "base_output_directory": str(tmp_path / "output"),
            "min_addresses": 0,
            "emit_frequency": 1,
        }
        values.update(overrides)
        return IntakeConfig(**values)
    return _make


@pytest.fixture
def sample_addresses():
    return [ADDR_A, ADDR_B, ADDR_A, ADDR_C]
