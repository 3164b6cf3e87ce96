"""Tests for 256-bit word arithmetic."""

import pytest

from evmstep.vm import arith
from evmstep.vm.arith import INT256_MIN, UINT256_CEIL, UINT256_MAX


NEG_ONE = UINT256_MAX
MIN_SIGNED = 1 << 255


class TestConversion:
    def test_as_unsigned(self):
        assert arith.as_unsigned_256(-1) == UINT256_MAX
        assert arith.as_unsigned_256(UINT256_CEIL) == 0
        assert arith.as_unsigned_256(5) == 5

    def test_as_signed(self):
        assert arith.as_signed_256(UINT256_MAX) == -1
        assert arith.as_signed_256(MIN_SIGNED) == INT256_MIN
        assert arith.as_signed_256(MIN_SIGNED - 1) == MIN_SIGNED - 1

    def test_as_signed_reduces_first(self):
        assert arith.as_signed_256(UINT256_CEIL + 1) == 1


class TestArithmetic:
    def test_add_wraps(self):
        assert arith.add(UINT256_MAX, 2) == 1

    def test_sub_wraps(self):
        assert arith.sub(0, 1) == UINT256_MAX

    def test_mul_wraps(self):
        assert arith.mul(MIN_SIGNED, 2) == 0

    def test_div_mod_by_zero(self):
        assert arith.div(7, 0) == 0
        assert arith.mod(7, 0) == 0
        assert arith.sdiv(7, 0) == 0
        assert arith.smod(7, 0) == 0
        assert arith.addmod(1, 2, 0) == 0
        assert arith.mulmod(1, 2, 0) == 0

    def test_sdiv_rounds_toward_zero(self):
        minus_seven = arith.as_unsigned_256(-7)
        assert arith.sdiv(minus_seven, 2) == arith.as_unsigned_256(-3)

    def test_sdiv_overflow(self):
        assert arith.sdiv(MIN_SIGNED, NEG_ONE) == MIN_SIGNED

    def test_smod_sign_follows_dividend(self):
        minus_seven = arith.as_unsigned_256(-7)
        assert arith.smod(minus_seven, 3) == arith.as_unsigned_256(-1)
        assert arith.smod(7, arith.as_unsigned_256(-3)) == 1

    def test_addmod_uses_full_precision(self):
        assert arith.addmod(UINT256_MAX, 2, 2) == (UINT256_MAX + 2) % 2

    def test_mulmod_uses_full_precision(self):
        assert arith.mulmod(UINT256_MAX, UINT256_MAX, 12) == (UINT256_MAX * UINT256_MAX) % 12

    def test_exp(self):
        assert arith.exp(2, 255) == MIN_SIGNED
        assert arith.exp(2, 256) == 0
        assert arith.exp(0, 0) == 1

    @pytest.mark.parametrize(
        "b, x, expected",
        [
            (0, 0x7F, 0x7F),
            (0, 0x80, UINT256_MAX - 0x7F),
            (1, 0x8000, UINT256_MAX - 0x7FFF),
            (0, 0x1FF, UINT256_MAX),
            (31, 0x80, 0x80),
            (100, 0x80, 0x80),
        ],
    )
    def test_signextend(self, b, x, expected):
        assert arith.signextend(b, x) == expected


class TestComparison:
    def test_unsigned(self):
        assert arith.lt(1, 2) == 1
        assert arith.gt(1, 2) == 0
        assert arith.lt(NEG_ONE, 0) == 0

    def test_signed(self):
        assert arith.slt(NEG_ONE, 0) == 1
        assert arith.sgt(0, NEG_ONE) == 1
        assert arith.sgt(MIN_SIGNED, 0) == 0

    def test_eq_iszero(self):
        assert arith.eq(5, 5) == 1
        assert arith.eq(5, 6) == 0
        assert arith.iszero(0) == 1
        assert arith.iszero(3) == 0


class TestBitwise:
    def test_logic(self):
        assert arith.and_(0b1100, 0b1010) == 0b1000
        assert arith.or_(0b1100, 0b1010) == 0b1110
        assert arith.xor(0b1100, 0b1010) == 0b0110
        assert arith.not_(0) == UINT256_MAX

    def test_byte(self):
        word = int.from_bytes(bytes(range(32)), "big")
        assert arith.byte(0, word) == 0
        assert arith.byte(31, word) == 31
        assert arith.byte(32, word) == 0

    def test_shifts(self):
        assert arith.shl(1, 1) == 2
        assert arith.shl(255, 1) == MIN_SIGNED
        assert arith.shl(256, 1) == 0
        assert arith.shr(1, 4) == 2
        assert arith.shr(256, UINT256_MAX) == 0

    def test_sar(self):
        assert arith.sar(1, arith.as_unsigned_256(-4)) == arith.as_unsigned_256(-2)
        assert arith.sar(300, arith.as_unsigned_256(-4)) == UINT256_MAX
        assert arith.sar(300, 4) == 0
        assert arith.sar(1, 4) == 2
