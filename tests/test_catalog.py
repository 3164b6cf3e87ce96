"""Tests for the opcode catalog and disassembler."""

from evmstep.common.hexutil import hex_to_bytes
from evmstep.vm.catalog import OPCODES, Op, disassemble, lookup, valid_jumpdests
from evmstep.vm.opcodes import OPCODE_TABLE

from tests.fixtures import ADD_BYTECODE, bytecode, push


class TestCatalog:
    def test_covers_every_byte(self):
        assert len(OPCODES) == 256
        assert all(info.value == i for i, info in enumerate(OPCODES))

    def test_push_immediates(self):
        assert lookup(Op.PUSH0).immediate_size == 0
        assert lookup(Op.PUSH1).immediate_size == 1
        assert lookup(Op.PUSH32).immediate_size == 32
        assert lookup(Op.PUSH1 + 19).mnemonic == "PUSH20"

    def test_standard_mnemonics(self):
        assert lookup(0x08).mnemonic == "ADDMOD"
        assert lookup(0x09).mnemonic == "MULMOD"
        assert lookup(0x1B).mnemonic == "SHL"
        assert lookup(0x1C).mnemonic == "SHR"
        assert lookup(0x1D).mnemonic == "SAR"
        assert lookup(0x20).mnemonic == "SHA3"
        assert lookup(0x8F).mnemonic == "DUP16"
        assert lookup(0xA4).mnemonic == "LOG4"

    def test_undefined(self):
        info = lookup(0x0C)
        assert not info.defined
        assert info.mnemonic == "UNKNOWN_0x0c"

    def test_defined_bytes_are_dispatchable(self):
        for info in OPCODES:
            assert (info.value in OPCODE_TABLE) == info.defined


class TestDisassemble:
    def test_listing(self):
        listing = disassemble(ADD_BYTECODE)
        assert [i.mnemonic for i in listing] == ["PUSH1", "PUSH1", "ADD", "STOP"]
        assert [i.index for i in listing] == [0, 2, 4, 5]
        assert listing[0].immediate == b"\x05"
        assert str(listing[0]) == "    0 PUSH1 0x05"
        assert str(listing[2]) == "    4 ADD"

    def test_truncated_push(self):
        listing = disassemble(hex_to_bytes("6101"))
        assert len(listing) == 1
        assert listing[0].data == b"\x61\x01"

    def test_unknown_byte(self):
        assert disassemble(b"\xef")[0].mnemonic == "UNKNOWN_0xef"

    def test_valid_jumpdests_skip_push_data(self):
        code = bytecode(Op.JUMPDEST, push(Op.JUMPDEST), Op.JUMPDEST)
        assert valid_jumpdests(code) == {0, 3}
