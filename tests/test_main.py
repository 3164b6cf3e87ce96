"""Tests for the command-line driver."""

import io
import json

import pytest

from evmstep.main import TraceHook, build_parser, load_context, main
from evmstep.vm.evm import run

from tests.fixtures import ADD_BYTECODE


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["6000"])
        assert args.code == "6000"
        assert args.gas_limit is None
        assert not args.validate_jumpdests
        assert args.log_level == "WARNING"

    def test_calldata_override(self, tmp_path):
        path = tmp_path / "ctx.json"
        path.write_text(json.dumps({"message": {"caller": "0x5", "data": "0xff"}}))
        args = build_parser().parse_args(["00", "--context", str(path), "--calldata", "0x0102"])
        context = load_context(args)
        assert context.message.caller == 5
        assert context.message.data == b"\x01\x02"


class TestMain:
    def test_run(self, capsys):
        main(["60 05 60 03 01 00"])
        out = capsys.readouterr().out
        assert "status:   RETURN" in out
        assert "gas used: 9" in out
        assert "steps:    4" in out

    def test_return_and_storage(self, capsys):
        main(["0x602a60015560206000f3"])
        out = capsys.readouterr().out
        assert "storage:  0x1 = 0x2a" in out
        assert "output:   0x" + "00" * 32 in out

    def test_code_file(self, tmp_path, capsys):
        path = tmp_path / "code.hex"
        path.write_text("0x600560030100\n")
        main(["--code-file", str(path)])
        assert "gas used: 9" in capsys.readouterr().out

    def test_disassemble(self, capsys):
        main(["--disassemble", "600560030100"])
        out = capsys.readouterr().out.splitlines()
        assert out == ["    0 PUSH1 0x05", "    2 PUSH1 0x03", "    4 ADD", "    5 STOP"]

    def test_trace(self, capsys):
        main(["--trace", "600560030100"])
        out = capsys.readouterr().out
        assert "ADD" in out
        assert "[8]" in out

    def test_revert_exit_code(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["60006000fd"])
        assert exc.value.code == 2
        assert "status:   REVERT" in capsys.readouterr().out

    def test_fault_exit_code(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["01"])
        assert exc.value.code == 1
        assert "StackUnderflow" in capsys.readouterr().out

    def test_gas_limit(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--gas-limit", "8", "600560030100"])
        assert exc.value.code == 1
        assert "OutOfGas" in capsys.readouterr().out

    def test_missing_code(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1

    def test_bad_hex(self):
        with pytest.raises(SystemExit) as exc:
            main(["0x123"])
        assert exc.value.code == 1

    def test_null_context_sections(self, tmp_path, capsys):
        path = tmp_path / "ctx.json"
        path.write_text(json.dumps({"account": None, "message": None}))
        main(["--context", str(path), "600560030100"])
        assert "status:   RETURN" in capsys.readouterr().out

    def test_malformed_context_exit_code(self, tmp_path):
        path = tmp_path / "ctx.json"
        path.write_text(json.dumps({"account": [1]}))
        with pytest.raises(SystemExit) as exc:
            main(["--context", str(path), "00"])
        assert exc.value.code == 1


class TestTraceHook:
    @pytest.mark.asyncio
    async def test_prints_each_step(self):
        out = io.StringIO()
        await run(ADD_BYTECODE, hook=TraceHook(out=out))
        lines = out.getvalue().splitlines()
        assert len(lines) == 4
        assert lines[2].split()[1] == "ADD"
