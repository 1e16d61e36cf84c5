# =============================================================================
# test_compiler.py - Full Pipeline Integration Tests
# =============================================================================
# End-to-end tests for the Zircon compiler, from source text to binary.
#
# Test coverage includes:
#   - Complete programs and forward references
#   - Phase ordering and error collection across phases
#   - Overlap detection, fixpoint failure, undefined symbols
#   - Lexical errors (and their suppression inside comments)
#   - Compiler state, symbol table and output files
# =============================================================================

import io

import pytest

from zircon.assembler import Compiler, CompilerState, compile_source
from zircon.config import CompilerConfig
from zircon.errors import (
    CompileFailed,
    DecodeError,
    DuplicateSymbolError,
    LexicalError,
    OperandError,
    OverlapError,
    UndefinedSymbolError,
    UnresolvedSymbolError,
)
from zircon.span import Span


BOOT_PROGRAM = """
def TargetAddress = $10

sub boot {
    ld A, $FF
    ld TargetAddress*, A
    ld $6000*, A

    jp boot
}
"""


def compile_errors(source: str) -> list:
    """Compile `source`, expecting failure, and return the errors."""
    with pytest.raises(CompileFailed) as exc_info:
        compile_source(source)
    return exc_info.value.errors


# =============================================================================
# Basic Program Tests
# =============================================================================

class TestPrograms:
    """Test complete programs that compile."""

    def test_load_immediate(self):
        assert compile_source("ld A, $FF\n") == bytes([0x3E, 0xFF])

    def test_store_absolute(self):
        assert compile_source("ld $6000*, A\n") == bytes([0x32, 0x00, 0x60])

    def test_constant_resolved_before_emission(self):
        source = "def X = $10\nsub boot { ld X*, A }"
        assert compile_source(source) == bytes([0x32, 0x10, 0x00])

    def test_boot_program(self):
        assert compile_source(BOOT_PROGRAM) == bytes([
            0x3E, 0xFF,
            0x32, 0x10, 0x00,
            0x32, 0x00, 0x60,
            0xC3, 0x00, 0x00,
        ])

    def test_forward_reference(self):
        source = "jp later\n@origin(5)\nsub later { ld A, $1 }\n"
        assert compile_source(source) == bytes([0xC3, 0x05, 0x00, 0x00, 0x00, 0x3E, 0x01])

    def test_alias_of_later_label(self):
        source = "def entry = main\nrom reset : 2 = entry\nsub main { jp main }\n"
        assert compile_source(source) == bytes([0x02, 0x00, 0xC3, 0x02, 0x00])

    def test_sparse_image(self):
        assert compile_source("@origin(4)\nld A, $FF\n") == bytes([0, 0, 0, 0, 0x3E, 0xFF])

    def test_empty_program(self):
        assert compile_source("") == b""

    def test_comments_only(self):
        assert compile_source("// nothing here\n// ?? at all\n") == b""

    def test_origin_at_natural_start_changes_nothing(self):
        """A program without forward references is unchanged by @origin(0)."""
        source = "def X = $6000\nsub boot {\n    ld B, 7\n    ld X*, A\n}\nld C, $1\n"
        assert compile_source("@origin(0)\n" + source) == compile_source(source)

    def test_stream_input(self):
        data = BOOT_PROGRAM.encode()
        assert compile_source(io.BytesIO(data)) == compile_source(BOOT_PROGRAM)

    def test_small_chunk_size(self):
        config = CompilerConfig(chunk_size=1)
        assert compile_source(BOOT_PROGRAM, config=config) == compile_source(BOOT_PROGRAM)


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Test failing programs and the errors they report."""

    def test_lexical_error_after_literal(self):
        errors = compile_errors("\nsub boot {\n    lda $FF??\n}\n")
        assert errors == [LexicalError("??", Span(range(23, 25), range(2, 3), range(11, 13)))]
        assert errors[0].message == "Failed to parse token '??'"

    def test_lexical_errors_stop_before_parsing(self):
        """Only lexical errors are reported when there are any."""
        errors = compile_errors("ld A, B\nld A, ??\n")
        assert all(isinstance(e, LexicalError) for e in errors)

    def test_garbage_inside_comment_ignored(self):
        assert compile_source("ld A, $FF // what?? #!\n") == bytes([0x3E, 0xFF])

    def test_overlapping_subroutines(self):
        source = (
            "sub first {\n    ld A, $1\n    ld B, $2\n}\n"
            "@origin(2)\n"
            "sub second {\n    ld A, $3\n}\n"
        )
        errors = compile_errors(source)
        assert len(errors) == 2
        assert all(isinstance(e, OverlapError) for e in errors)
        assert {e.name for e in errors} == {"first", "second"}
        assert errors[0].span != errors[1].span

    def test_operand_error_resumes_next_line(self):
        errors = compile_errors("ld A, B\nld A, C\nld A, $FF\n")
        assert len(errors) == 2
        assert all(isinstance(e, OperandError) for e in errors)
        assert "register A" in errors[0].message
        assert "register B" in errors[0].message
        assert errors[1].span.line == range(1, 2)

    def test_unresolved_dependency(self):
        (error,) = compile_errors("def alpha = beta\n")
        assert isinstance(error, UnresolvedSymbolError)
        assert error.message == "Could not resolve declaration 'alpha': 'beta' is never resolved"

    def test_undefined_symbol(self):
        (error,) = compile_errors("sub boot {\n    jp bot\n}\n")
        assert isinstance(error, UndefinedSymbolError)
        assert error.hint == "did you mean 'boot'?"

    def test_duplicate_label(self):
        errors = compile_errors("sub boot { ld A, $1 }\n@origin(8)\nsub boot { ld A, $2 }\n")
        assert [type(e) for e in errors] == [DuplicateSymbolError]

    def test_parse_errors_stop_before_resolution(self):
        """An unresolvable def is not reported while parse errors exist."""
        errors = compile_errors("ld A, B\ndef A1 = B1\n")
        assert [type(e) for e in errors] == [OperandError]

    def test_resolution_errors_stop_before_reference_check(self):
        errors = compile_errors("def alpha = beta\njp nowhere\n")
        assert [type(e) for e in errors] == [UnresolvedSymbolError]

    def test_invalid_utf8(self):
        with pytest.raises(DecodeError):
            compile_source(b"ld A, $FF\n\xff\n")


# =============================================================================
# Compiler Object Tests
# =============================================================================

class TestCompiler:
    """Test the Compiler class interface."""

    def test_state_after_success(self):
        compiler = Compiler()
        code = compiler.compile(BOOT_PROGRAM)
        assert compiler.state == CompilerState.DONE
        assert compiler.get_code() == code
        assert compiler.errors == []
        assert not compiler.has_errors()

    def test_state_after_failure(self):
        compiler = Compiler()
        with pytest.raises(CompileFailed):
            compiler.compile("ld A, B\n")
        assert compiler.state == CompilerState.FAILED
        assert len(compiler.errors) == 1
        assert compiler.has_errors()
        assert compiler.get_code() == b""

    def test_state_after_decode_error(self):
        compiler = Compiler()
        with pytest.raises(DecodeError):
            compiler.compile(b"\xc0")
        assert compiler.state == CompilerState.FAILED

    def test_symbols(self):
        compiler = Compiler()
        compiler.compile(BOOT_PROGRAM)
        assert compiler.get_symbols() == {"TargetAddress": 0x10, "boot": 0}

    def test_text_and_line_starts(self):
        compiler = Compiler()
        compiler.compile("ld A, $1\nld B, $2\n")
        assert compiler.text == "ld A, $1\nld B, $2\n"
        assert compiler.line_starts == [0, 9]

    def test_text_kept_on_failure(self):
        """Diagnostics need the source even when compilation fails."""
        compiler = Compiler()
        with pytest.raises(CompileFailed):
            compiler.compile("ld A, B\n")
        assert compiler.text == "ld A, B\n"
        assert compiler.line_starts == [0]

    def test_error_report(self):
        compiler = Compiler()
        with pytest.raises(CompileFailed):
            compiler.compile("ld A, B\n")
        report = compiler.get_error_report()
        assert "1:1: error: 'ld' isn't implemented" in report
        assert report.endswith("1 error")

    def test_reuse_resets_state(self):
        compiler = Compiler()
        with pytest.raises(CompileFailed):
            compiler.compile("ld A, B\n")
        assert compiler.compile("ld A, $1\n") == bytes([0x3E, 0x01])
        assert compiler.errors == []
        assert compiler.state == CompilerState.DONE

    def test_compile_failed_message(self):
        with pytest.raises(CompileFailed) as exc_info:
            compile_source("ld A, B\nld A, C\n")
        assert str(exc_info.value) == "Compilation failed with 2 errors"


# =============================================================================
# Output File Tests
# =============================================================================

class TestOutputFiles:
    """Test compile_file and the output writers."""

    def test_compile_file(self, tmp_path):
        source = tmp_path / "boot.zir"
        source.write_text(BOOT_PROGRAM)
        compiler = Compiler()
        assert compiler.compile_file(source) == compile_source(BOOT_PROGRAM)
        assert compiler.filename == str(source)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Compiler().compile_file(tmp_path / "missing.zir")

    def test_write_binary(self, tmp_path):
        compiler = Compiler()
        compiler.compile("ld A, $FF\n")
        out = tmp_path / "out.bin"
        compiler.write_binary(out)
        assert out.read_bytes() == bytes([0x3E, 0xFF])

    def test_write_symbols_sorted(self, tmp_path):
        compiler = Compiler()
        compiler.compile(BOOT_PROGRAM)
        out = tmp_path / "out.sym"
        compiler.write_symbols(out)
        assert out.read_text() == "TargetAddress $0010\nboot $0000\n"
