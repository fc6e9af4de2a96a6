"""CLI implementation for lazybin."""

import base64
import json
import sys
from contextlib import ExitStack, closing
from pathlib import Path
from typing import Callable, Optional

import typer

from . import ops
from .core.model import BinError, Result
from .core.util import io_failure, result_asdict
from .io import open_value
from .io.base import iter_chunks
from .logger import setup_logger

app = typer.Typer(add_completion=False, help="Lazy binary operations over files, URLs and stdin.")

OutputOption = typer.Option(None, "-o", "--output", help="Write binary result to PATH instead of embedding it as base64")


def load_source(source: str):
    """Binary value for a path, a URL or '-' (stdin)."""
    if source == "-":
        return open_value(sys.stdin.buffer)
    return open_value(source)


def _emit(res: Result) -> None:
    typer.echo(json.dumps(result_asdict(res)))
    if not res.success:
        raise typer.Exit(code=1)


def _run(action: Callable[[Callable], dict]) -> None:
    """Run `action`, printing its payload or the error as JSON.

    `action` receives a loader; every input it loads is closed afterwards.
    """
    try:
        with ExitStack() as stack:
            def load(source: str):
                return stack.enter_context(closing(load_source(source)))
            payload = action(load)
    except BinError as e:
        _emit(Result(success=False, data=None, error=e.message, kind=e.kind.code))
    except (ValueError, OSError) as e:
        _emit(Result(success=False, data=None, error=str(e)))
    else:
        _emit(Result(success=True, data=payload, error=None))


def _binary_payload(value, output: Optional[Path]) -> dict:
    """Stream `value` to `output`, or return it base64-encoded."""
    if value is None:
        return {"result": None}
    try:
        with closing(value.open_stream()) as stream, io_failure("read"):
            if output is not None:
                written = 0
                with open(output, "wb") as sink:
                    for chunk in iter_chunks(stream):
                        sink.write(chunk)
                        written += len(chunk)
                return {"bytes_written": written, "output": str(output)}
            data = b"".join(iter_chunks(stream))
            return {"length": len(data), "data_b64": base64.b64encode(data).decode()}
    finally:
        close = getattr(value, "close", None)
        if close is not None:
            close()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL"),
):
    """Slice, join, pad, search and convert binary data without loading it whole."""
    if log_level:
        setup_logger(level=log_level)


@app.command("length")
def length_cmd(source: str = typer.Argument(..., help="File, URL or '-' for stdin")):
    """Print the size of SOURCE in octets."""
    _run(lambda load: {"result": ops.length(load(source))})


@app.command("part")
def part_cmd(
    source: str = typer.Argument(..., help="File, URL or '-' for stdin"),
    offset: int = typer.Option(0, "--offset", help="First octet of the part"),
    size: Optional[int] = typer.Option(None, "--size", help="Number of octets (default: to the end)"),
    output: Optional[Path] = OutputOption,
):
    """Extract SIZE octets of SOURCE starting at OFFSET."""
    _run(lambda load: _binary_payload(ops.part(load(source), offset, size), output))


@app.command("join")
def join_cmd(
    sources: Optional[list[str]] = typer.Argument(None, help="Files or URLs, in order"),
    output: Optional[Path] = OutputOption,
):
    """Concatenate SOURCES."""
    _run(lambda load: _binary_payload(ops.join([load(s) for s in sources or []]), output))


@app.command("insert-before")
def insert_before_cmd(
    source: str = typer.Argument(..., help="File, URL or '-' for stdin"),
    offset: int = typer.Option(0, "--offset", help="Insert before this octet"),
    extra: Optional[str] = typer.Option(None, "--extra", help="File or URL to insert"),
    output: Optional[Path] = OutputOption,
):
    """Insert EXTRA into SOURCE before OFFSET."""
    def action(load):
        extra_value = load(extra) if extra is not None else None
        return _binary_payload(ops.insert_before(load(source), offset, extra_value), output)
    _run(action)


def _pad_command(pad: Callable):
    def command(
        source: str = typer.Argument(..., help="File, URL or '-' for stdin"),
        size: int = typer.Option(..., "--size", help="Number of filler octets"),
        octet: int = typer.Option(0, "--octet", help="Filler octet, 0-255"),
        output: Optional[Path] = OutputOption,
    ):
        _run(lambda load: _binary_payload(pad(load(source), size, octet), output))
    return command


app.command("pad-left", help="Prepend SIZE copies of OCTET to SOURCE.")(_pad_command(ops.pad_left))
app.command("pad-right", help="Append SIZE copies of OCTET to SOURCE.")(_pad_command(ops.pad_right))


@app.command("find")
def find_cmd(
    source: str = typer.Argument(..., help="File, URL or '-' for stdin"),
    search: str = typer.Argument(..., help="File or URL holding the octets to look for"),
    offset: int = typer.Option(0, "--offset", help="Start searching here"),
    text: bool = typer.Option(False, "--text", help="Treat SEARCH as literal UTF-8 text"),
):
    """Print the first offset of SEARCH in SOURCE, or null."""
    def action(load):
        needle = ops.encode_string(search) if text else load(search)
        return {"result": ops.find(load(source), offset, needle)}
    _run(action)


def _digits_command(decode: Callable):
    def command(
        digits: str = typer.Argument(..., help="Digit string"),
        output: Optional[Path] = OutputOption,
    ):
        _run(lambda load: _binary_payload(decode(digits), output))
    return command


app.command("hex", help="Decode hexadecimal DIGITS.")(_digits_command(ops.hex))
app.command("bin", help="Decode binary (0/1) DIGITS.")(_digits_command(ops.bin))
app.command("octal", help="Decode octal DIGITS.")(_digits_command(ops.octal))


@app.command("to-octets")
def to_octets_cmd(source: str = typer.Argument(..., help="File, URL or '-' for stdin")):
    """Print SOURCE as a list of integers 0-255."""
    _run(lambda load: {"result": ops.to_octets(load(source))})


@app.command("from-octets")
def from_octets_cmd(
    octets: Optional[list[int]] = typer.Argument(None, help="Integers 0-255"),
    output: Optional[Path] = OutputOption,
):
    """Pack OCTETS into binary data."""
    _run(lambda load: _binary_payload(ops.from_octets(octets or []), output))


@app.command("decode-string")
def decode_string_cmd(
    source: str = typer.Argument(..., help="File, URL or '-' for stdin"),
    encoding: Optional[str] = typer.Option(None, "--encoding", help="Character encoding (default UTF-8)"),
    offset: Optional[int] = typer.Option(None, "--offset", help="First octet to decode"),
    size: Optional[int] = typer.Option(None, "--size", help="Number of octets to decode"),
):
    """Decode SOURCE as text."""
    _run(lambda load: {"result": ops.decode_string(load(source), encoding, offset, size)})


@app.command("encode-string")
def encode_string_cmd(
    text: str = typer.Argument(..., help="Text to encode"),
    encoding: Optional[str] = typer.Option(None, "--encoding", help="Character encoding (default UTF-8)"),
    output: Optional[Path] = OutputOption,
):
    """Encode TEXT into binary data."""
    _run(lambda load: _binary_payload(ops.encode_string(text, encoding), output))


if __name__ == "__main__":
    app()
