"""ReportSink ordering, counts, exit codes and JSON output."""

import io
import json
import threading

import pytest
from rich.console import Console

from extract_metadata.analysis.base import FileResult
from extract_metadata.errors import ErrorKind
from extract_metadata.formats.safetensors import ParsedHeader, TensorDescriptor
from extract_metadata.reporting.console import (
    EXIT_CANCELLED,
    EXIT_FAILURES,
    EXIT_OK,
    ReportSink,
)
from extract_metadata.reporting.json_reporter import to_json_dict, write_json


def _header():
    return ParsedHeader(
        header_size=120,
        data_start=128,
        data_length=16,
        tensors={"encoder.weight": TensorDescriptor("encoder.weight", "F16", (2, 4), (0, 16))},
        metadata={"ss_base_model": "sd-v1-5[ema]"},
    )


def _ok(i, path=None):
    return FileResult.success(i, path or f"/m/{i}.safetensors", _header())


def _err(i, kind=ErrorKind.MALFORMED_JSON, message="invalid JSON header"):
    return FileResult.failure(i, f"/m/{i}.safetensors", kind, message)


@pytest.fixture
def sink():
    buf = io.StringIO()
    s = ReportSink(Console(file=buf, width=200, color_system=None))
    s.output = buf
    return s


def test_results_are_returned_in_discovery_order(sink):
    for r in (_ok(2), _err(0), _ok(1)):
        sink.add(r)
    assert [r.index for r in sink.results] == [0, 1, 2]
    assert sink.succeeded == 2
    assert sink.failed == 1


def test_all_ok_exits_zero_and_lists_details(sink):
    sink.add(_ok(0))
    sink.add(_ok(1))
    assert sink.render() == EXIT_OK
    out = sink.output.getvalue()
    assert "encoder.weight" in out
    assert "F16" in out
    assert "[2, 4]" in out
    assert "ss_base_model" in out
    assert "sd-v1-5[ema]" in out
    assert "Processed 2 files" in out
    assert "2 succeeded" in out
    assert "0 failed" in out


def test_any_failure_exits_non_zero(sink):
    sink.add(_ok(0))
    sink.add(_err(1, ErrorKind.OVERLAPPING_TENSOR_RANGES, "tensor 'b' overlaps 'a'"))
    assert sink.render() == EXIT_FAILURES
    out = sink.output.getvalue()
    assert "Failed Files" in out
    assert "OverlappingTensorRanges" in out
    assert "/m/1.safetensors" in out
    assert "1 failed" in out


def test_nothing_to_do(sink):
    assert sink.render() == EXIT_OK
    assert "Nothing to do" in sink.output.getvalue()


def test_cancelled_batch(sink):
    sink.add(_ok(0))
    sink.cancelled = True
    assert sink.render() == EXIT_CANCELLED
    assert "cancelled" in sink.output.getvalue()


def test_tensor_tables_can_be_hidden():
    buf = io.StringIO()
    s = ReportSink(Console(file=buf, width=200, color_system=None), show_tensors=False)
    s.add(_ok(0))
    s.render()
    assert "encoder.weight" not in buf.getvalue()
    assert "ss_base_model" in buf.getvalue()


def test_concurrent_appends(sink):
    def _add(start):
        for i in range(start, start + 100):
            sink.add(_ok(i))

    threads = [threading.Thread(target=_add, args=(n * 100,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert [r.index for r in sink.results] == list(range(800))


def test_json_report(tmp_path):
    out = tmp_path / "report.json"
    write_json([_ok(0), _err(1)], str(out))
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["summary"] == {"total": 2, "succeeded": 1, "failed": 1}
    assert data["files"][0]["header"]["tensors"]["encoder.weight"]["shape"] == [2, 4]
    assert data["files"][1]["error_kind"] == "MalformedJson"
    assert data["files"][1]["header"] is None


def test_json_dict_of_empty_batch():
    assert to_json_dict([]) == {
        "summary": {"total": 0, "succeeded": 0, "failed": 0},
        "files": [],
    }
