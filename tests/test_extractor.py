"""Per-file unit: reader + validator wrapped into a FileResult."""

from extract_metadata.analysis.extractor import extract_file, has_safetensors_extension
from extract_metadata.errors import ErrorKind


def test_valid_file_yields_ok_result(valid_file):
    result = extract_file(3, str(valid_file))
    assert result.ok
    assert result.index == 3
    assert result.path == str(valid_file)
    assert set(result.header.tensors) == {"layer.0.weight", "layer.1.weight"}
    assert result.header.metadata == {"format": "pt", "author": "tests"}
    assert result.duration_ms >= 0.0


def test_truncated_file_yields_error_result(tmp_path):
    path = tmp_path / "tiny.safetensors"
    path.write_bytes(b"\x00\x01")
    result = extract_file(0, str(path))
    assert not result.ok
    assert result.header is None
    assert result.error_kind is ErrorKind.TRUNCATED_HEADER
    assert result.message


def test_validation_error_is_captured(write_safetensors):
    header = {"w": {"dtype": "F32", "shape": [25], "data_offsets": [0, 100]}}
    path = write_safetensors("short.safetensors", header, 10)
    result = extract_file(0, str(path))
    assert result.error_kind is ErrorKind.OFFSET_OUT_OF_BOUNDS


def test_missing_file_is_captured(tmp_path):
    result = extract_file(0, str(tmp_path / "gone.safetensors"))
    assert result.error_kind is ErrorKind.IO_ERROR


def test_extension_mismatch_when_required(write_safetensors):
    path = write_safetensors("weights.bin", {}, 0)
    result = extract_file(0, str(path), check_extension=True)
    assert result.error_kind is ErrorKind.EXTENSION_MISMATCH


def test_named_file_with_other_extension_is_processed(write_safetensors):
    path = write_safetensors("weights.bin", {"__metadata__": {"a": "b"}}, 0)
    result = extract_file(0, str(path))
    assert result.ok
    assert result.header.metadata == {"a": "b"}


def test_extension_matching():
    assert has_safetensors_extension("/x/model.safetensors")
    assert has_safetensors_extension("MODEL.SafeTensors")
    assert has_safetensors_extension("lora.safetensor")
    assert not has_safetensors_extension("fake.safetensors.txt")
    assert not has_safetensors_extension("safetensors")


def test_deeply_nested_header_is_malformed_json(write_safetensors):
    blob = b'{"w": ' + b"[" * 200_000 + b"]" * 200_000 + b"}"
    path = write_safetensors("deep.safetensors", blob, 0)
    result = extract_file(0, str(path))
    assert result.error_kind is ErrorKind.MALFORMED_JSON
