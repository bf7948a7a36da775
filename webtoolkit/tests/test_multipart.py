from __future__ import annotations

import io

import pytest

from webtoolkit.core.multipart import MultipartFormError, MultipartFormReader, _DroppedField, safe_filename

BOUNDARY = "xYzZY"
CTYPE = f"multipart/form-data; boundary={BOUNDARY}"


def _part(name, data, filename=None):
    disposition = f'form-data; name="{name}"'
    if filename is not None:
        disposition += f'; filename="{filename}"'
    head = f"--{BOUNDARY}\r\nContent-Disposition: {disposition}\r\n\r\n".encode()
    return head + data + b"\r\n"


def _body(*parts):
    return b"".join(parts) + f"--{BOUNDARY}--\r\n".encode()


def test_reader_returns_file_parts_in_order():
    body = _body(
        _part("a", b"first", "one.txt"),
        _part("title", b"ignored"),
        _part("b", b"second", "two.txt"),
    )
    reader = MultipartFormReader(CTYPE)
    parts = reader.parse(io.BytesIO(body))
    try:
        assert [(p.field_name, p.filename) for p in parts] == [("a", "one.txt"), ("b", "two.txt")]
        parts[1].file.seek(0)
        assert parts[1].file.read() == b"second"
    finally:
        reader.close_all()


def test_reader_spools_large_parts_past_the_memory_threshold():
    data = bytes(range(256)) * 64
    reader = MultipartFormReader(CTYPE)
    reader.max_memory_file_size = 1024
    parts = reader.parse(io.BytesIO(_body(_part("f", data, "big.bin"))))
    try:
        parts[0].file.seek(0)
        assert parts[0].file.read() == data
    finally:
        reader.close_all()


def test_reader_drops_plain_field_values():
    field = _DroppedField(b"note")
    assert field.write(b"x" * 4096) == 4096
    field.finalize()
    assert field.value == b""

    big_field = _part("note", b"n" * (4 * 1024 * 1024))
    reader = MultipartFormReader(CTYPE)
    parts = reader.parse(io.BytesIO(_body(big_field, _part("f", b"data", "a.txt"))))
    try:
        assert [p.filename for p in parts] == ["a.txt"]
    finally:
        reader.close_all()


def test_reader_closes_parts_of_a_truncated_body():
    body = _body(_part("a", b"first", "one.txt"), _part("b", b"second" * 100, "two.txt"))
    reader = MultipartFormReader(CTYPE)

    with pytest.raises(MultipartFormError):
        reader.parse(io.BytesIO(body[: len(body) - 40]))

    assert reader._opened
    assert all(f.file_object.closed for f in reader._opened)


@pytest.mark.parametrize(
    "ctype",
    ["application/json", "multipart/form-data", "text/plain; boundary=x"],
)
def test_reader_rejects_non_multipart_content_types(ctype):
    with pytest.raises(MultipartFormError):
        MultipartFormReader(ctype).parse(io.BytesIO(b""))


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("photo.png", "photo.png"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\photo.png", "photo.png"),
        ("..", ""),
        ("", ""),
    ],
)
def test_safe_filename(raw, expected):
    assert safe_filename(raw) == expected
