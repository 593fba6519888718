import pytest

from kamacache.byte_view import ByteView


def test_len_counts_bytes():
    assert len(ByteView(b"hello")) == 5
    assert len(ByteView()) == 0


def test_str_decodes_utf8():
    text = "这是节点A的数据"
    view = ByteView(text.encode("utf-8"))
    assert str(view) == text
    assert len(view) == len(text.encode("utf-8"))


def test_byte_slice_returns_equal_copy():
    view = ByteView(b"abc")
    assert view.byte_slice() == b"abc"


def test_view_is_detached_from_mutable_source():
    source = bytearray(b"abc")
    view = ByteView(source)
    source[0] = ord("z")
    assert view.byte_slice() == b"abc"


def test_view_is_immutable():
    view = ByteView(b"abc")
    with pytest.raises(AttributeError):
        view.data = b"xyz"
    assert view.byte_slice() == b"abc"
    assert str(view) == "abc"


def test_equal_views_compare_equal():
    assert ByteView(b"abc") == ByteView(bytearray(b"abc"))
    assert ByteView(b"abc") != ByteView(b"abd")