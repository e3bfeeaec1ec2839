import pytest

from middb.errors import InvalidArgumentError
from middb.page import PAGE_SIZE, Page


def test_page_creation():
    page = Page()
    assert len(page.data) == PAGE_SIZE
    assert page.data == bytes(PAGE_SIZE)


def test_page_write_read():
    page = Page()
    test_data = b"Hello, World!"
    page.write_at(100, test_data)
    assert page.get_slice(100, len(test_data)) == test_data


def test_page_out_of_bounds():
    page = Page()
    with pytest.raises(InvalidArgumentError):
        page.write_at(0, bytes(PAGE_SIZE + 1))
    with pytest.raises(InvalidArgumentError):
        page.get_slice(PAGE_SIZE - 10, 20)


def test_write_at_end_of_page():
    page = Page()
    page.write_at(PAGE_SIZE - 4, b"tail")
    assert page.get_slice(PAGE_SIZE - 4, 4) == b"tail"


def test_from_bytes_requires_exact_size():
    with pytest.raises(InvalidArgumentError):
        Page.from_bytes(b"short")
    data = bytes([7]) * PAGE_SIZE
    assert Page.from_bytes(data).get_slice(0, 3) == b"\x07\x07\x07"


def test_zero_clears_contents():
    page = Page()
    page.write_at(0, b"abc")
    page.zero()
    assert page.get_slice(0, 3) == b"\x00\x00\x00"


def test_copy_is_independent():
    page = Page()
    page.write_at(0, b"one")
    other = page.copy()
    other.write_at(0, b"two")
    assert page.get_slice(0, 3) == b"one"
    assert other.get_slice(0, 3) == b"two"