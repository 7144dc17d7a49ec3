import pytest

from app.utils.return_to import normalize_return_to

DEFAULT = "/Main_Page"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, DEFAULT),
        ("", DEFAULT),
        ("https://evil.example/x", DEFAULT),
        ("HTTP://evil.example", DEFAULT),
        ("//evil.example/x", DEFAULT),
        ("/\\evil.example", DEFAULT),
        ("/\t/evil.example", DEFAULT),
        ("/\n/evil.example", DEFAULT),
        ("/wiki/\t/evil.example", DEFAULT),
        ("/Page\x00", DEFAULT),
        ("/wiki/Foo", "/Foo"),
        ("/wiki/wiki/Foo", "/Foo"),
        ("wiki/Foo", "/Foo"),
        ("/wiki//evil.example", DEFAULT),
        ("bar", "/bar"),
        ("/Some_Page?action=edit", "/Some_Page?action=edit"),
        ("/", "/"),
    ],
)
def test_normalize_return_to(value: str | None, expected: str):
    assert normalize_return_to(value, DEFAULT) == expected


@pytest.mark.parametrize(
    "value",
    ["https://evil.example/x", "/wiki/Foo", "wiki/wiki/Bar", "bar", "//x", "/wiki/", ""],
)
def test_normalize_return_to_is_idempotent(value: str):
    once = normalize_return_to(value, DEFAULT)

    assert normalize_return_to(once, DEFAULT) == once
    assert once.startswith("/")
    assert not once.startswith("//")
