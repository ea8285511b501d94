from __future__ import annotations

from nixopts.extraction.text import dedent_tail, strip_roles


def test_role_markup_becomes_code_span() -> None:
    assert strip_roles("See {option}`services.foo.enable`.") == "See `services.foo.enable`."
    assert strip_roles("Plain `code` stays") == "Plain `code` stays"


def test_dedent_keeps_first_line() -> None:
    assert dedent_tail("{\n      a = 1;\n    }") == "{\n  a = 1;\n}"
    assert dedent_tail("single") == "single"
