from pathlib import Path

import pytest

from assetstamp.core.errors import ConfigurationError
from assetstamp.domain.capabilities import Minimizer
from assetstamp.infrastructure.minifiers.css import CssMinimizer
from assetstamp.infrastructure.minifiers.js import JsMinimizer
from assetstamp.infrastructure.minifiers.registry import IdentityMinimizer, create_minimizer


def test_css_minimizer_strips_whitespace_and_comments() -> None:
    source = b"/* header */\nbody {\n    color: red;\n}\n"
    out = CssMinimizer().minimize(source, Path("app.css"))

    assert b"header" not in out
    assert b"\n" not in out
    assert b"color:red" in out
    assert len(out) < len(source)


def test_js_minimizer_strips_comments() -> None:
    source = b"// setup\nvar answer = 42;\n\nfunction f(a) {\n    return a + answer;\n}\n"
    out = JsMinimizer().minimize(source, None)

    assert b"setup" not in out
    assert b"answer=42" in out
    assert len(out) < len(source)


def test_minimizers_are_deterministic() -> None:
    source = b".a { margin: 0 auto; }\n.b { padding: 0; }\n"
    assert CssMinimizer().minimize(source, None) == CssMinimizer().minimize(source, None)


def test_create_minimizer() -> None:
    assert isinstance(create_minimizer("css"), CssMinimizer)
    assert isinstance(create_minimizer("js"), JsMinimizer)
    identity = create_minimizer("raw")
    assert isinstance(identity, Minimizer)
    assert identity.minimize(b" keep  as is ", None) == b" keep  as is "

    with pytest.raises(ConfigurationError):
        create_minimizer("png")


def test_identity_minimizer_satisfies_protocol() -> None:
    assert isinstance(IdentityMinimizer(), Minimizer)
