import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.utils.text_cleaner import (
    DEFAULT_TITLE,
    clean_html,
    clean_summary,
    clean_title,
    normalize_text,
    truncate,
)


def test_clean_html_removes_boilerplate_and_scripts():
    html = """
    <html><head><style>.x{}</style><script>alert(1)</script></head>
    <body>
      <div>Hallazgo en física &amp; astronomía</div>
      <p>Seguir leyendo</p>
      <p>La entrada Hallazgo se publicó primero en Diario Uno</p>
    </body></html>
    """
    cleaned = clean_html(html)
    assert "alert(1)" not in cleaned
    assert "seguir leyendo" not in cleaned.lower()
    assert "publicó primero" not in cleaned
    assert cleaned == "Hallazgo en física & astronomía"


def test_normalize_text_is_deterministic_and_idempotent():
    s = "  La  nota   del\n día  \r\x00 "
    a = normalize_text(s)
    assert normalize_text(a) == a
    assert a == "La nota del día"


def test_truncate_marks_cut():
    assert truncate("corto", 10) == "corto"
    assert truncate("a" * 400, 300) == "a" * 297 + "..."
    assert truncate("palabra siguiente", 11) == "palabra..."
    assert truncate("abcdef", 2) == "ab"


def test_clean_summary_strips_markup_and_truncates():
    raw = "<p>" + "a" * 400 + "</p>"
    summary = clean_summary(raw)
    assert summary == "a" * 297 + "..."
    assert len(summary) == 300


def test_clean_summary_of_empty_input():
    assert clean_summary("") == ""
    assert clean_summary("<p>   </p>") == ""


@pytest.mark.parametrize("raw", ["", "   ", "\n\t"])
def test_clean_title_defaults_when_blank(raw):
    assert clean_title(raw) == DEFAULT_TITLE == "Sin título"


def test_clean_title_unescapes_entities():
    assert clean_title("  Gol &amp; victoria\n ") == "Gol & victoria"
