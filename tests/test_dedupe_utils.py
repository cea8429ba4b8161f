import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.utils.dedupe import jaccard_similarity, normalize_title, title_similarity, title_tokens


def test_normalize_title_folds_case_accents_and_punctuation():
    assert normalize_title("  ¡Último Minuto: Sismo en Chile!  ") == "ultimo minuto sismo en chile"
    assert normalize_title("") == ""


def test_title_tokens_are_a_set():
    assert title_tokens("El Gol, el gol") == frozenset({"el", "gol"})


def test_jaccard_similarity_bounds():
    assert jaccard_similarity(frozenset(), frozenset()) == 0.0
    assert jaccard_similarity(frozenset({"a"}), frozenset({"a"})) == 1.0
    assert jaccard_similarity(frozenset({"a", "b"}), frozenset({"b", "c"})) == 1 / 3


def test_title_similarity_ignores_formatting():
    assert title_similarity("Sube el IPC en marzo", "sube el ipc en MARZO.") == 1.0
    assert title_similarity("Sube el IPC en marzo", "Baja el paro en abril") < 0.5
