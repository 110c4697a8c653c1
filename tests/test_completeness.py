import pytest

from journal.app.services.generation.completeness import (
    incomplete_notice,
    is_complete,
    passes_cut_off_check,
    repair,
)
from journal.app.services.generation.models import AuthorSubject, BookSubject, Language


BOOK = BookSubject(title="Babička", author="Božena Němcová")

SENTENCES = ("Toto je věta o knize. " * 12).strip()


def test_long_text_with_terminal_punctuation_is_complete():
    assert len(SENTENCES) > 250
    assert passes_cut_off_check(SENTENCES)
    assert is_complete(SENTENCES)


def test_short_text_cut_mid_word_fails():
    text = ("Kniha vypráví o dětství " * 4)[:90]
    assert not passes_cut_off_check(text)
    assert not is_complete(text)


def test_medium_text_passes_cut_off_but_is_not_complete():
    text = ("Krátká věta. " * 12).strip()
    assert 100 < len(text) <= 200
    assert passes_cut_off_check(text)
    assert not is_complete(text)


@pytest.mark.parametrize("ending", ["...", "…", " -"])
def test_truncation_marker_at_end_fails(ending):
    text = SENTENCES[:-1] + ending
    assert not is_complete(text)


def test_missing_terminal_character_fails():
    text = SENTENCES + " A pak přišel"
    assert not passes_cut_off_check(text)


@pytest.mark.parametrize("text", ["", "   "])
def test_empty_text_fails(text):
    assert not passes_cut_off_check(text)


def test_study_guide_requires_headings(complete_cs, study_guide_cs):
    assert is_complete(study_guide_cs, study_guide=True)
    assert is_complete(complete_cs, study_guide=False)
    assert not is_complete(complete_cs, study_guide=True)


def test_study_guide_missing_second_level_heading_fails(complete_cs):
    text = "# Babička\n\n" + complete_cs
    assert not is_complete(text, study_guide=True)


def test_repair_leaves_passing_text_alone(complete_cs):
    assert repair(complete_cs, BOOK, Language.CS) == (complete_cs, False)


def test_repair_appends_notice_and_keeps_text(complete_cs):
    cut = complete_cs[:150]
    text, appended = repair(cut, BOOK, Language.CS)

    assert appended
    assert text.startswith(cut.rstrip())
    assert "**Poznámka:**" in text
    assert '"Babička"' in text


def test_author_notice_in_english():
    notice = incomplete_notice(AuthorSubject(name="Karel Čapek"), Language.EN)
    assert notice.startswith("\n\n---\n\n**Note:**")
    assert "Karel Čapek" in notice
