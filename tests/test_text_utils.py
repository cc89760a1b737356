import pytest

from brandscape.utils.text import clean_title, domain_base, normalize_key, strip_suffixes


@pytest.mark.parametrize("raw, expected", [
    ("Purl Studio", "Purl"),
    ("Acme Yarns Co. Ltd", "Acme Yarns"),
    ("Loop Branding Co.", "Loop"),
    ("Northwind Solutions, ", "Northwind"),
    ("Woolly Nest", "Woolly Nest"),
    ("Studio", "Studio"),
    ("", ""),
])
def test_strip_suffixes(raw, expected):
    assert strip_suffixes(raw) == expected


@pytest.mark.parametrize("raw", ["Skein & Co. Inc", "Knit Group LLC", "Yarnly"])
def test_strip_suffixes_is_idempotent(raw):
    once = strip_suffixes(raw)
    assert strip_suffixes(once) == once


def test_clean_title_removes_numbering_quotes_and_suffixes():
    assert clean_title('1. "Loop & Purl Design"') == "Loop & Purl"
    assert clean_title("2) **Stitchwell**") == "Stitchwell"
    assert clean_title("Skein & Co.") == "Skein"
    assert clean_title(None) == ""


def test_normalize_key():
    assert normalize_key("  Acme   Yarns ") == "acme yarns"


def test_domain_base_spells_out_ampersand():
    assert domain_base("Loop & Purl") == "loopandpurl"
    assert domain_base("Woolly-Nest!") == "woollynest"
    assert domain_base("!!!") == ""
