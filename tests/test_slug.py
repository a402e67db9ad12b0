"""
Skenderaj Places Backend — Slug Derivation Tests
=================================================

What we test:
    ✅ Lowercasing and hyphenation of runs of non-alphanumerics
    ✅ Leading/trailing separators stripped
    ✅ Non-ASCII letters become separators
    ✅ Names without letters or digits give an empty slug
"""

import pytest

from app.services.slug import slugify


class TestSlugify:

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Kalaja", "kalaja"),
            ("Ura e Gurit", "ura-e-gurit"),
            ("  Ura e Gurit -- 1912  ", "ura-e-gurit-1912"),
            ("Kulla_e_Jasharëve", "kulla-e-jashar-ve"),
            ("Kalaja!", "kalaja"),
            ("ABC123", "abc123"),
        ],
    )
    def test_slugify(self, name, expected):
        assert slugify(name) == expected

    def test_only_ascii_alphanumerics_and_single_hyphens(self):
        slug = slugify("Xhamia   e   Vjetër (shek. XVIII)")
        assert "--" not in slug
        assert not slug.startswith("-") and not slug.endswith("-")
        assert all(c.isdigit() or ("a" <= c <= "z") or c == "-" for c in slug)

    @pytest.mark.parametrize("name", ["", "!!!", "   ", "ëëë"])
    def test_no_alphanumerics_gives_empty_slug(self, name):
        assert slugify(name) == ""

    def test_slug_is_deterministic(self):
        assert slugify("Mulliri i Vjetër") == slugify("Mulliri i Vjetër")
