"""Tests for the canned service description generator."""

import random

import pytest

from timebank.exceptions import ValidationError
from timebank.services.description_service import DESCRIPTION_TEMPLATES, generate_description


class TestGenerateDescription:

    def test_title_is_filled_into_a_template(self):
        text = generate_description("Guitar Lessons", rng=random.Random(1))
        assert "Guitar Lessons" in text
        assert text in {t.format(title="Guitar Lessons") for t in DESCRIPTION_TEMPLATES}

    def test_title_is_trimmed(self):
        text = generate_description("  Yoga  ", rng=random.Random(0))
        assert text in {t.format(title="Yoga") for t in DESCRIPTION_TEMPLATES}

    @pytest.mark.parametrize("title", [None, "", "   "])
    def test_blank_title_rejected(self, title):
        with pytest.raises(ValidationError, match="Title is required"):
            generate_description(title)

    def test_every_template_mentions_the_title(self):
        for template in DESCRIPTION_TEMPLATES:
            assert "{title}" in template
