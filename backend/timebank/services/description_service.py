"""
TimeBank Backend — Service Description Generator
=================================================

Produces a ready-made marketing blurb for a service title by filling the
title into one of a few templates picked at random.
"""

import random
from typing import Optional

from timebank.exceptions import ValidationError

DESCRIPTION_TEMPLATES = (
    "I offer professional {title} services with a focus on quality, efficiency, "
    "and timely delivery. Ideal for individuals and small teams.",
    "{title} service designed to help you achieve your goals efficiently. "
    "Clear communication and reliable support guaranteed.",
    "Get expert help with {title}. I provide structured, easy-to-understand "
    "solutions tailored to your needs.",
    "Looking for reliable {title}? I offer practical solutions with a "
    "user-friendly and professional approach.",
    "High-quality {title} service focused on problem-solving, learning, and long-term value.",
)


def generate_description(title: Optional[str], rng: Optional[random.Random] = None) -> str:
    """
    Return a description for `title`.

    Args:
        rng: Random source; defaults to the module-level generator.

    Raises:
        ValidationError: title missing or blank.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationError(message="Title is required", field="title")
    template = (rng or random).choice(DESCRIPTION_TEMPLATES)
    return template.format(title=title)
