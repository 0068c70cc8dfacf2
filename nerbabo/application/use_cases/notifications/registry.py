"""Registered deficiency generators.

New categories are added by appending a factory to
``DEFAULT_GENERATOR_FACTORIES``; the reconciler itself never changes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from sqlalchemy.orm import Session

from nerbabo.config import Settings, get_settings
from .generators import MissingPersonDocumentGenerator, NotificationGenerator

GeneratorFactory = Callable[[Session, Settings], NotificationGenerator]

DEFAULT_GENERATOR_FACTORIES: tuple[GeneratorFactory, ...] = (
    MissingPersonDocumentGenerator.from_settings,
)


def build_generators(
    session: Session,
    settings: Settings | None = None,
    *,
    factories: Iterable[GeneratorFactory] = DEFAULT_GENERATOR_FACTORIES,
) -> list[NotificationGenerator]:
    """Instantiate every registered generator for ``session``."""

    settings = settings or get_settings()
    generators = [factory(session, settings) for factory in factories]
    identifiers = [generator.generator_id for generator in generators]
    if len(set(identifiers)) != len(identifiers):
        raise ValueError(f"Duplicate generator identifiers: {identifiers}")
    scopes = [(generator.category, generator.subject_type) for generator in generators]
    if len(set(scopes)) != len(scopes):
        raise ValueError("Two generators cannot own the same category and subject type")
    return generators


__all__ = ["DEFAULT_GENERATOR_FACTORIES", "GeneratorFactory", "build_generators"]
