"""Value objects describing the outcome of a reconciliation run."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CategorySummary:
    """Counters and failures collected while reconciling one generator."""

    generator_id: str
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped_duplicate: int = 0
    conflicts: int = 0
    subject_errors: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def discard_counts(self) -> None:
        """Zero the mutation counters after the category was rolled back."""

        self.created = 0
        self.updated = 0
        self.deleted = 0
        self.skipped_duplicate = 0
        self.conflicts = 0


@dataclass
class RunSummary:
    """Aggregated result of :func:`reconcile` across every generator."""

    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped_duplicate: int = 0
    per_category_errors: dict[str, str] = field(default_factory=dict)
    categories: list[CategorySummary] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.per_category_errors

    def add(self, category: CategorySummary) -> None:
        self.categories.append(category)
        if category.error is not None:
            self.per_category_errors[category.generator_id] = category.error
            return
        self.created += category.created
        self.updated += category.updated
        self.deleted += category.deleted
        self.skipped_duplicate += category.skipped_duplicate


__all__ = ["CategorySummary", "RunSummary"]
