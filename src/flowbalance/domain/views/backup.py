"""View models for data export and import."""

from dataclasses import dataclass, field


@dataclass
class ImportStatistics:
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass
class ImportSummary:
    """
    Outcome of a best-effort data import.

    Each record is imported on its own; failures are collected as
    "<section> <id>: <reason>" and the rest still go in.
    """

    statistics: ImportStatistics = field(default_factory=ImportStatistics)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.statistics.failed == 0

    @property
    def message(self) -> str:
        stats = self.statistics
        return (
            f"Imported {stats.created} records, updated {stats.updated}, "
            f"skipped {stats.skipped}, failed {stats.failed}"
        )
