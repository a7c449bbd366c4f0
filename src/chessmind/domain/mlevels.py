"""Classification tiers for average centipawn loss."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MLevel:
    """One ordinal tier; ``threshold`` is the loss a game must exceed to land here."""

    level: int
    name: str
    threshold: float
    rating_min: int
    rating_max: int

    @property
    def label(self) -> str:
        return f"M{self.level}-{self.name}"


# Ordered by level; thresholds strictly decrease so the scan below is top-to-bottom.
M_LEVELS: tuple[MLevel, ...] = (
    MLevel(0, "Pre-geometric", 150, 0, 800),
    MLevel(1, "Rule-bound", 100, 800, 1000),
    MLevel(2, "Pattern-nascent", 80, 1000, 1200),
    MLevel(3, "Tactical-linear", 60, 1200, 1400),
    MLevel(4, "Tactical-branching", 45, 1400, 1600),
    MLevel(5, "Strategic-emergent", 35, 1600, 1800),
    MLevel(6, "Strategic-integrated", 25, 1800, 2000),
    MLevel(7, "Positional-intuitive", 18, 2000, 2200),
    MLevel(8, "Dimensional-fluid", 12, 2200, 2400),
    MLevel(9, "Geometric-transcendent", 8, 2400, 2600),
    MLevel(10, "Master-unified", 0, 2600, 2800),
)


def classify_average_loss(average_loss: float) -> MLevel:
    """Return the first tier whose threshold ``average_loss`` strictly exceeds.

    Anything at or below every threshold falls through to the top tier.
    """
    if average_loss < 0:
        raise ValueError(f"average_loss must be non-negative, got {average_loss}")
    for m_level in M_LEVELS:
        if average_loss > m_level.threshold:
            return m_level
    return M_LEVELS[-1]


def get_m_level(level: int) -> MLevel:
    for m_level in M_LEVELS:
        if m_level.level == level:
            return m_level
    raise KeyError(level)
