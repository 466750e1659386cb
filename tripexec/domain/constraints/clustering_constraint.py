"""Clustering layer: flag days that leave a neighbourhood and come back."""

from __future__ import annotations

from tripexec.domain.enums import ConstraintLayer, Severity
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Itinerary


class ClusteringConstraint:
    layer = ConstraintLayer.CLUSTERING

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        if not config.respect_clusters:
            return []
        issues: list[ConstraintViolation] = []
        for day in itinerary.days:
            visited: set[str] = set()
            previous: str | None = None
            for slot in day.slots:
                cluster = slot.cluster_id
                if not cluster:
                    continue
                if cluster != previous and cluster in visited:
                    issues.append(
                        ConstraintViolation(
                            layer=self.layer,
                            severity=Severity.WARNING,
                            slot_id=slot.slot_id,
                            day_number=day.day_number,
                            message=f"Returns to area {cluster} after leaving it",
                            resolution="Group activities in the same area together",
                        )
                    )
                visited.add(cluster)
                previous = cluster
        return issues


__all__ = ["ClusteringConstraint"]
