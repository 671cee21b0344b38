"""
Single Open Edge Specification

An asset may be installed in at most one container at a time: at most one
InstallationEdge with removed_at NULL and is_valid true may point at it.
"""

from typing import List, Optional

from asset_ledger.buisness.core.errors import OpenEdgeConflictError
from asset_ledger.data.assets.installation_edge import InstallationEdge


class SingleOpenEdgeSpecification:
    """
    Specification pattern for detecting multiple open installation edges.

    Checked against freshly flushed state immediately before commit.
    """

    @classmethod
    def check(cls, asset_id: int) -> None:
        """
        Check the open-edge invariant for an asset.

        Args:
            asset_id: The asset to check

        Raises:
            OpenEdgeConflictError: If more than one open edge points at the asset
        """
        open_edges = cls.find_open_edges(asset_id)
        if len(open_edges) > 1:
            containers = ', '.join(str(edge.container_id) for edge in open_edges)
            raise OpenEdgeConflictError(
                f"Asset {asset_id} has {len(open_edges)} open installation edges (containers: {containers})"
            )

    @classmethod
    def find_open_edges(cls, asset_id: int, container_id: Optional[int] = None) -> List[InstallationEdge]:
        """
        Find open edges for an asset, optionally limited to one container.

        Returns:
            Open edges ordered by installed_at
        """
        query = InstallationEdge.query.filter(
            InstallationEdge.asset_id == asset_id,
            InstallationEdge.removed_at.is_(None),
            InstallationEdge.is_valid.is_(True),
        )
        if container_id is not None:
            query = query.filter(InstallationEdge.container_id == container_id)
        return query.order_by(InstallationEdge.installed_at, InstallationEdge.id).all()

    @classmethod
    def has_conflicts(cls, asset_id: int) -> bool:
        return len(cls.find_open_edges(asset_id)) > 1
