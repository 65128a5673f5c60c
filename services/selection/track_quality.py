"""
TrackQualityFilter - Minimum detector hit requirements on daughter tracks.
"""

from domain.config import TrackQualityConfig
from domain.entities import Track


class TrackQualityFilter:
    """Accepts tracks with enough ITS clusters and TPC crossed rows."""

    def __init__(self, config: TrackQualityConfig):
        self.min_its_clusters = config.min_its_clusters
        self.min_tpc_crossed_rows = config.min_tpc_crossed_rows

    def accept(self, track: Track) -> bool:
        return (
            track.its_n_cls >= self.min_its_clusters
            and track.tpc_n_cls_crossed_rows >= self.min_tpc_crossed_rows
        )

    def accept_all(self, *tracks: Track) -> bool:
        return all(self.accept(track) for track in tracks)
