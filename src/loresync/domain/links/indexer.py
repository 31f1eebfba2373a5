"""Owner of the link graph cache."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.errors import RemoteServiceError
from loresync.domain.links.graph import LinkGraph, bucket_for_type, build_graph
from loresync.domain.model import RelationshipBuckets

if TYPE_CHECKING:
    from collections.abc import Iterable

    from loresync.domain.model import LocalRecord, RemoteLink
    from loresync.domain.ports import LocalStore, RemoteCampaignService

log = getLogger(__name__)


class LinkGraphIndexer:
    """Builds and replaces the graph wholesale; there is no incremental patching.

    Record metadata stays authoritative. Readers should treat ``graph`` as possibly
    stale until the next rebuild.
    """

    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self._graph = LinkGraph()
        self._built = False

    @property
    def graph(self) -> LinkGraph:
        if not self._built:
            return self.rebuild()
        return self._graph

    @property
    def is_built(self) -> bool:
        return self._built

    @staticmethod
    def build(records: Iterable[LocalRecord]) -> LinkGraph:
        return build_graph(records)

    def rebuild(self) -> LinkGraph:
        self._graph = self.build(self._store.list_records())
        self._built = True
        log.debug(
            "Link graph rebuilt: %d nodes, %d located",
            len(self._graph.outbound_by_from_id),
            len(self._graph.ancestors_by_location_id),
        )
        return self._graph

    async def rebuild_from_remote(
        self, service: RemoteCampaignService, campaign_id: str
    ) -> LinkGraph:
        """Take outbound adjacency from the remote link list, hierarchy from local records.

        Falls back to a local scan when the link list cannot be fetched.
        """

        try:
            links = await service.list_links(campaign_id)
        except RemoteServiceError as exc:
            log.warning("Listing links failed (%s); falling back to local scan", exc)
            return self.rebuild()

        local = self.build(self._store.list_records())
        self._graph = replace(local, outbound_by_from_id=outbound_from_links(links))
        self._built = True
        return self._graph


def outbound_from_links(links: Iterable[RemoteLink]) -> dict[str, RelationshipBuckets]:
    outbound: dict[str, RelationshipBuckets] = {}
    for link in links:
        bucket = bucket_for_type(link.to_type)
        if bucket is None or not link.from_id or not link.to_id:
            continue
        current = outbound.get(link.from_id, RelationshipBuckets())
        outbound[link.from_id] = current.with_added(bucket, link.to_id)
    return outbound
