"""Directional relationship index and the location hierarchy."""

from __future__ import annotations

from .graph import (
    LinkGraph,
    ancestor_chain,
    bucket_for_record,
    bucket_for_type,
    build_graph,
    graph_key,
    remote_type_for,
)
from .helpers import hydrate_links, link_records, set_location_parent, unlink_records
from .indexer import LinkGraphIndexer, outbound_from_links
from .remote_edits import push_link, push_location_parent, push_unlink

__all__ = [
    "LinkGraph",
    "LinkGraphIndexer",
    "ancestor_chain",
    "bucket_for_record",
    "bucket_for_type",
    "build_graph",
    "graph_key",
    "hydrate_links",
    "link_records",
    "outbound_from_links",
    "push_link",
    "push_location_parent",
    "push_unlink",
    "remote_type_for",
    "set_location_parent",
    "unlink_records",
]
