"""
Graph library backends for the metrics engine.

The metrics engine only needs four capabilities from a graph library: build
an undirected weighted graph from an edge list, list its vertices, and
compute weighted degree and betweenness. ``GraphBackend`` names those
capabilities; NetworkIt is the default implementation and NetworkX the
reference one.

Both backends report betweenness unnormalized over unordered vertex pairs,
and treat ``1 / weight`` as the length of an edge when shortest paths are
weighted.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

import networkit as nk
import networkx as nx
import polars as pl

from ..common.exceptions import ComputationError, ConfigurationError, GraphConstructionError
from ..common.id_mapper import IDMapper
from ..common.schema import FROM_COL, TO_COL, WEIGHT_COL
from ..common.logging_config import get_logger

logger = get_logger(__name__)


class GraphBackend(ABC):
    """
    Capabilities the metrics engine needs from a graph library.

    ``build`` receives an edge list that has already been collapsed to one
    row per unordered member pair, without self-loops, and returns the graph
    together with the mapping between member IDs and vertices.
    """

    name = "abstract"

    @abstractmethod
    def build(self, edges: pl.DataFrame) -> Tuple[Any, IDMapper]:
        ...

    @abstractmethod
    def degree(self, graph: Any, mapper: IDMapper) -> Dict[str, float]:
        """Sum of incident edge weights per member."""

    @abstractmethod
    def betweenness(self, graph: Any, mapper: IDMapper, weighted: bool) -> Dict[str, float]:
        """Unnormalized betweenness per member over unordered vertex pairs."""

    def vertices(self, graph: Any, mapper: IDMapper) -> List[str]:
        return mapper.originals()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NetworkitBackend(GraphBackend):
    """NetworkIt implementation, vertices indexed through an IDMapper."""

    name = "networkit"

    def build(self, edges: pl.DataFrame) -> Tuple[nk.Graph, IDMapper]:
        mapper = IDMapper.from_ids(edges[FROM_COL].to_list() + edges[TO_COL].to_list())

        try:
            graph = nk.Graph(mapper.size(), weighted=True, directed=False)
            for source, target, weight in edges.select([FROM_COL, TO_COL, WEIGHT_COL]).iter_rows():
                graph.addEdge(mapper.get_internal(source), mapper.get_internal(target), float(weight))
        except Exception as e:
            raise GraphConstructionError(
                f"Failed to construct NetworkIt graph: {str(e)}",
                backend=self.name,
                operation="add_edges",
                node_count=mapper.size(),
                edge_count=len(edges),
                cause=e
            )

        logger.debug("NetworkIt graph: %d nodes, %d edges",
                     graph.numberOfNodes(), graph.numberOfEdges())
        return graph, mapper

    def degree(self, graph: nk.Graph, mapper: IDMapper) -> Dict[str, float]:
        return {
            mapper.get_original(node): float(graph.weightedDegree(node))
            for node in graph.iterNodes()
        }

    def betweenness(self, graph: nk.Graph, mapper: IDMapper, weighted: bool) -> Dict[str, float]:
        n_nodes = graph.numberOfNodes()
        if n_nodes < 3:
            # No vertex can lie between two others
            return {member: 0.0 for member in mapper.originals()}

        try:
            path_graph = _distance_graph(graph) if weighted else nk.graphtools.toUnweighted(graph)

            # Normalized scores are relative to the (n-1)(n-2)/2 unordered pairs
            # not containing the vertex; scale back to pair counts
            bc = nk.centrality.Betweenness(path_graph, normalized=True)
            bc.run()
            pairs = (n_nodes - 1) * (n_nodes - 2) / 2.0
            scores = bc.scores()
        except Exception as e:
            raise ComputationError(
                f"Betweenness computation failed: {str(e)}",
                operation="betweenness",
                error_type="backend",
                resource_info={"backend": self.name, "nodes": n_nodes,
                               "edges": graph.numberOfEdges()},
                cause=e
            )

        return {mapper.get_original(node): float(scores[node] * pairs) for node in graph.iterNodes()}


def _distance_graph(graph: nk.Graph) -> nk.Graph:
    """Copy of ``graph`` whose edge weights are distances ``1 / weight``."""
    distances = nk.Graph(graph.numberOfNodes(), weighted=True, directed=False)
    for u, v, w in graph.iterEdgesWeights():
        distances.addEdge(u, v, 1.0 / w)
    return distances


class NetworkxBackend(GraphBackend):
    """NetworkX implementation, vertices are the member IDs themselves."""

    name = "networkx"

    def build(self, edges: pl.DataFrame) -> Tuple[nx.Graph, IDMapper]:
        mapper = IDMapper.from_ids(edges[FROM_COL].to_list() + edges[TO_COL].to_list())

        try:
            graph = nx.Graph()
            graph.add_nodes_from(mapper.originals())
            graph.add_edges_from(
                (source, target, {"weight": float(weight), "distance": 1.0 / float(weight)})
                for source, target, weight in edges.select([FROM_COL, TO_COL, WEIGHT_COL]).iter_rows()
            )
        except Exception as e:
            raise GraphConstructionError(
                f"Failed to construct NetworkX graph: {str(e)}",
                backend=self.name,
                operation="add_edges",
                node_count=mapper.size(),
                edge_count=len(edges),
                cause=e
            )

        logger.debug("NetworkX graph: %d nodes, %d edges",
                     graph.number_of_nodes(), graph.number_of_edges())
        return graph, mapper

    def degree(self, graph: nx.Graph, mapper: IDMapper) -> Dict[str, float]:
        return {node: float(value) for node, value in graph.degree(weight="weight")}

    def betweenness(self, graph: nx.Graph, mapper: IDMapper, weighted: bool) -> Dict[str, float]:
        try:
            scores = nx.betweenness_centrality(
                graph,
                weight="distance" if weighted else None,
                normalized=False
            )
        except nx.NetworkXException as e:
            raise ComputationError(
                f"Betweenness computation failed: {str(e)}",
                operation="betweenness",
                error_type="backend",
                resource_info={"backend": self.name, "nodes": graph.number_of_nodes(),
                               "edges": graph.number_of_edges()},
                cause=e
            )
        return {node: float(value) for node, value in scores.items()}


AVAILABLE_BACKENDS = {
    NetworkitBackend.name: NetworkitBackend,
    NetworkxBackend.name: NetworkxBackend,
}


def get_backend(backend: Any = "networkit") -> GraphBackend:
    """
    Resolve a backend name or instance.

    Raises
    ------
    ConfigurationError
        If the name is not one of ``AVAILABLE_BACKENDS``

    Examples
    --------
    >>> get_backend("networkx")
    NetworkxBackend()
    """
    if isinstance(backend, GraphBackend):
        return backend
    if backend not in AVAILABLE_BACKENDS:
        raise ConfigurationError(
            f"Unknown graph backend: {backend}",
            parameter="backend",
            value=backend,
            valid_options=list(AVAILABLE_BACKENDS)
        )
    return AVAILABLE_BACKENDS[backend]()
