"""
Tree-structured vector quantization (TSVQ) implementation for the vquant library.
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ..clustering import ClusteringEngine
from ..exceptions import ValidationError
from ..utils.helpers import freeze, timing_decorator
from ..utils.logging import get_logger
from ..utils.validation import as_vector_array, validate_int_range, validate_positive_int
from .base import Quantizer

logger = get_logger(__name__)


@dataclass(frozen=True)
class TSVQNode:
    """
    One node of the quantization tree.

    Internal nodes hold the centroids of their two children (row 0 is the
    left child) and the children's positions in the node arena. Leaves hold
    a dense ``leaf_id`` and use ``mean`` as their reconstruction value.
    """

    depth: int
    size: int
    mean: np.ndarray
    centroids: Optional[np.ndarray] = None  # (2, dim) for internal nodes
    left: int = -1
    right: int = -1
    leaf_id: int = -1

    @property
    def is_leaf(self) -> bool:
        return self.leaf_id >= 0


class TreeStructuredQuantizer(Quantizer):
    """
    Tree-structured vector quantization implementation.

    The tree is grown level by level: each node's training subset is split
    with 2-means and the halves are handed to its children. A branch ends in
    a leaf when its subset is smaller than ``min_leaf_size``, it reaches
    ``max_depth``, or the subset cannot be split into two non-empty groups.
    Encoding walks from the root towards the nearer child centroid and
    returns the id of the leaf it reaches.

    Config keys:
        max_depth: Maximum depth of a leaf (default 8)
        min_leaf_size: Subsets smaller than this become leaves (default 2)
        max_iters, tol, metric, seed, n_jobs: ClusteringEngine settings
    """

    quantizer_type = "tree"
    MAX_DEPTH = 62

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize tree-structured quantizer."""
        super().__init__(config)
        self.max_depth = validate_int_range(
            "max_depth", self.config.get("max_depth", 8), 0, self.MAX_DEPTH
        )
        self.min_leaf_size = validate_positive_int(
            "min_leaf_size", self.config.get("min_leaf_size", 2)
        )
        self.seed = int(self.config.get("seed", 42))
        self.engine = ClusteringEngine(
            {
                "max_iters": self.config.get("max_iters", 100),
                "tol": self.config.get("tol", 1e-4),
                "metric": self.metric,
                "p": self.p,
                "seed": self.seed,
                "n_jobs": self.n_jobs,
            }
        )

        self.nodes: List[TSVQNode] = []
        self.leaves: List[int] = []  # leaf id -> node index

    @property
    def n_leaves(self) -> int:
        return len(self.leaves)

    def _split(self, subset: np.ndarray, node_index: int) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Return (centroids, labels) of a 2-means split, or None if no proper split exists."""
        if np.all(subset == subset[0]):
            return None
        result = self.engine.fit(subset, 2, seed=self.seed + node_index)
        if np.bincount(result.labels, minlength=2).min() == 0:
            return None
        return result.centroids, result.labels

    @timing_decorator
    def _fit(self, X: np.ndarray) -> None:
        nodes: List[Optional[TSVQNode]] = [None]
        leaves: List[int] = []
        queue = deque([(0, np.arange(X.shape[0]), 0)])
        min_split_size = max(2, self.min_leaf_size)

        while queue:
            index, members, depth = queue.popleft()
            subset = X[members]
            mean = freeze(subset.mean(axis=0))

            split = None
            if depth < self.max_depth and members.shape[0] >= min_split_size:
                split = self._split(subset, index)

            if split is None:
                nodes[index] = TSVQNode(
                    depth=depth, size=int(members.shape[0]), mean=mean, leaf_id=len(leaves)
                )
                leaves.append(index)
                continue

            centroids, labels = split
            left, right = len(nodes), len(nodes) + 1
            nodes.extend([None, None])
            nodes[index] = TSVQNode(
                depth=depth,
                size=int(members.shape[0]),
                mean=mean,
                centroids=freeze(np.array(centroids, dtype=np.float64)),
                left=left,
                right=right,
            )
            queue.append((left, members[labels == 0], depth + 1))
            queue.append((right, members[labels == 1], depth + 1))

        self.nodes = nodes
        self.leaves = leaves
        logger.debug(
            f"Built TSVQ tree with {len(nodes)} nodes, {len(leaves)} leaves, "
            f"depth {max(node.depth for node in nodes)}"
        )

    def _descend(self, x: np.ndarray) -> Tuple[TSVQNode, List[int]]:
        node = self.nodes[0]
        path: List[int] = []
        while not node.is_leaf:
            distances = self.metric.pairwise(x[np.newaxis, :], node.centroids, p=self.p)[0]
            turn = 0 if distances[0] <= distances[1] else 1
            path.append(turn)
            node = self.nodes[node.left if turn == 0 else node.right]
        return node, path

    def _quantize(self, x: np.ndarray) -> int:
        leaf, _ = self._descend(x)
        return leaf.leaf_id

    def _collect_codes(self, codes: List[Any]) -> np.ndarray:
        return np.asarray(codes, dtype=np.int64)

    def encode_path(self, vector: Any) -> Tuple[int, ...]:
        """
        Return the sequence of turns (0 = left, 1 = right) from the root to the leaf.

        Args:
            vector: Vector of the trained dimension

        Returns:
            Tuple of turns; its length is the depth of the leaf reached
        """
        self._check_trained()
        _, path = self._descend(as_vector_array(vector, self.dim))
        return tuple(path)

    def _dequantize(self, code: Any) -> np.ndarray:
        code = np.asarray(code)
        if code.ndim != 0 or not np.issubdtype(code.dtype, np.integer):
            raise ValidationError("TSVQ encoding must be a single integer leaf id")
        leaf_id = int(code)
        if leaf_id < 0 or leaf_id >= len(self.leaves):
            raise ValidationError(f"Leaf id {leaf_id} outside [0, {len(self.leaves)})")
        return self.nodes[self.leaves[leaf_id]].mean.copy()

    def _code_bits(self) -> float:
        return float(max(1, math.ceil(math.log2(max(2, len(self.leaves))))))

    def _extra_stats(self) -> Dict[str, Any]:
        return {
            "max_depth": self.max_depth,
            "min_leaf_size": self.min_leaf_size,
            "n_nodes": len(self.nodes),
            "n_leaves": len(self.leaves),
            "depth": max(node.depth for node in self.nodes),
        }
