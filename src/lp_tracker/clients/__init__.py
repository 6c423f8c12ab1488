from __future__ import annotations

from .chain import ChainReader
from .subgraph import SubgraphClient

__all__ = ["ChainReader", "SubgraphClient"]
