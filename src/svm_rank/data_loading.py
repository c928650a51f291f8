"""
Dataset loaders for ranking training data.

Two on-disk formats are supported:

    - JSON: a list of entries (or a dict whose values are entries), each
      {"relevant": [...], "nonrelevant": [...]}. A vector is either a list of
      numbers (dense) or an object {"index": value} (sparse).
    - SVMlight / SVMrank text with qid: fields. Samples are grouped by qid;
      label > 0 marks a relevant sample.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import scipy.sparse as sp
from sklearn.datasets import load_svmlight_file

from .ranking_pair import RankingPair


def _parse_vector(raw: Any, entry_idx: int):
    if isinstance(raw, dict):
        try:
            return {int(k): float(v) for k, v in raw.items()}
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Entry {entry_idx}: bad sparse vector {raw!r}") from exc
    if isinstance(raw, list):
        try:
            return np.asarray(raw, dtype=float)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Entry {entry_idx}: bad dense vector {raw!r}") from exc
    raise ValueError(f"Entry {entry_idx}: vectors must be lists or objects, got {type(raw).__name__}")


def parse_ranking_entries(data: Union[List[Any], Dict[str, Any]]) -> List[RankingPair]:
    """
    Convert decoded JSON into RankingPair objects.

    Args:
        data: List of entries, or dict whose values are entries

    Returns:
        List of RankingPair objects in entry order
    """
    if isinstance(data, dict):
        entries = list(data.values())
    elif isinstance(data, list):
        entries = data
    else:
        raise ValueError(f"Unexpected dataset format: {type(data)}")

    samples = []
    for entry_idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Entry {entry_idx} must be an object, got {type(entry).__name__}")
        relevant = entry.get('relevant', [])
        nonrelevant = entry.get('nonrelevant', [])
        if not isinstance(relevant, list) or not isinstance(nonrelevant, list):
            raise ValueError(f"Entry {entry_idx}: 'relevant' and 'nonrelevant' must be lists")
        samples.append(RankingPair(
            relevant=[_parse_vector(v, entry_idx) for v in relevant],
            nonrelevant=[_parse_vector(v, entry_idx) for v in nonrelevant],
        ))
    return samples


def load_ranking_json(path: Union[str, Path]) -> List[RankingPair]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ranking dataset not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return parse_ranking_entries(data)


def group_by_query(X, y: np.ndarray, qid: np.ndarray) -> List[RankingPair]:
    """
    Group rows of a feature matrix into one RankingPair per query id.

    Queries keep the order in which their ids first appear. Rows of a sparse
    matrix become sparse samples, rows of a dense array dense ones.

    Args:
        X: Feature matrix (n_samples, n_features), dense or scipy.sparse
        y: Relevance labels; rows with label > 0 are relevant
        qid: Query id of every row

    Returns:
        List of RankingPair objects
    """
    y = np.asarray(y)
    qid = np.asarray(qid)
    sparse = sp.issparse(X)
    X = sp.csr_matrix(X) if sparse else np.asarray(X, dtype=float)
    if X.shape[0] != len(y) or len(y) != len(qid):
        raise ValueError(
            f"X, y and qid must have the same length, got {X.shape[0]}, {len(y)}, {len(qid)}"
        )

    groups: Dict[Any, Dict[str, list]] = {}
    for i, q in enumerate(qid.tolist()):
        group = groups.setdefault(q, {'relevant': [], 'nonrelevant': []})
        row = X[i] if sparse else X[i].copy()
        group['relevant' if y[i] > 0 else 'nonrelevant'].append(row)

    return [RankingPair(g['relevant'], g['nonrelevant']) for g in groups.values()]


def load_ranking_svmlight(
    path: Union[str, Path],
    n_features: Optional[int] = None
) -> List[RankingPair]:
    """
    Load an SVMrank style file (label qid:<id> index:value ...).

    Args:
        path: File to read
        n_features: Number of features, inferred from the file when None

    Returns:
        List of RankingPair objects with sparse samples
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ranking dataset not found: {path}")
    X, y, qid = load_svmlight_file(str(path), n_features=n_features, query_id=True)
    return group_by_query(X, y, qid)


def load_ranking_dataset(
    path: Union[str, Path],
    data_format: Optional[str] = None
) -> List[RankingPair]:
    """
    Load ranking data, picking the format from the file suffix when not given.

    Args:
        path: Dataset file
        data_format: 'json' or 'svmlight' (default: '.json' suffix means json)
    """
    path = Path(path)
    if data_format is None:
        data_format = 'json' if path.suffix.lower() == '.json' else 'svmlight'
    if data_format == 'json':
        return load_ranking_json(path)
    if data_format == 'svmlight':
        return load_ranking_svmlight(path)
    raise ValueError(f"Unknown data format: {data_format}")
