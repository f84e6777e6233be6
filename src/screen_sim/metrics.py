"""
Ground-truth scoring of screen results.

Because the simulated library knows each gene's true phenotype class, a
screen design can be scored by how well its gene ranking recovers the genes
of a given class (area under the precision-recall curve).
"""

import logging
from typing import Dict, Iterable, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import auc, precision_recall_curve

logger = logging.getLogger(__name__)


def _class_label(value) -> str:
    return str(getattr(value, "value", value))


def auprc(scores: Iterable[float], classes: Iterable, positives: Iterable,
          rev: bool = True) -> Tuple[float, np.ndarray, np.ndarray]:
    """
    Area under the precision-recall curve.

    Args:
        scores: Ranking score per gene
        classes: True class per gene
        positives: Classes counted as true hits
        rev: True if larger scores rank first, False to rank ascending

    Returns:
        (area, precision, recall); area is NaN if no gene is a positive
    """
    scores = np.asarray(list(scores), dtype=float)
    wanted = {_class_label(p) for p in positives}
    labels = np.array([_class_label(c) in wanted for c in classes], dtype=bool)

    if not labels.any():
        logger.warning("No genes of class %s present; AUPRC undefined", sorted(wanted))
        return float("nan"), np.array([]), np.array([])

    precision, recall, _ = precision_recall_curve(labels, scores if rev else -scores)
    return float(auc(recall, precision)), precision, recall


def compute_auprc(guide_data: pd.DataFrame, gene_data: pd.DataFrame) -> Dict[str, float]:
    """
    Score how well `pvalmeanprod` ranks increasing and decreasing genes.

    Increasing genes should have large positive scores, decreasing genes
    large negative ones.
    """
    inc = auprc(gene_data["pvalmeanprod"], gene_data["class"], {"increasing"})[0]
    dec = auprc(gene_data["pvalmeanprod"], gene_data["class"], {"decreasing"}, rev=False)[0]
    return {"increasing": inc, "decreasing": dec}
