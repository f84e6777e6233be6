"""
Bin comparison: from raw per-bin read counts to guide- and gene-level results.

Every bin is normalized independently (pseudocount, frequency, frequency
relative to the median negative control), bins are joined on `barcodeid`,
and the log2 fold change of each bin against the first bin is computed.

Genes are scored on the log2 fold change of the last bin: the mean over the
gene's guides, and a Mann-Whitney U-test of those guides against all
negative control guides, reported as -log10(p) (Kampmann, Bassik & Weissman,
PNAS 2013). Genes with a single guide still get a p-value, but it carries
little information.
"""

import logging
from typing import Hashable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from .exceptions import InvalidConfiguration, MissingBin, NoNegativeControls
from .library import ScreenClass

logger = logging.getLogger(__name__)

PSEUDOCOUNT = 0.5
NEGCONTROL = ScreenClass.NEGCONTROL.value
GENE_KEYS = ["gene", "behavior", "class"]


def normalize_bin(seq_data: pd.DataFrame, bin: Optional[Hashable] = None) -> pd.DataFrame:
    """
    Return a normalized copy of one bin's count table.

    Adds `freqs` and `rel_freqs` columns; `counts` includes the pseudocount.
    """
    data = seq_data.sort_values("barcodeid").reset_index(drop=True)
    counts = data["counts"].astype(float) + PSEUDOCOUNT
    freqs = counts / counts.sum()

    negcontrol_freqs = freqs[data["class"] == NEGCONTROL]
    if negcontrol_freqs.empty:
        raise NoNegativeControls(bin)
    return data.assign(counts=counts, freqs=freqs, rel_freqs=freqs / negcontrol_freqs.median())


def rank_test_pvalue(sample: np.ndarray, reference: np.ndarray) -> float:
    """
    Two-sided Mann-Whitney U-test p-value.

    When every value in both samples is tied the test statistic has no
    variance; there is no evidence of a shift, so p = 1.
    """
    result = stats.mannwhitneyu(sample, reference, alternative="two-sided")
    pvalue = float(result.pvalue)
    if np.isnan(pvalue):
        return 1.0
    return pvalue


def differences_between_bins(raw_data: Mapping[Hashable, pd.DataFrame],
                             first_bin: Hashable = "bin1",
                             last_bin: Optional[Hashable] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Compare sequencing bins.

    Args:
        raw_data: Bin name -> count table (columns barcodeid, gene, behavior,
            class, counts, plus any guide annotations)
        first_bin: Reference bin for fold changes
        last_bin: Bin whose fold changes are aggregated per gene
            (default: the largest bin name)

    Returns:
        guide_data: one row per guide with counts_/freqs_/rel_freqs_<bin>
            for every bin and log2fc_<bin> for every bin but the first
        gene_data: one row per (gene, behavior, class) of non-negative-control
            guides with mean, pvalue, absmean, pvalmeanprod and n_guides
    """
    if first_bin not in raw_data:
        raise MissingBin(first_bin, raw_data.keys())
    if last_bin is None:
        last_bin = max(raw_data)
    if last_bin not in raw_data:
        raise MissingBin(last_bin, raw_data.keys())
    if last_bin == first_bin:
        raise InvalidConfiguration(f"first_bin and last_bin are both {first_bin}")

    normalized = {bin: normalize_bin(seq_data, bin) for bin, seq_data in raw_data.items()}

    base = normalized[first_bin]
    guide_ids = base["barcodeid"].to_numpy()
    guide_data = base.rename(columns={
        "freqs": f"freqs_{first_bin}",
        "counts": f"counts_{first_bin}",
        "rel_freqs": f"rel_freqs_{first_bin}",
    })

    for bin, seq_data in normalized.items():
        if bin == first_bin:
            continue
        if not np.array_equal(seq_data["barcodeid"].to_numpy(), guide_ids):
            raise InvalidConfiguration(f"Guides in bin {bin} do not match bin {first_bin}")
        rel_freqs = seq_data["rel_freqs"].to_numpy()
        guide_data = guide_data.assign(**{
            f"freqs_{bin}": seq_data["freqs"].to_numpy(),
            f"counts_{bin}": seq_data["counts"].to_numpy(),
            f"rel_freqs_{bin}": rel_freqs,
            f"log2fc_{bin}": np.log2(rel_freqs / guide_data[f"rel_freqs_{first_bin}"].to_numpy()),
        })

    gene_data = aggregate_genes(guide_data, f"log2fc_{last_bin}")
    logger.info("Compared bins %s -> %s: %d guides, %d genes",
                first_bin, last_bin, len(guide_data), len(gene_data))
    return guide_data, gene_data


def aggregate_genes(guide_data: pd.DataFrame, fc_column: str) -> pd.DataFrame:
    """Score every non-negative-control gene against the negative controls."""
    is_negcontrol = guide_data["class"] == NEGCONTROL
    negcontrols = guide_data.loc[is_negcontrol, fc_column].to_numpy()
    if len(negcontrols) == 0:
        raise NoNegativeControls()

    rows = []
    for (gene, behavior, screen_class), guides in guide_data.loc[~is_negcontrol].groupby(GENE_KEYS, sort=True):
        log2fcs = guides[fc_column].to_numpy()
        if len(log2fcs) < 2:
            logger.debug("Gene %s scored from a single guide (low confidence)", gene)
        rows.append({
            "gene": gene,
            "behavior": behavior,
            "class": screen_class,
            "mean": float(np.mean(log2fcs)),
            "pvalue": -np.log10(rank_test_pvalue(log2fcs, negcontrols)),
            "n_guides": len(log2fcs),
        })

    genes = pd.DataFrame(rows, columns=GENE_KEYS + ["mean", "pvalue", "n_guides"])
    return genes.assign(
        absmean=genes["mean"].abs(),
        pvalmeanprod=genes["mean"] * genes["pvalue"],
    )
