import numpy as np
from statsmodels.stats.multitest import fdrcorrection
from typing import List, Tuple, Union


def apply_fdr_correction(p_values: Union[List[float], np.ndarray], alpha: float = 0.05) -> Tuple[np.ndarray, np.ndarray]:
    """
    Applies FDR (Benjamini-Hochberg) correction to a list of p-values.
    NaN p-values are left as NaN and excluded from the correction.
    Args:
        p_values (Union[List[float], np.ndarray]): List or array of p-values.
        alpha (float): Significance level.
    Returns:
        tuple: (rejected_hypotheses, corrected_p_values)
               rejected_hypotheses is a boolean array.
               corrected_p_values is an array of FDR-corrected p-values.
    """
    if not isinstance(p_values, (list, np.ndarray)) or len(p_values) == 0:
        return np.array([], dtype=bool), np.array([])
    p_values_array = np.asarray(p_values, dtype=float)
    rejected = np.zeros(len(p_values_array), dtype=bool)
    corrected = np.full(len(p_values_array), np.nan)
    valid = ~np.isnan(p_values_array)
    if not valid.any():  # Handle case where all p-values are NaN
        return rejected, corrected
    rejected[valid], corrected[valid] = fdrcorrection(p_values_array[valid], alpha=alpha, method='indep', is_sorted=False)
    return rejected, corrected
