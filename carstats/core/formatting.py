"""
Text formatting shared by the R-style summary() outputs.
"""

import numpy as np


SIGNIF_LEGEND = "Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1"


def significance_stars(p: float | None) -> str:
    """Return significance stars like R."""
    if p is None or np.isnan(p):
        return ''
    if p < 0.001:
        return '***'
    elif p < 0.01:
        return '**'
    elif p < 0.05:
        return '*'
    elif p < 0.1:
        return '.'
    else:
        return ''


def format_pvalue(p: float | None) -> str:
    """Format p-value like R."""
    if p is None or np.isnan(p):
        return 'NA'
    if p < 2e-16:
        return '< 2e-16'
    elif p < 0.001:
        return f'{p:.2e}'
    else:
        return f'{p:.4f}'
