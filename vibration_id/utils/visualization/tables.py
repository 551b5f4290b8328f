"""
Utilities for writing identification result tables.
"""
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def _format(value, float_format, na_string):
    if value is None:
        return na_string
    if isinstance(value, float):
        return f"{value:{float_format}}"
    return str(value)


def save_metrics_table(
    metrics: Dict[str, Dict],
    save_path: str,
    columns: List[str],
    title: str = 'Parameter Identification',
    column_widths: Optional[Dict[str, int]] = None,
    float_format: str = '.4f',
    na_string: str = 'N/A'
) -> None:
    """
    Save a filter-by-metric table to a text file.

    Parameters
    ----------
    metrics : dict
        Filter name -> {column_name: value}
    save_path : str
        Path to save the table
    columns : list of str
        Column names to include (in order)
    title : str
        Table title
    column_widths : dict, optional
        Column name -> width mapping; 'Filter' sets the first column
    float_format : str
        Format string for float values
    na_string : str
        String displayed for missing values

    Example
    -------
    >>> metrics = {
    ...     'UKF': {'k_error': 0.012, 'c_error': 0.051, 'status': 'completed'},
    ...     'PF': {'k_error': 0.008, 'c_error': 0.043, 'status': 'completed'},
    ... }
    >>> save_metrics_table(metrics, 'sdof.txt', columns=['k_error', 'c_error', 'status'])
    """
    if column_widths is None:
        column_widths = {}
    name_width = column_widths.get('Filter', 12)

    header_parts = [f"{'Filter':<{name_width}}"]
    for col in columns:
        display_name = col.replace('_', ' ').title()
        width = max(column_widths.get(col, 14), len(display_name))
        column_widths[col] = width
        header_parts.append(f"{display_name:>{width}}")
    header = ' '.join(header_parts)
    total_width = len(header)

    with open(save_path, 'w') as f:
        f.write('=' * total_width + '\n')
        f.write(f'{title}\n')
        f.write('=' * total_width + '\n\n')
        f.write(header + '\n')
        f.write('-' * total_width + '\n')

        for name, m in metrics.items():
            row_parts = [f"{name:<{name_width}}"]
            for col in columns:
                formatted = _format(m.get(col), float_format, na_string)
                row_parts.append(f"{formatted:>{column_widths[col]}}")
            f.write(' '.join(row_parts) + '\n')

        f.write('=' * total_width + '\n')

    logger.info('Table saved to: %s', save_path)


def error_statistics_rows(stats: Dict[str, Dict[str, Dict[str, float]]]) -> Dict[str, Dict]:
    """
    Flatten relative error statistics into table rows.

    Parameters
    ----------
    stats : dict
        Filter name -> signal name -> {'mean', 'var', 'mean_square'}

    Returns
    -------
    dict
        Row label "<filter> <signal>" -> {'mean', 'var', 'mean_square'}
    """
    rows = {}
    for name, signals in stats.items():
        for signal, values in signals.items():
            rows[f"{name} {signal}"] = dict(values)
    return rows


def format_runtime(seconds: float) -> str:
    """Format runtime in human-readable form."""
    if seconds < 1.0:
        return f"{seconds * 1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}min"
    return f"{seconds / 3600:.1f}h"
