"""
Audit trail export for processed batches.

Rows are built from the per-operation audit records of successful batches;
failed batches contribute a single row carrying the error. CSV output goes
through pandas, any other extension is written as YAML with a summary block.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence
import logging

import pandas as pd
import pytz
import yaml

from capital_gains.batch_processor import BatchResult, Done
from capital_gains.money import Money

# Configure logging
logger = logging.getLogger(__name__)

MARKET_TIMEZONE = 'America/Sao_Paulo'

AUDIT_COLUMNS = [
    'batch', 'index', 'operation', 'quantity', 'unit_cost', 'position',
    'average_cost', 'profit_or_loss', 'rule', 'tax', 'remaining_loss', 'error'
]


def audit_rows(results: Sequence[BatchResult]) -> List[Dict[str, Any]]:
    """Flatten batch results into audit rows (batch and index are 1-based)."""
    rows = []
    for batch_number, result in enumerate(results, start=1):
        if isinstance(result, Done):
            for index, entry in enumerate(result.audit, start=1):
                row = {'batch': batch_number, 'index': index, 'error': None}
                row.update(entry.to_dict())
                rows.append(row)
        else:
            rows.append({'batch': batch_number, 'index': None, 'error': result.reason.value})
    return rows


def audit_frame(results: Sequence[BatchResult]) -> pd.DataFrame:
    """
    Build the audit trail as a DataFrame.

    Args:
        results: Batch results in input order

    Returns:
        DataFrame with one row per operation (or per failed batch)
    """
    return pd.DataFrame(audit_rows(results), columns=AUDIT_COLUMNS)


def audit_summary(results: Sequence[BatchResult]) -> Dict[str, Any]:
    """Summary counters for the audit trail."""
    done = [result for result in results if isinstance(result, Done)]
    total_tax = sum((tax.amount for result in done for tax in result.taxes), 0)
    return {
        'batches': len(results),
        'failed_batches': len(results) - len(done),
        'operations': sum(len(result.taxes) for result in done),
        'total_tax': Money(total_tax).to_decimal_string()
    }


def export_audit_trail(results: Sequence[BatchResult], filepath: str) -> None:
    """
    Export audit trail for the processed batches.

    Args:
        results: Batch results in input order
        filepath: Destination; ``.csv`` writes a table, anything else YAML
    """
    path = Path(filepath)

    if path.suffix.lower() == '.csv':
        audit_frame(results).to_csv(path, index=False)
    else:
        audit_data = {
            'operations': audit_rows(results),
            'summary': audit_summary(results),
            'export_date': datetime.now(pytz.timezone(MARKET_TIMEZONE)).isoformat()
        }
        with open(path, 'w') as f:
            yaml.safe_dump(audit_data, f, indent=2, sort_keys=False)

    logger.info(f"Audit trail exported to {filepath}")
