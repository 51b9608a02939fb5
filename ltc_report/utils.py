"""Utility functions for report output."""

import json
import math
import os

import numpy as np
import pandas as pd


def safe_round(value, decimals=6):
    """Safely round a value, handling None, NaN and infinity.
    
    Args:
        value: Value to round
        decimals: Number of decimal places
    
    Returns:
        float or None: Rounded value
    """
    if value is None or pd.isna(value):
        return None
    try:
        if math.isinf(float(value)):
            return None
        return round(float(value), decimals)
    except (ValueError, TypeError):
        return None


def frame_records(df, decimals=6):
    """Convert a DataFrame into JSON-friendly records.

    Timestamps become ISO strings and floats are passed through ``safe_round``.
    """
    records = []
    for row in df.to_dict(orient="records"):
        out = {}
        for key, value in row.items():
            if isinstance(value, pd.Timestamp):
                out[str(key)] = value.isoformat()
            elif isinstance(value, (float, np.floating)):
                out[str(key)] = safe_round(value, decimals)
            elif isinstance(value, np.integer):
                out[str(key)] = int(value)
            else:
                out[str(key)] = value
        records.append(out)
    return records


def save_json(filepath, data):
    """Save data to a JSON file, creating parent directories.
    
    Args:
        filepath: Path to JSON file
        data: Data to save
    """
    os.makedirs(os.path.dirname(str(filepath)) or '.', exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, default=str)
