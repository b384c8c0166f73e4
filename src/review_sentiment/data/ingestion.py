"""
Data Ingestion Module

Loads the eight fixed-schema Olist CSV files into DataFrames.

Tables:
    orders, items, reviews, products, sellers, payments, customers, geolocation
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)


# Short table name -> file name in the public Olist dump
TABLE_FILES: Dict[str, str] = {
    'orders': 'olist_orders_dataset.csv',
    'items': 'olist_order_items_dataset.csv',
    'reviews': 'olist_order_reviews_dataset.csv',
    'products': 'olist_products_dataset.csv',
    'sellers': 'olist_sellers_dataset.csv',
    'payments': 'olist_order_payments_dataset.csv',
    'customers': 'olist_customers_dataset.csv',
    'geolocation': 'olist_geolocation_dataset.csv',
}

DATETIME_COLUMNS: Dict[str, List[str]] = {
    'orders': [
        'order_purchase_timestamp',
        'order_approved_at',
        'order_delivered_carrier_date',
        'order_delivered_customer_date',
        'order_estimated_delivery_date',
    ],
    'items': ['shipping_limit_date'],
    'reviews': ['review_creation_date', 'review_answer_timestamp'],
}

# Zip prefixes have leading zeros in the source data
STRING_COLUMNS: Dict[str, List[str]] = {
    'customers': ['customer_zip_code_prefix'],
    'sellers': ['seller_zip_code_prefix'],
    'geolocation': ['geolocation_zip_code_prefix'],
}


class OlistDataLoader:
    """
    Unified loading interface for the Olist e-commerce dataset.

    Example:
        loader = OlistDataLoader('data')
        tables = loader.load_all()
        orders = tables['orders']
    """

    def __init__(self, data_dir: Union[str, Path], nrows: Optional[int] = None):
        """
        Initialize the loader.

        Args:
            data_dir: Directory holding the CSV files
            nrows: Optional row limit applied to every table (quick runs)
        """
        self.data_dir = Path(data_dir)
        self.nrows = nrows

    def path_for(self, name: str) -> Path:
        """Resolve the CSV path for a short table name."""
        if name not in TABLE_FILES:
            raise KeyError(f"Unknown table '{name}'. Expected one of {sorted(TABLE_FILES)}")
        return self.data_dir / TABLE_FILES[name]

    def load_table(self, name: str) -> pd.DataFrame:
        """
        Load a single table with datetime parsing.

        Raises:
            FileNotFoundError: If the CSV file is absent
        """
        path = self.path_for(name)
        if not path.exists():
            raise FileNotFoundError(f"Missing Olist table '{name}': {path}")

        dtype = {col: str for col in STRING_COLUMNS.get(name, [])}
        df = pd.read_csv(path, nrows=self.nrows, dtype=dtype or None)

        for col in DATETIME_COLUMNS.get(name, []):
            if col in df.columns:
                df[col] = pd.to_datetime(df[col], errors='coerce')

        logger.info(f"Loaded {name}: {len(df):,} rows x {len(df.columns)} columns")
        return df

    def load_all(self) -> Dict[str, pd.DataFrame]:
        """Load every table. Returns dict short name -> DataFrame."""
        if not self.data_dir.is_dir():
            raise FileNotFoundError(f"Data directory not found: {self.data_dir}")

        return {name: self.load_table(name) for name in TABLE_FILES}


def load_olist_tables(data_dir: Union[str, Path], nrows: Optional[int] = None) -> Dict[str, pd.DataFrame]:
    """Convenience wrapper around OlistDataLoader.load_all()."""
    return OlistDataLoader(data_dir, nrows=nrows).load_all()


def table_summary(tables: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    """Row/column counts per loaded table."""
    rows = [
        {'table': name, 'rows': len(df), 'columns': len(df.columns)}
        for name, df in tables.items()
    ]
    return pd.DataFrame(rows).set_index('table')
