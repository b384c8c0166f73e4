"""
Pytest configuration and shared fixtures for the review sentiment test suite.

Two data factories:
- make_minimal_tables(): four hand-written orders with exact timestamps,
  used where tests assert specific derived values
- make_olist_tables(): a seeded synthetic Olist dump large enough to
  cross-validate both classifiers
"""

from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd
import pytest

from review_sentiment.data.ingestion import TABLE_FILES
from review_sentiment.utils.config import Config, reset_config


CATEGORIES = ['cama_mesa_banho', 'beleza_saude', 'esporte_lazer', 'moveis_decoracao', 'informatica_acessorios']
PAYMENT_TYPES = ['credit_card', 'boleto', 'voucher', 'debit_card']
STATES = ['SP', 'RJ', 'MG', 'RS', 'BA']


# ---------------------------------------------------------------------------
# Minimal hand-checked tables
# ---------------------------------------------------------------------------

def make_minimal_tables() -> Dict[str, pd.DataFrame]:
    """
    Four orders:
      o1 delivered 1.42 days late, two reviews (latest scores 1), 12h response
      o2 delivered 6 days early, score 4, 264h response (above 240h filter)
      o3 canceled, score 2
      o4 delivered, neutral score 3
    """
    ts = pd.to_datetime
    orders = pd.DataFrame({
        'order_id': ['o1', 'o2', 'o3', 'o4'],
        'customer_id': ['c1', 'c2', 'c3', 'c4'],
        'order_status': ['delivered', 'delivered', 'canceled', 'delivered'],
        'order_purchase_timestamp': ts(['2018-01-01 10:00', '2018-02-01 00:00', '2018-03-01 00:00', '2018-04-01 00:00']),
        'order_approved_at': ts(['2018-01-01 12:00', '2018-02-01 01:00', '2018-03-01 05:00', '2018-04-01 01:00']),
        'order_delivered_carrier_date': ts(['2018-01-03 12:00', '2018-02-02 01:00', None, '2018-04-02 00:00']),
        'order_delivered_customer_date': ts(['2018-01-06 10:00', '2018-02-04 00:00', None, '2018-04-08 00:00']),
        'order_estimated_delivery_date': ts(['2018-01-05 00:00', '2018-02-10 00:00', '2018-03-20 00:00', '2018-04-10 00:00']),
    })
    items = pd.DataFrame({
        'order_id': ['o1', 'o1', 'o2', 'o3', 'o4'],
        'order_item_id': [1, 2, 1, 1, 1],
        'product_id': ['p1', 'p1', 'p2', 'p1', 'p2'],
        'seller_id': ['s1', 's1', 's2', 's1', 's2'],
        'shipping_limit_date': ts(['2018-01-03', '2018-01-03', '2018-02-03', '2018-03-03', '2018-04-03']),
        'price': [50.0, 30.0, 100.0, 20.0, 40.0],
        'freight_value': [10.0, 5.0, 20.0, 4.0, 8.0],
    })
    reviews = pd.DataFrame({
        'review_id': ['r1', 'r1b', 'r2', 'r3', 'r4'],
        'order_id': ['o1', 'o1', 'o2', 'o3', 'o4'],
        'review_score': [5, 1, 4, 2, 3],
        'review_comment_title': [None] * 5,
        'review_comment_message': [None, 'atrasou', None, None, None],
        'review_creation_date': ts(['2018-01-07', '2018-01-09', '2018-02-05', '2018-03-21', '2018-04-09']),
        'review_answer_timestamp': ts(['2018-01-08 00:00', '2018-01-09 12:00', '2018-02-16 00:00',
                                       '2018-03-22 00:00', '2018-04-10 00:00']),
    })
    products = pd.DataFrame({
        'product_id': ['p1', 'p2'],
        'product_category_name': ['moveis_decoracao', 'beleza_saude'],
        'product_name_lenght': [40, 50],
        'product_description_lenght': [300, 500],
        'product_photos_qty': [2, 4],
        'product_weight_g': [1000, 200],
        'product_length_cm': [30, 10],
        'product_height_cm': [20, 5],
        'product_width_cm': [20, 5],
    })
    sellers = pd.DataFrame({
        'seller_id': ['s1', 's2'],
        'seller_zip_code_prefix': ['01001', '20000'],
        'seller_city': ['sao paulo', 'rio de janeiro'],
        'seller_state': ['SP', 'RJ'],
    })
    payments = pd.DataFrame({
        'order_id': ['o1', 'o1', 'o2', 'o3', 'o4'],
        'payment_sequential': [1, 2, 1, 1, 1],
        'payment_type': ['credit_card', 'voucher', 'boleto', 'boleto', 'credit_card'],
        'payment_installments': [3, 1, 1, 1, 2],
        'payment_value': [60.0, 35.0, 120.0, 24.0, 48.0],
    })
    customers = pd.DataFrame({
        'customer_id': ['c1', 'c2', 'c3', 'c4'],
        'customer_unique_id': ['u1', 'u2', 'u3', 'u4'],
        'customer_zip_code_prefix': ['20000', '01001', '01001', '99999'],
        'customer_city': ['rio de janeiro', 'sao paulo', 'sao paulo', 'nowhere'],
        'customer_state': ['RJ', 'SP', 'SP', 'RS'],
    })
    geolocation = pd.DataFrame({
        'geolocation_zip_code_prefix': ['01001', '01001', '20000'],
        'geolocation_lat': [-23.55, -23.55, -22.90],
        'geolocation_lng': [-46.63, -46.63, -43.20],
        'geolocation_city': ['sao paulo', 'sao paulo', 'rio de janeiro'],
        'geolocation_state': ['SP', 'SP', 'RJ'],
    })
    return {
        'orders': orders, 'items': items, 'reviews': reviews, 'products': products,
        'sellers': sellers, 'payments': payments, 'customers': customers, 'geolocation': geolocation,
    }


# ---------------------------------------------------------------------------
# Synthetic dataset
# ---------------------------------------------------------------------------

def make_olist_tables(n_orders: int = 400, seed: int = 7) -> Dict[str, pd.DataFrame]:
    """
    Seeded synthetic Olist tables.

    Late deliveries raise the chance of a 1-2 star review so the
    classifiers have a learnable signal.
    """
    rng = np.random.default_rng(seed)

    n_products, n_sellers = 40, 10
    zips = [f"{z:05d}" for z in rng.choice(np.arange(1000, 99999), size=30, replace=False)]

    order_ids = [f"order_{i:05d}" for i in range(n_orders)]
    customer_ids = [f"cust_{i:05d}" for i in range(n_orders)]

    purchase = pd.Timestamp('2017-06-01') + pd.to_timedelta(rng.uniform(0, 365, n_orders), unit='D')
    approved = purchase + pd.to_timedelta(rng.uniform(0.1, 48, n_orders), unit='h')
    carrier = approved + pd.to_timedelta(rng.uniform(0.5, 4, n_orders), unit='D')
    delivery_days = rng.gamma(shape=2.0, scale=6.0, size=n_orders) + 1
    delivered = purchase + pd.to_timedelta(delivery_days, unit='D')
    estimated = (purchase + pd.to_timedelta(15, unit='D')).normalize()

    status = np.where(rng.random(n_orders) < 0.95, 'delivered', 'shipped')
    delivered = pd.Series(delivered).where(status == 'delivered')

    orders = pd.DataFrame({
        'order_id': order_ids,
        'customer_id': customer_ids,
        'order_status': status,
        'order_purchase_timestamp': purchase,
        'order_approved_at': approved,
        'order_delivered_carrier_date': carrier,
        'order_delivered_customer_date': delivered.values,
        'order_estimated_delivery_date': estimated,
    })

    late = (delivered > pd.Series(estimated)).values
    p_negative = 0.1 + 0.6 * late
    negative = rng.random(n_orders) < p_negative
    scores = np.where(
        negative,
        rng.choice([1, 2], size=n_orders),
        rng.choice([3, 4, 5], size=n_orders, p=[0.15, 0.3, 0.55]),
    )

    review_created = pd.Series(delivered).fillna(pd.Series(estimated)) + pd.Timedelta(days=1)
    answer_hours = rng.exponential(40, size=n_orders)
    reviews = pd.DataFrame({
        'review_id': [f"rev_{i:05d}" for i in range(n_orders)],
        'order_id': order_ids,
        'review_score': scores,
        'review_comment_title': None,
        'review_comment_message': None,
        'review_creation_date': review_created.values,
        'review_answer_timestamp': (review_created + pd.to_timedelta(answer_hours, unit='h')).values,
    })
    # A few orders carry an earlier, superseded review
    earlier = reviews.head(5).copy()
    earlier['review_id'] = [f"rev_old_{i}" for i in range(5)]
    earlier['review_score'] = 5
    earlier['review_creation_date'] = earlier['review_creation_date'] - pd.Timedelta(days=2)
    earlier['review_answer_timestamp'] = earlier['review_creation_date'] + pd.Timedelta(hours=5)
    reviews = pd.concat([reviews, earlier], ignore_index=True)

    product_ids = [f"prod_{i:03d}" for i in range(n_products)]
    seller_ids = [f"seller_{i:02d}" for i in range(n_sellers)]
    item_rows = []
    for order_id, when in zip(order_ids, purchase):
        for item_no in range(1, int(rng.integers(1, 4)) + 1):
            item_rows.append({
                'order_id': order_id,
                'order_item_id': item_no,
                'product_id': product_ids[int(rng.integers(n_products))],
                'seller_id': seller_ids[int(rng.integers(n_sellers))],
                'shipping_limit_date': when + pd.Timedelta(days=3),
                'price': round(float(rng.lognormal(4, 0.6)), 2),
                'freight_value': round(float(rng.uniform(5, 40)), 2),
            })
    items = pd.DataFrame(item_rows)

    products = pd.DataFrame({
        'product_id': product_ids,
        'product_category_name': rng.choice(CATEGORIES, size=n_products),
        'product_name_lenght': rng.integers(20, 60, size=n_products),
        'product_description_lenght': rng.integers(100, 2000, size=n_products).astype(float),
        'product_photos_qty': rng.integers(1, 6, size=n_products).astype(float),
        'product_weight_g': rng.integers(100, 5000, size=n_products),
        'product_length_cm': rng.integers(10, 60, size=n_products),
        'product_height_cm': rng.integers(2, 40, size=n_products),
        'product_width_cm': rng.integers(10, 40, size=n_products),
    })
    products.loc[0, ['product_category_name', 'product_description_lenght', 'product_photos_qty']] = np.nan

    sellers = pd.DataFrame({
        'seller_id': seller_ids,
        'seller_zip_code_prefix': rng.choice(zips, size=n_sellers),
        'seller_city': 'cidade',
        'seller_state': rng.choice(STATES, size=n_sellers),
    })

    order_totals = items.groupby('order_id')[['price', 'freight_value']].sum().sum(axis=1)
    payments = pd.DataFrame({
        'order_id': order_ids,
        'payment_sequential': 1,
        'payment_type': rng.choice(PAYMENT_TYPES, size=n_orders, p=[0.7, 0.2, 0.05, 0.05]),
        'payment_installments': rng.integers(1, 10, size=n_orders),
        'payment_value': order_totals.reindex(order_ids).round(2).values,
    })

    customers = pd.DataFrame({
        'customer_id': customer_ids,
        'customer_unique_id': [f"uniq_{i:05d}" for i in range(n_orders)],
        'customer_zip_code_prefix': rng.choice(zips, size=n_orders),
        'customer_city': 'cidade',
        'customer_state': rng.choice(STATES, size=n_orders),
    })

    geo_zips = np.repeat(zips, 3)
    geolocation = pd.DataFrame({
        'geolocation_zip_code_prefix': geo_zips,
        'geolocation_lat': rng.uniform(-30, -5, size=len(geo_zips)),
        'geolocation_lng': rng.uniform(-55, -35, size=len(geo_zips)),
        'geolocation_city': 'cidade',
        'geolocation_state': 'SP',
    })

    return {
        'orders': orders, 'items': items, 'reviews': reviews, 'products': products,
        'sellers': sellers, 'payments': payments, 'customers': customers, 'geolocation': geolocation,
    }


def write_olist_csvs(tables: Dict[str, pd.DataFrame], data_dir: Path) -> Path:
    """Write tables under their public Olist file names."""
    data_dir.mkdir(parents=True, exist_ok=True)
    for name, df in tables.items():
        df.to_csv(data_dir / TABLE_FILES[name], index=False)
    return data_dir


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def minimal_tables():
    return make_minimal_tables()


@pytest.fixture
def olist_tables():
    return make_olist_tables()


@pytest.fixture
def olist_csv_dir(tmp_path, olist_tables):
    return write_olist_csvs(olist_tables, tmp_path / 'data')


@pytest.fixture(scope='session')
def shared_csv_dir(tmp_path_factory):
    """Synthetic CSV dump shared by the end-to-end tests (read-only)."""
    return write_olist_csvs(make_olist_tables(), tmp_path_factory.mktemp('olist') / 'data')


@pytest.fixture(scope='session')
def quick_config():
    """Configuration for fast end-to-end runs."""
    return Config({
        'tuning': {
            'cv_folds': 3,
            'logistic': {'n_jobs': 1},
            'boosted': {'n_jobs': 1},
        },
        'features': {'min_category_frequency': 5},
        'report': {'min_category_orders': 10, 'top_features': 10},
    })


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Keep environment overrides and the cached global config out of tests."""
    for key in ('DATA_DIR', 'DATA_NROWS', 'TUNING_CV_FOLDS', 'TUNING_BOOSTED_N_JOBS', 'TUNING_LOGISTIC_N_JOBS'):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()
