import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

# Add the project root to the Python path so imports work without installing
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def churn_df():
    """Synthetic customer churn frame shaped like the tutorial data set."""
    rng = np.random.default_rng(42)
    n = 240
    contract = rng.choice(["month_to_month", "one_year", "two_year"], size=n, p=[0.5, 0.3, 0.2])
    internet = rng.choice(["dsl", "fiber_optic"], size=n)
    partner = rng.choice(["yes", "no"], size=n)
    months = rng.integers(1, 72, size=n).astype(float)
    charges = rng.normal(70, 20, size=n).round(2)
    late = rng.poisson(1.5, size=n).astype(float)

    score = 1.2 * late - 0.05 * months + 1.5 * (contract == "month_to_month") + rng.normal(0, 1, size=n)
    canceled = np.where(score > np.median(score), "yes", "no")

    return pd.DataFrame({
        "canceled_service": pd.Categorical(canceled, categories=["yes", "no"]),
        "spouse_partner": pd.Categorical(partner),
        "internet_service": pd.Categorical(internet),
        "contract": pd.Categorical(contract),
        "months_with_company": months,
        "monthly_charges": charges,
        "late_payments": late,
    })


@pytest.fixture
def home_sales_df():
    """Synthetic home sales frame with a right-skewed selling price."""
    rng = np.random.default_rng(7)
    n = 240
    sqft = rng.normal(2000, 500, size=n).clip(600)
    bedrooms = rng.integers(1, 6, size=n).astype(float)
    bathrooms = rng.integers(1, 4, size=n).astype(float)
    age = rng.integers(0, 80, size=n).astype(float)
    city = rng.choice(["Seattle", "Bellevue", "Redmond"], size=n)
    premium = np.select([city == "Bellevue", city == "Redmond"], [80000, 40000], 0)
    price = 150 * sqft + 10000 * bathrooms - 800 * age + premium + rng.normal(0, 20000, size=n)

    return pd.DataFrame({
        "selling_price": price,
        "city": pd.Categorical(city),
        "house_age": age,
        "bedrooms": bedrooms,
        "bathrooms": bathrooms,
        "sqft_living": sqft,
    })
