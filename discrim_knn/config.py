"""
Central configuration for the project.

This module centralizes environment-independent constants and derived paths
used throughout the codebase (data set URLs, data and model paths, seeds and
tuning grids).

Constants
---------
DATASETS : dict
    Data set name -> download URL, file format and outcome column.
BASE_DIR : str
    Absolute path to the project root (parent of the package directory).
DATA_DIR, RAW_DATA_DIR, PROCESSED_DATA_DIR : str
    Paths to data folders.
MODELS_DIR : str
    Path to model artifacts, metadata and saved figures.
RANDOM_SEED, TRAIN_PROP, N_FOLDS : int, float, int
    Resampling defaults shared by every experiment.
KNN_NEIGHBORS_GRID : list of int
    Candidate values of K searched by grid search.
"""

import os

CHURN_DATA_URL = os.getenv("CHURN_DATA_URL", "https://gmudatamining.com/data/churn_data.rds")
HOME_SALES_DATA_URL = os.getenv("HOME_SALES_DATA_URL", "https://gmudatamining.com/data/home_sales.rds")

CHURN_OUTCOME = "canceled_service"
CHURN_EVENT = "yes"
HOME_SALES_OUTCOME = "selling_price"

DATASETS = {
    "churn": {"url": CHURN_DATA_URL, "outcome": CHURN_OUTCOME},
    "home_sales": {"url": HOME_SALES_DATA_URL, "outcome": HOME_SALES_OUTCOME},
}

HTTP_TIMEOUT = 30

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.getenv("DISCRIM_KNN_DATA_DIR", os.path.join(BASE_DIR, "data"))
RAW_DATA_DIR = os.path.join(DATA_DIR, "raw")
PROCESSED_DATA_DIR = os.path.join(DATA_DIR, "processed")

MODELS_DIR = os.getenv("DISCRIM_KNN_MODELS_DIR", os.path.join(BASE_DIR, "models"))

RANDOM_SEED = int(os.getenv("DISCRIM_KNN_SEED", "314"))
TRAIN_PROP = 0.75
N_FOLDS = 5

KNN_NEIGHBORS_GRID = [10, 15, 25, 45, 60, 75, 100, 125, 150, 200]

# keeps per-class covariance estimates invertible when dummy columns are collinear
QDA_REG_PARAM = 0.01

CLASSIFICATION_METRICS = ["roc_auc", "accuracy", "f_meas", "sensitivity", "specificity"]
REGRESSION_METRICS = ["rmse", "rsq", "mae"]

CLASSIFICATION_TUNE_METRIC = "roc_auc"
REGRESSION_TUNE_METRIC = "rmse"
