"""
discrim_knn package initializer.

This package contains the project source code for data loading, preprocessing
recipes, model workflows, tuning and plots for the discriminant analysis and
K-nearest-neighbor tutorial.

Modules
-------
- config: Central configuration, data set URLs and path constants.
- data: Data download/caching and train/test/fold splitting.
- features: Preprocessing recipes (Yeo-Johnson, normalization, dummy encoding).
- models: Model specs, workflows, metrics, grid search and experiment runners.
- visualization: ROC, R², tuning and confusion matrix plots.
"""

__version__ = "0.1.0"
