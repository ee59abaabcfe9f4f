"""
Data package for loading, caching and splitting the tutorial data sets.

This package exposes functions to download the churn and home sales data
sets, read/write a cached Parquet copy for fast local reuse, and create
train/test splits and cross-validation folds.
"""
