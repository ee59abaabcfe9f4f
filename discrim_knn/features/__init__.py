"""Preprocessing recipes compiled to scikit-learn transformers."""
