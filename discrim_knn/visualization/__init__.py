"""Figures for ROC curves, predicted-vs-actual plots, tuning profiles and confusion matrices."""
