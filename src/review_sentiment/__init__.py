"""
Olist Review Sentiment Report

Exploratory analysis of Olist e-commerce orders and a comparison of
regularized logistic regression against gradient-boosted trees for
predicting negative customer reviews.
"""

__version__ = "0.1.0"
