"""
Heart Disease Decision-Tree Analysis Agent.

Loads a tabular heart disease dataset, cleans it, splits it into stratified
train/test partitions, selects a pruned decision tree by cross-validation
under the one-standard-error rule, and reports test-set diagnostics.

DISCLAIMER: This is an exploratory analysis tool for publicly available
research datasets. It does NOT provide medical diagnoses or replace
professional medical advice.
"""

__version__ = "0.1.0"
