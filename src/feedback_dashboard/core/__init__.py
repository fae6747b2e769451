"""
Core data and analytics layer.

This package contains:
- data_loader: fetch the feedback rows from the Apps Script endpoint
- aggregations: summary stats, grouped averages, action items
- charts: Altair builders for the dashboard charts
"""
