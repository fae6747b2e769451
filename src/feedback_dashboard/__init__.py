"""
Training feedback dashboard.

- config: data source, scoring rules, app identity
- core: data loading, aggregations, chart builders
- ui: Streamlit page
"""
