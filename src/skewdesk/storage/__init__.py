"""DuckDB-backed market store: markets, prices, mappings, spreads, pass bookkeeping."""
