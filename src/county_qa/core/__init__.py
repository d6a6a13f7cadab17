"""
Core data and question-answering layer.

This package contains:
- text: string normalization, number parsing and formatting
- models: metric/region enums, rows, totals and the immutable snapshot
- data_loader: fetch the published sheet CSV and decode it into raw rows
- sheet_ingest: locate headers and build a snapshot from raw rows
- intent: county/region/metric/operation extraction and clarity scoring
- answer_engine: ordered rules that turn a question into an answer
- store: holds the current snapshot and swaps it on reload
"""
