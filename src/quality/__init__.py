"""Line-listing data quality checks.

Duplicate detection (exact and fuzzy), date order, future dates, numeric
ranges and missing values, merged into a uniform issue list.

Deterministic -- pure functions of records, columns and configuration.
"""
