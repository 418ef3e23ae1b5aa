"""
Dataset contracts, row normalization, parsing, and embedded fallback data.

Turns raw CSV/JSON text into canonical records and defines the resource set the
library is assembled from.
"""
