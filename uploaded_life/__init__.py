"""
uploaded_life – dataset loading and fallback resolution for the Uploaded Life host.

Loads the scenario/event library through a primary and a fallback transport,
normalizes heterogeneous rows into canonical records, substitutes embedded data
for anything that cannot be loaded, and hands the published snapshot to the
simulation host.
"""
