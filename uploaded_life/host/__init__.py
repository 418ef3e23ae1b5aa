"""
Simulation host and its startup sequence.

Constructs the host synchronously with embedded data, then swaps in the loaded
library when the readiness future resolves.
"""
