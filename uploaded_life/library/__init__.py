"""
Library assembly and the readiness signal.

Builds one immutable LibrarySnapshot per load cycle and publishes it through a
single future that drives the loading modal.
"""
