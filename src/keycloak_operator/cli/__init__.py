"""Command line entrypoints for running reconcile passes by hand."""
