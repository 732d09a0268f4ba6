"""Console-script wrappers for the Niche Pulse pipelines."""
