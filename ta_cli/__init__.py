"""Command-line front ends for the analysis engine."""
