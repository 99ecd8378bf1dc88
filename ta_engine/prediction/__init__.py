"""Price prediction models and the ensemble aggregator."""
