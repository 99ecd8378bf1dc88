"""Parameter grid search and configuration comparison."""
