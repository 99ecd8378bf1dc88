"""Price data loading, conversion and validation."""
