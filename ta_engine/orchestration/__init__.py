"""Analysis façade and its result cache."""
