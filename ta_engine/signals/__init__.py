"""Signal scoring: component rules, weights and alerts."""
