"""Memory-augmented conversations with artwork personalities."""
