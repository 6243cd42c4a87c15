"""Posts and their embedded comments."""
