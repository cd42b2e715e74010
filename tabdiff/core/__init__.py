"""Dataset model, key building and comparison."""
