"""Function registries."""
