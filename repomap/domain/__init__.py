"""Domain-level types: the bundled entity base and the protocols repomap expects."""
