"""Schema validation for contract documents."""
