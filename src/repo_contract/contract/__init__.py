"""Contract documents: decoding, typed model, merge and loading."""
