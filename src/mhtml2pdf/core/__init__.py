"""Core conversion pipeline: decoding, persistence, rewriting and rendering."""
