"""Configuration, logging, errors, prompts, chunking, and file loading."""
