"""Flask HTTP surface for the reader."""
