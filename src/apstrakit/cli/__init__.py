"""apstrakit command-line interface."""
