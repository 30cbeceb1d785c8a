"""StormRocks command-line interface."""
