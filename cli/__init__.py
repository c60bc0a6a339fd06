"""Command-line tools built on interlacex."""
