"""Terminal and JSON rendering of activity results."""
