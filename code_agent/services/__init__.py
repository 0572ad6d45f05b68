"""Runtime services for commands and the webhook app."""
