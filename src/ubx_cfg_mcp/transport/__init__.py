"""Serial link to the receiver."""
