"""Request routing for the read-only gateway."""
