"""Infrastructure layer: configuration, logging, audit trail and reports."""
