"""Assembly vote resolution and quorum decision engine."""
