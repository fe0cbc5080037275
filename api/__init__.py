"""HTTP host for the quiz trainer pages."""
